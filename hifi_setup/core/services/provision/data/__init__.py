"""L0 Data — constants and remediation hints. Pure data."""
