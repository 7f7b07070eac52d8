"""L3 Detection — read-only probes."""
