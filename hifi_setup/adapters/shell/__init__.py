"""Shell adapters."""
