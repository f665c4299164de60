"""HTTP API for the registry."""
