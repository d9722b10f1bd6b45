"""Permission catalog endpoints."""
