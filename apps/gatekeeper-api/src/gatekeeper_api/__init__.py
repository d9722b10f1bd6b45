"""Gatekeeper API: declarative, conditional permission checks for FastAPI."""

__all__ = ["__version__"]

__version__ = "0.4.0"
