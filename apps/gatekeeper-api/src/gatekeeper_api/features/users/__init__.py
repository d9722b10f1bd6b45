"""User accounts feature."""
