"""Shared helpers (exceptions, env parsing, logging setup)."""
