"""Shared FastAPI middleware and exception handlers."""
