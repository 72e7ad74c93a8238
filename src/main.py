"""Expose the application factory under the ``src`` package for tests and ASGI servers."""
from main import app, create_application  # noqa: F401

__all__ = ["create_application", "app"]
