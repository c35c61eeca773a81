"""Middleware package."""
from clubcheckin.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
