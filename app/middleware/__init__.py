"""HTTP middleware for the URL shortener application."""

from app.middleware.logging import LoggingMiddleware
from app.middleware.tracing import TracingMiddleware

__all__ = ["LoggingMiddleware", "TracingMiddleware"]
