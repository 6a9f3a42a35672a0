"""HTTP middleware."""

from scan2go.middleware.request_log import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
