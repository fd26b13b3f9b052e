"""
API Module
"""
from .main import create_app
from .middleware import RequestLoggingMiddleware

__all__ = [
    "create_app",
    "RequestLoggingMiddleware",
]
