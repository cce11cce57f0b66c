"""
Outbound REST API clients.
"""
from .base import BaseAPIClient, APIResponse, APIError, APITimeoutError

__all__ = [
    "BaseAPIClient",
    "APIResponse",
    "APIError",
    "APITimeoutError",
]
