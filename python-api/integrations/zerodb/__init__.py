"""
ZeroDB Integration Package

Document table storage over the ZeroDB HTTP API: client, tables wrapper
and the exception hierarchy the services map to HTTP responses.
"""

from .client import ZeroDBClient
from .exceptions import (
    ZeroDBAuthError,
    ZeroDBError,
    ZeroDBNotFound,
    ZeroDBRateLimitError,
    ZeroDBTimeoutError,
)
from .tables import TablesAPI

__all__ = [
    "TablesAPI",
    "ZeroDBClient",
    "ZeroDBError",
    "ZeroDBAuthError",
    "ZeroDBNotFound",
    "ZeroDBRateLimitError",
    "ZeroDBTimeoutError",
]
