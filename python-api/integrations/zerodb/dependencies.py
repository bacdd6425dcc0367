"""
ZeroDB client factory

Builds the process-wide ZeroDB client from application settings.
"""

from functools import lru_cache

from config import settings
from .client import ZeroDBClient


@lru_cache(maxsize=1)
def build_zerodb_client() -> ZeroDBClient:
    """
    Get ZeroDB client instance (singleton via LRU cache).

    The client is cached for the lifetime of the application so the
    underlying HTTP connection pool is shared by every request.

    Returns:
        ZeroDBClient: Configured ZeroDB client instance

    Raises:
        ValueError: If ZERODB_API_KEY or ZERODB_PROJECT_ID is not configured
    """
    return ZeroDBClient(
        api_key=settings.ZERODB_API_KEY,
        project_id=settings.ZERODB_PROJECT_ID,
        base_url=settings.ZERODB_BASE_URL,
        timeout=settings.ZERODB_TIMEOUT,
    )
