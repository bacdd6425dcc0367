"""
ZeroDB Client Wrapper

Provides HTTP client for ZeroDB API with authentication, retry logic, and error handling.
"""

import os
from typing import Any, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .exceptions import (
    ZeroDBAuthError,
    ZeroDBError,
    ZeroDBNotFound,
    ZeroDBRateLimitError,
    ZeroDBTimeoutError,
)


class ZeroDBClient:
    """
    ZeroDB API Client with retry logic and comprehensive error handling.

    Only network errors and timeouts are retried (3 attempts, exponential
    backoff). HTTP error statuses are mapped to ZeroDB exceptions and raised
    immediately.

    Example:
        async with ZeroDBClient(api_key="...", project_id="...") as client:
            rows = await client.tables.query_rows("users", filter={"is_active": True})
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        project_id: Optional[str] = None,
        base_url: str = "https://api.ainative.studio",
        timeout: float = 30.0,
    ):
        """
        Initialize ZeroDB client.

        Args:
            api_key: ZeroDB API key (required, or set ZERODB_API_KEY env var)
            project_id: ZeroDB project ID (required, or set ZERODB_PROJECT_ID env var)
            base_url: API base URL (default: https://api.ainative.studio)
            timeout: Request timeout in seconds (default: 30.0)

        Raises:
            ValueError: If api_key or project_id is not provided
        """
        self.api_key = api_key or os.getenv("ZERODB_API_KEY")
        self.project_id = project_id or os.getenv("ZERODB_PROJECT_ID")
        self.base_url = base_url or os.getenv("ZERODB_BASE_URL", "https://api.ainative.studio")
        self.timeout = timeout

        if not self.api_key:
            raise ValueError("api_key is required (set via parameter or ZERODB_API_KEY env var)")
        if not self.project_id:
            raise ValueError(
                "project_id is required (set via parameter or ZERODB_PROJECT_ID env var)"
            )

        self._http_client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )

        self._tables = None

    @property
    def tables(self):
        """Access Tables API operations"""
        if self._tables is None:
            from .tables import TablesAPI

            self._tables = TablesAPI(self)
        return self._tables

    @staticmethod
    def _body(response: httpx.Response) -> Optional[dict[str, Any]]:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((httpx.NetworkError, httpx.TimeoutException)),
        reraise=True,
    )
    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        return await self._http_client.request(method, path, **kwargs)

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs,
    ) -> dict[str, Any]:
        """
        Make HTTP request with retry logic and error handling.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            path: API path (e.g., "/v1/public/projects/{id}")
            **kwargs: Additional arguments passed to httpx.request

        Returns:
            Dict: JSON response from API

        Raises:
            ZeroDBAuthError: Authentication failed (401, 403)
            ZeroDBNotFound: Resource not found (404)
            ZeroDBRateLimitError: Rate limit exceeded (429)
            ZeroDBTimeoutError: Request timed out
            ZeroDBError: Other API errors
        """
        try:
            response = await self._send(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise ZeroDBTimeoutError(f"Request timed out after {self.timeout}s") from e
        except httpx.NetworkError as e:
            raise ZeroDBError(f"Network error: {str(e)}") from e

        body = self._body(response)

        if response.status_code == 401:
            raise ZeroDBAuthError(
                "Authentication failed - invalid API key", status_code=401, response=body
            )
        if response.status_code == 403:
            raise ZeroDBAuthError(
                "Permission denied - insufficient privileges", status_code=403, response=body
            )
        if response.status_code == 404:
            raise ZeroDBNotFound("Resource not found", status_code=404, response=body)
        if response.status_code == 429:
            raise ZeroDBRateLimitError(
                "Rate limit exceeded - please retry later", status_code=429, response=body
            )
        if response.status_code >= 400:
            error_msg = f"API error: {response.status_code}"
            if isinstance(body, dict) and body.get("error"):
                error_msg = str(body["error"])
            raise ZeroDBError(error_msg, status_code=response.status_code, response=body)

        return body or {}

    async def __aenter__(self):
        """Async context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - close HTTP client"""
        await self._http_client.aclose()

    async def close(self):
        """Close the HTTP client connection"""
        await self._http_client.aclose()
