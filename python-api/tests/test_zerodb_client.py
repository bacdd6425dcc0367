"""
Tests for ZeroDB Client

Covers request error mapping, retries and the Tables API wire format.
"""

import json
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest
from integrations.zerodb.client import ZeroDBClient
from integrations.zerodb.exceptions import (
    ZeroDBAuthError,
    ZeroDBError,
    ZeroDBNotFound,
    ZeroDBRateLimitError,
    ZeroDBTimeoutError,
)


def _response(status_code, body=None):
    return Mock(
        status_code=status_code,
        content=b"{}" if body is not None else b"",
        json=Mock(return_value=body),
    )


class TestZeroDBClientInitialization:
    """Test client initialization and configuration"""

    def test_client_initialization_with_api_key(self):
        """Should initialize client with API key"""
        client = ZeroDBClient(
            api_key="test-api-key",
            project_id="test-project-id",
        )
        assert client.api_key == "test-api-key"
        assert client.project_id == "test-project-id"
        assert client.base_url == "https://api.ainative.studio"

    def test_client_sends_bearer_token(self):
        """Should authenticate every request with the API key"""
        client = ZeroDBClient(api_key="test-key", project_id="test-project")
        assert client._http_client.headers["Authorization"] == "Bearer test-key"

    def test_client_initialization_missing_api_key(self, monkeypatch):
        """Should raise error when API key is missing"""
        monkeypatch.delenv("ZERODB_API_KEY", raising=False)
        with pytest.raises(ValueError, match="api_key is required"):
            ZeroDBClient(api_key=None, project_id="test-project")

    def test_client_initialization_missing_project_id(self, monkeypatch):
        """Should raise error when project_id is missing"""
        monkeypatch.delenv("ZERODB_PROJECT_ID", raising=False)
        with pytest.raises(ValueError, match="project_id is required"):
            ZeroDBClient(api_key="test-key", project_id=None)


class TestZeroDBClientErrorHandling:
    """Test error handling for different HTTP status codes"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status_code,error",
        [
            (401, ZeroDBAuthError),
            (403, ZeroDBAuthError),
            (404, ZeroDBNotFound),
            (429, ZeroDBRateLimitError),
        ],
    )
    async def test_maps_status_codes(self, status_code, error):
        """Should raise the matching ZeroDB error"""
        client = ZeroDBClient(api_key="test-key", project_id="test-project")

        with patch.object(client._http_client, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(status_code, {"error": "nope"})

            with pytest.raises(error) as exc_info:
                await client._request("GET", "/test")

        assert exc_info.value.status_code == status_code

    @pytest.mark.asyncio
    async def test_uses_error_message_from_body(self):
        """Should surface the API error text for other 4xx/5xx responses"""
        client = ZeroDBClient(api_key="test-key", project_id="test-project")

        with patch.object(client._http_client, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(409, {"error": "duplicate key"})

            with pytest.raises(ZeroDBError, match="duplicate key") as exc_info:
                await client._request("POST", "/test")

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_handles_empty_body(self):
        """Should return an empty dict for a 204-style response"""
        client = ZeroDBClient(api_key="test-key", project_id="test-project")

        with patch.object(client._http_client, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(204)

            assert await client._request("DELETE", "/test") == {}

    @pytest.mark.asyncio
    async def test_handles_timeout(self):
        """Should raise ZeroDBTimeoutError on timeout"""
        client = ZeroDBClient(api_key="test-key", project_id="test-project")

        with patch.object(client._http_client, "request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = httpx.TimeoutException("Request timed out")

            with pytest.raises(ZeroDBTimeoutError):
                await client._request("GET", "/test")


class TestZeroDBClientRetryLogic:
    """Test retry logic with exponential backoff"""

    @pytest.mark.asyncio
    async def test_retries_on_network_failure(self):
        """Should retry up to 3 times on network failure"""
        client = ZeroDBClient(api_key="test-key", project_id="test-project")

        with patch.object(client._http_client, "request", new_callable=AsyncMock) as mock_request:
            # Fail twice, then succeed
            mock_request.side_effect = [
                httpx.NetworkError("Connection failed"),
                httpx.NetworkError("Connection failed"),
                _response(200, {"success": True}),
            ]

            result = await client._request("GET", "/test")
            assert result == {"success": True}
            assert mock_request.call_count == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        """Should give up after 3 failed attempts"""
        client = ZeroDBClient(api_key="test-key", project_id="test-project")

        with patch.object(client._http_client, "request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = httpx.NetworkError("Connection failed")

            with pytest.raises(ZeroDBError, match="Network error"):
                await client._request("GET", "/test")

            assert mock_request.call_count == 3

    @pytest.mark.asyncio
    async def test_does_not_retry_on_client_errors(self):
        """Should NOT retry on 4xx client errors"""
        client = ZeroDBClient(api_key="test-key", project_id="test-project")

        with patch.object(client._http_client, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(400, {"error": "Bad request"})

            with pytest.raises(ZeroDBError):
                await client._request("GET", "/test")

            assert mock_request.call_count == 1


class TestTablesAPI:
    """Test the row operations the services rely on"""

    @pytest.mark.asyncio
    async def test_query_rows_encodes_filter(self):
        """Should send the filter JSON encoded with paging params"""
        client = ZeroDBClient(api_key="test-key", project_id="p1")
        query = {"members.user_id": "u1", "status": {"$ne": "disbanded"}}

        with patch.object(client, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"rows": [{"team_id": "t1"}]}

            rows = await client.tables.query_rows("teams", filter=query, limit=5)

        assert rows == [{"team_id": "t1"}]
        method, path = mock_request.call_args[0]
        params = mock_request.call_args[1]["params"]
        assert method == "GET"
        assert path == "/v1/public/projects/p1/database/tables/teams/rows"
        assert json.loads(params["filter"]) == query
        assert params["limit"] == 5

    @pytest.mark.asyncio
    async def test_query_rows_without_rows_key(self):
        """Should return an empty list when the API returns no rows"""
        client = ZeroDBClient(api_key="test-key", project_id="p1")

        with patch.object(client, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {}
            assert await client.tables.query_rows("teams") == []

    @pytest.mark.asyncio
    async def test_update_row_sends_partial_data(self):
        """Should PUT only the changed fields under ``data``"""
        client = ZeroDBClient(api_key="test-key", project_id="p1")

        with patch.object(client, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"updated": True}
            await client.tables.update_row("projects", "pr1", data={"views": 3})

        mock_request.assert_called_once_with(
            "PUT",
            "/v1/public/projects/p1/database/tables/projects/rows/pr1",
            json={"data": {"views": 3}},
        )


class TestZeroDBClientContextManager:
    """Test async context manager support"""

    @pytest.mark.asyncio
    async def test_closes_client_on_exit(self):
        """Should close HTTP client on context manager exit"""
        client = ZeroDBClient(api_key="test-key", project_id="test-project")

        with patch.object(client._http_client, "aclose", new_callable=AsyncMock) as mock_close:
            async with client:
                pass

            mock_close.assert_called_once()
