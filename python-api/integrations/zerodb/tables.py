"""
ZeroDB Tables API Wrapper

Provides methods for NoSQL table operations.
"""

import json
from typing import Any, List, Optional


class TablesAPI:
    """
    Wrapper for ZeroDB Tables API operations.

    Provides methods for:
    - Creating, listing and deleting tables
    - CRUD operations on table rows
    """

    def __init__(self, client):
        """
        Initialize TablesAPI wrapper.

        Args:
            client: ZeroDBClient instance
        """
        self.client = client

    def _tables_path(self) -> str:
        return f"/v1/public/projects/{self.client.project_id}/database/tables"

    def _rows_path(self, table_name: str) -> str:
        return f"{self._tables_path()}/{table_name}/rows"

    async def create(
        self,
        name: str,
        schema: dict[str, Any],
        description: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Create a new table.

        Args:
            name: Table name
            schema: Table schema definition (fields and indexes)
            description: Optional table description

        Returns:
            Dict with table details
        """
        payload = {"name": name, "schema": schema}
        if description:
            payload["description"] = description

        return await self.client._request("POST", self._tables_path(), json=payload)

    async def list(self, skip: int = 0, limit: int = 100) -> list[dict[str, Any]]:
        """
        List all tables in the project.

        Args:
            skip: Number of records to skip (pagination)
            limit: Maximum number of records to return

        Returns:
            List of table objects
        """
        params = {"skip": skip, "limit": limit}
        response = await self.client._request("GET", self._tables_path(), params=params)
        return response.get("tables", [])

    async def insert_rows(
        self,
        table_name: str,
        rows: List[dict[str, Any]],
    ) -> dict[str, Any]:
        """
        Insert rows into a table.

        Args:
            table_name: Name of the table
            rows: List of row objects to insert

        Returns:
            Dict with inserted row IDs

        Example:
            result = await client.tables.insert_rows(
                "users", rows=[{"user_id": "uuid1", "name": "Alice"}]
            )
        """
        payload = {"rows": rows}
        return await self.client._request("POST", self._rows_path(table_name), json=payload)

    async def query_rows(
        self,
        table_name: str,
        filter: Optional[dict[str, Any]] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[dict[str, Any]]:
        """
        Query rows from a table.

        Args:
            table_name: Name of the table
            filter: MongoDB-style query filter (optional), sent JSON encoded
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of matching rows

        Example:
            rows = await client.tables.query_rows(
                "teams",
                filter={"hackathon_id": hackathon_id, "status": {"$in": ["forming", "active"]}},
                limit=10
            )
        """
        params: dict[str, Any] = {"skip": skip, "limit": limit}
        if filter:
            params["filter"] = json.dumps(filter)

        response = await self.client._request("GET", self._rows_path(table_name), params=params)
        return response.get("rows", [])

    async def update_row(
        self,
        table_name: str,
        row_id: str,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Update a row in a table.

        Only the keys present in data are written.

        Args:
            table_name: Name of the table
            row_id: Primary key of the row to update
            data: Updated fields

        Returns:
            Dict with updated row
        """
        payload = {"data": data}
        return await self.client._request(
            "PUT", f"{self._rows_path(table_name)}/{row_id}", json=payload
        )

    async def delete_row(self, table_name: str, row_id: str) -> dict[str, Any]:
        """
        Delete a row from a table.

        Args:
            table_name: Name of the table
            row_id: Primary key of the row to delete

        Returns:
            Dict with deletion confirmation
        """
        return await self.client._request("DELETE", f"{self._rows_path(table_name)}/{row_id}")
