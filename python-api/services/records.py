"""
Row lookup, sorting and pagination helpers shared by the services.

ZeroDB queries filter but do not sort, so list endpoints scan a bounded
window of matching rows and sort and slice them here.
"""

import math
from typing import Any, Optional

from fastapi import HTTPException
from fastapi import status as http_status
from integrations.zerodb.client import ZeroDBClient

MAX_SCAN_ROWS = 1000


async def find_one(
    zerodb_client: ZeroDBClient, table: str, filter: dict[str, Any]
) -> Optional[dict[str, Any]]:
    rows = await zerodb_client.tables.query_rows(table, filter=filter, limit=1)
    return rows[0] if rows else None


def not_found(label: str) -> HTTPException:
    return HTTPException(
        status_code=http_status.HTTP_404_NOT_FOUND,
        detail=f"{label} not found",
    )


async def get_or_404(
    zerodb_client: ZeroDBClient, table: str, id_field: str, row_id: str, label: str
) -> dict[str, Any]:
    row = await find_one(zerodb_client, table, {id_field: row_id})
    if row is None:
        raise not_found(label)
    return row


async def find_all(
    zerodb_client: ZeroDBClient,
    table: str,
    filter: Optional[dict[str, Any]] = None,
    limit: int = MAX_SCAN_ROWS,
) -> list[dict[str, Any]]:
    return await zerodb_client.tables.query_rows(table, filter=filter, skip=0, limit=limit)


def sort_rows(rows: list[dict[str, Any]], sort: str = "-created_at") -> list[dict[str, Any]]:
    """Sort by a field name; a leading ``-`` means descending. Missing values sort last."""
    descending = sort.startswith("-")
    field = sort.lstrip("-")
    present = [r for r in rows if r.get(field) is not None]
    missing = [r for r in rows if r.get(field) is None]
    return sorted(present, key=lambda r: r[field], reverse=descending) + missing


def paginate(
    rows: list[dict[str, Any]], page: int = 1, limit: int = 20
) -> tuple[list[dict[str, Any]], dict[str, Any]]:
    page = max(1, page)
    limit = max(1, limit)
    total = len(rows)
    start = (page - 1) * limit
    return rows[start : start + limit], {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if total else 0,
        "has_next": start + limit < total,
    }
