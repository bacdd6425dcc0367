"""
Notification Service

Stores per-account notifications in ZeroDB and pushes them to connected
sockets. Fan-out writes one row per recipient as an unordered concurrent
batch: there is no transaction and no rollback, so a failed insert leaves
the other recipients notified. Failures are logged and not retried.
"""

import asyncio
import logging
from collections import Counter
from datetime import timedelta
from typing import Any, Iterable, Optional

from config import settings
from integrations.zerodb.client import ZeroDBClient
from models.common import utcnow
from models.notification import build_notification
from realtime.manager import manager
from services.records import find_all, get_or_404, not_found, paginate, sort_rows

logger = logging.getLogger(__name__)

TABLE = "notifications"

DEFAULT_PREFERENCES: dict[str, Any] = {
    "email": {
        "team_invite": True,
        "team_join_request": True,
        "submission_status": True,
        "judging_result": True,
        "deadline_reminder": True,
        "announcement": False,
    },
    "push": {
        "team_invite": True,
        "team_join_request": True,
        "new_message": True,
        "submission_status": True,
        "judging_result": True,
    },
    "frequency": "instant",
}


def live_filter(user_id: str, **extra: Any) -> dict[str, Any]:
    """Filter for an account's notifications that have not expired."""
    return {"user_id": user_id, "expires_at": {"$gt": utcnow().isoformat()}, **extra}


async def _deliver(rows: Iterable[dict[str, Any]]) -> None:
    for row in rows:
        await manager.send_to_user(row["user_id"], "notification", row)


async def create_notification(
    zerodb_client: ZeroDBClient,
    user_id: str,
    type: str,
    title: str,
    message: str,
    metadata=None,
    **fields: Any,
) -> Optional[dict[str, Any]]:
    """
    Create a single notification and push it to the recipient if online.

    Args:
        zerodb_client: ZeroDB client instance
        user_id: Recipient account
        type: Notification type
        title: Short title
        message: Body text
        metadata: Typed payload matching the notification type
        **fields: priority, references and action link (see build_notification)

    Returns:
        The stored notification row, or None when the insert failed (logged,
        not raised).
    """
    row = build_notification(
        user_id,
        type,
        title,
        message,
        metadata,
        ttl_days=settings.NOTIFICATION_TTL_DAYS,
        **fields,
    )
    try:
        await zerodb_client.tables.insert_rows(TABLE, rows=[row])
    except Exception as e:
        logger.warning(
            f"Failed to store {type} notification for user {user_id}: {e}",
            extra={"event": "notification_fanout_failed", "user_id": user_id},
        )
        return None
    logger.info(f"Created {type} notification {row['notification_id']} for user {user_id}")
    await _deliver([row])
    return row


async def notify_many(
    zerodb_client: ZeroDBClient,
    user_ids: Iterable[str],
    type: str,
    title: str,
    message: str,
    metadata=None,
    exclude: Optional[Iterable[str]] = None,
    **fields: Any,
) -> list[dict[str, Any]]:
    """
    Fan a notification out to several accounts.

    One insert per recipient, issued concurrently. Recipients are
    de-duplicated and ``exclude`` (usually the acting account) is skipped.

    Returns:
        The rows that were stored successfully
    """
    skip = set(exclude or ())
    recipients = [uid for uid in dict.fromkeys(user_ids) if uid and uid not in skip]
    if not recipients:
        return []

    rows = [
        build_notification(
            uid,
            type,
            title,
            message,
            metadata,
            ttl_days=settings.NOTIFICATION_TTL_DAYS,
            **fields,
        )
        for uid in recipients
    ]
    results = await asyncio.gather(
        *(zerodb_client.tables.insert_rows(TABLE, rows=[row]) for row in rows),
        return_exceptions=True,
    )

    stored = []
    for row, result in zip(rows, results):
        if isinstance(result, BaseException):
            logger.warning(
                f"Failed to store {type} notification for user {row['user_id']}: {result}",
                extra={"event": "notification_fanout_failed", "user_id": row["user_id"]},
            )
        else:
            stored.append(row)

    logger.info(f"Fanned out {type} notification to {len(stored)}/{len(rows)} users")
    await _deliver(stored)
    return stored


async def list_notifications(
    zerodb_client: ZeroDBClient,
    user_id: str,
    is_read: Optional[bool] = None,
    type: Optional[str] = None,
    priority: Optional[str] = None,
    include_archived: bool = False,
    page: int = 1,
    limit: int = 20,
) -> dict[str, Any]:
    filters: dict[str, Any] = {}
    if is_read is not None:
        filters["is_read"] = is_read
    if type:
        filters["type"] = type
    if priority:
        filters["priority"] = priority
    if not include_archived:
        filters["is_archived"] = False

    rows = await find_all(zerodb_client, TABLE, live_filter(user_id, **filters))
    items, pagination = paginate(sort_rows(rows, "-created_at"), page, limit)

    unread = await find_all(zerodb_client, TABLE, live_filter(user_id, is_read=False))
    return {
        "notifications": items,
        "pagination": pagination,
        "unread_count": len(unread),
    }


async def _get_own(
    zerodb_client: ZeroDBClient, user_id: str, notification_id: str
) -> dict[str, Any]:
    notification = await get_or_404(
        zerodb_client, TABLE, "notification_id", notification_id, "Notification"
    )
    if notification["user_id"] != user_id:
        # Other accounts' notifications look the same as missing ones
        raise not_found("Notification")
    return notification


async def mark_as_read(
    zerodb_client: ZeroDBClient, user_id: str, notification_id: str
) -> dict[str, Any]:
    notification = await _get_own(zerodb_client, user_id, notification_id)
    if not notification.get("is_read"):
        changes = {"is_read": True, "read_at": utcnow().isoformat()}
        await zerodb_client.tables.update_row(TABLE, notification_id, data=changes)
        notification.update(changes)
    return notification


async def get_notification(
    zerodb_client: ZeroDBClient, user_id: str, notification_id: str
) -> dict[str, Any]:
    """Fetch one notification; opening it marks it read."""
    return await mark_as_read(zerodb_client, user_id, notification_id)


async def mark_all_as_read(zerodb_client: ZeroDBClient, user_id: str) -> int:
    unread = await find_all(zerodb_client, TABLE, live_filter(user_id, is_read=False))
    changes = {"is_read": True, "read_at": utcnow().isoformat()}
    await asyncio.gather(
        *(
            zerodb_client.tables.update_row(TABLE, row["notification_id"], data=changes)
            for row in unread
        )
    )
    logger.info(f"Marked {len(unread)} notifications read for user {user_id}")
    return len(unread)


async def delete_notification(
    zerodb_client: ZeroDBClient, user_id: str, notification_id: str
) -> None:
    await _get_own(zerodb_client, user_id, notification_id)
    await zerodb_client.tables.delete_row(TABLE, notification_id)


async def delete_read_notifications(zerodb_client: ZeroDBClient, user_id: str) -> int:
    read = await find_all(zerodb_client, TABLE, {"user_id": user_id, "is_read": True})
    await asyncio.gather(
        *(zerodb_client.tables.delete_row(TABLE, row["notification_id"]) for row in read)
    )
    logger.info(f"Deleted {len(read)} read notifications for user {user_id}")
    return len(read)


async def archive_notification(
    zerodb_client: ZeroDBClient, user_id: str, notification_id: str
) -> dict[str, Any]:
    notification = await _get_own(zerodb_client, user_id, notification_id)
    await zerodb_client.tables.update_row(TABLE, notification_id, data={"is_archived": True})
    notification["is_archived"] = True
    return notification


async def get_notification_stats(zerodb_client: ZeroDBClient, user_id: str) -> dict[str, Any]:
    rows = await find_all(zerodb_client, TABLE, live_filter(user_id))
    week_ago = (utcnow() - timedelta(days=7)).isoformat()

    by_type: dict[str, dict[str, int]] = {}
    for row in rows:
        bucket = by_type.setdefault(row["type"], {"total": 0, "unread": 0})
        bucket["total"] += 1
        if not row.get("is_read"):
            bucket["unread"] += 1

    return {
        "total": len(rows),
        "unread": sum(1 for r in rows if not r.get("is_read")),
        "by_type": by_type,
        "by_priority": dict(Counter(r.get("priority", "medium") for r in rows)),
        "recent": sum(1 for r in rows if r.get("created_at", "") >= week_ago),
    }


async def get_preferences(zerodb_client: ZeroDBClient, user_id: str) -> dict[str, Any]:
    user = await get_or_404(zerodb_client, "users", "user_id", user_id, "User")
    stored = user.get("notification_preferences") or {}
    return {**DEFAULT_PREFERENCES, **stored}


async def update_preferences(
    zerodb_client: ZeroDBClient, user_id: str, preferences: dict[str, Any]
) -> dict[str, Any]:
    current = await get_preferences(zerodb_client, user_id)
    merged = {**current, **preferences}
    await zerodb_client.tables.update_row(
        "users", user_id, data={"notification_preferences": merged}
    )
    return merged
