"""
Message Service

Persists chat messages for team, project, direct and group rooms. Both
the REST history endpoint and the socket handlers go through here, so room
access is checked in one place.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from fastapi import status as http_status
from integrations.zerodb.client import ZeroDBClient
from models import message as message_rules
from models import project as project_rules
from models import team as team_rules
from models.common import utcnow
from models.notification import NewMessageMetadata
from realtime.manager import manager
from services.authorization import check_room_access
from services.notification_service import notify_many
from services.records import find_all, find_one, get_or_404, sort_rows

# Configure logger
logger = logging.getLogger(__name__)

TABLE = "messages"

PREVIEW_LENGTH = 100


async def get_message_record(zerodb_client: ZeroDBClient, message_id: str) -> Dict[str, Any]:
    return await get_or_404(zerodb_client, TABLE, "message_id", message_id, "Message")


async def _room_member_ids(zerodb_client: ZeroDBClient, room_id: str) -> List[str]:
    room_type, entity_id = message_rules.parse_room_id(room_id)
    if room_type == "team":
        team = await find_one(zerodb_client, "teams", {"team_id": entity_id})
        return [m["user_id"] for m in team_rules.accepted_members(team)] if team else []
    if room_type == "project":
        project = await find_one(zerodb_client, "projects", {"project_id": entity_id})
        return project_rules.team_member_ids(project) if project else []
    if room_type == "direct":
        return entity_id.split("_")
    return []


async def notify_offline_members(
    zerodb_client: ZeroDBClient, message: Dict[str, Any], sender: Dict[str, Any]
) -> int:
    """Leave a new_message notification for room members with no open socket."""
    members = await _room_member_ids(zerodb_client, message["room_id"])
    offline = [
        uid for uid in members
        if uid != sender["user_id"] and not await manager.presence.is_online(uid)
    ]
    if not offline:
        return 0

    content = message["content"]
    preview = content if len(content) <= PREVIEW_LENGTH else content[:PREVIEW_LENGTH] + "..."
    stored = await notify_many(
        zerodb_client,
        offline,
        "new_message",
        f"New message from {sender.get('name', 'a teammate')}",
        preview,
        NewMessageMetadata(
            room_id=message["room_id"],
            sender_name=sender.get("name", "Someone"),
            preview=preview,
        ),
        priority="low",
        sender_id=sender["user_id"],
    )
    return len(stored)


async def create_message(
    zerodb_client: ZeroDBClient,
    user: Dict[str, Any],
    room_id: str,
    content: str,
    message_type: str = "text",
    parent_message_id: Optional[str] = None,
    attachments: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Store a message in a room the caller may access.

    A reply increments the parent's ``thread_count`` when it is written.

    Raises:
        HTTPException: 403 no room access, 404 unknown parent
        DomainError: Empty or oversized content (400)
    """
    await check_room_access(zerodb_client, user, room_id)
    message = message_rules.build_message(
        room_id, user["user_id"], content, message_type, parent_message_id, attachments
    )

    parent = None
    if parent_message_id:
        parent = await find_one(
            zerodb_client, TABLE, {"message_id": parent_message_id, "room_id": room_id}
        )
        if parent is None:
            raise HTTPException(
                status_code=http_status.HTTP_404_NOT_FOUND,
                detail="Parent message not found",
            )

    await zerodb_client.tables.insert_rows(TABLE, rows=[message])
    if parent is not None:
        await zerodb_client.tables.update_row(
            TABLE,
            parent_message_id,
            data={"thread_count": int(parent.get("thread_count") or 0) + 1},
        )
    logger.debug(f"Stored message {message['message_id']} in room {room_id}")
    return {**message, "sender_name": user.get("name")}


async def get_room_messages(
    zerodb_client: ZeroDBClient,
    user: Dict[str, Any],
    room_id: str,
    before: Optional[str] = None,
    parent_message_id: Optional[str] = None,
    limit: int = 50,
) -> Dict[str, Any]:
    """
    Room history, oldest first, ending at ``before`` when given.

    Top-level messages are returned unless ``parent_message_id`` selects a
    thread.
    """
    await check_room_access(zerodb_client, user, room_id)
    filter: Dict[str, Any] = {"room_id": room_id, "parent_message_id": parent_message_id}
    if before:
        filter["created_at"] = {"$lt": before}

    rows = sort_rows(await find_all(zerodb_client, TABLE, filter), "-created_at")
    page = rows[:limit]
    return {
        "messages": list(reversed(page)),
        "has_more": len(rows) > limit,
    }


async def edit_message(
    zerodb_client: ZeroDBClient, user: Dict[str, Any], message_id: str, content: str
) -> Dict[str, Any]:
    message = await get_message_record(zerodb_client, message_id)
    message_rules.edit(message, user["user_id"], content)
    await zerodb_client.tables.update_row(
        TABLE,
        message_id,
        data={
            "content": message["content"],
            "edited": True,
            "edited_at": message["edited_at"],
        },
    )
    return message


async def delete_message(
    zerodb_client: ZeroDBClient, user: Dict[str, Any], message_id: str
) -> Dict[str, Any]:
    message = await get_message_record(zerodb_client, message_id)
    message_rules.soft_delete(message, user["user_id"])
    await zerodb_client.tables.update_row(
        TABLE,
        message_id,
        data={
            "content": message["content"],
            "deleted": True,
            "deleted_at": message["deleted_at"],
        },
    )
    logger.info(f"Message {message_id} deleted by user {user['user_id']}")
    return message


async def react_to_message(
    zerodb_client: ZeroDBClient, user: Dict[str, Any], message_id: str, emoji: str
) -> Dict[str, Any]:
    message = await get_message_record(zerodb_client, message_id)
    await check_room_access(zerodb_client, user, message["room_id"])
    added = message_rules.toggle_reaction(message, user["user_id"], emoji)
    await zerodb_client.tables.update_row(
        TABLE, message_id, data={"reactions": message["reactions"]}
    )
    return {"message": message, "added": added}


async def mark_delivered(zerodb_client: ZeroDBClient, message: Dict[str, Any]) -> None:
    if message.get("delivered"):
        return
    message["delivered"] = True
    message["delivered_at"] = utcnow().isoformat()
    await zerodb_client.tables.update_row(
        TABLE,
        message["message_id"],
        data={"delivered": True, "delivered_at": message["delivered_at"]},
    )


async def mark_as_read(
    zerodb_client: ZeroDBClient, user: Dict[str, Any], message_id: str
) -> Dict[str, Any]:
    message = await get_message_record(zerodb_client, message_id)
    await check_room_access(zerodb_client, user, message["room_id"])
    if message_rules.mark_read(message, user["user_id"]):
        await zerodb_client.tables.update_row(
            TABLE, message_id, data={"read_by": message["read_by"]}
        )
    return message


async def pin_message(
    zerodb_client: ZeroDBClient, user: Dict[str, Any], message_id: str, pinned: bool = True
) -> Dict[str, Any]:
    message = await get_message_record(zerodb_client, message_id)
    await check_room_access(zerodb_client, user, message["room_id"])
    message["pinned"] = pinned
    await zerodb_client.tables.update_row(TABLE, message_id, data={"pinned": pinned})
    return message


async def get_pinned_messages(
    zerodb_client: ZeroDBClient, user: Dict[str, Any], room_id: str
) -> List[Dict[str, Any]]:
    await check_room_access(zerodb_client, user, room_id)
    rows = await find_all(zerodb_client, TABLE, {"room_id": room_id, "pinned": True})
    return sort_rows([m for m in rows if not m.get("deleted")], "-created_at")
