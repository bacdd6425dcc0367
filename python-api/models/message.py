"""
Chat message records and room keys.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from models.common import DomainError, new_id, utcnow

RoomType = Literal["team", "project", "direct", "group"]
MessageType = Literal["text", "code", "file", "system", "announcement"]

MAX_CONTENT_LENGTH = 5000
DELETED_PLACEHOLDER = "[This message was deleted]"


def parse_room_id(room_id: str) -> tuple[str, str]:
    """Split ``team_<id>`` / ``project_<id>`` into (room_type, entity id)."""
    prefix, sep, entity_id = room_id.partition("_")
    if not sep or not entity_id or prefix not in ("team", "project", "direct", "group"):
        raise DomainError(f"Invalid room id: {room_id}")
    return prefix, entity_id


def validate_content(content: str) -> str:
    if not content or not content.strip():
        raise DomainError("Message content cannot be empty")
    if len(content) > MAX_CONTENT_LENGTH:
        raise DomainError(f"Message content cannot exceed {MAX_CONTENT_LENGTH} characters")
    return content


def build_message(
    room_id: str,
    sender_id: str,
    content: str,
    message_type: str = "text",
    parent_message_id: Optional[str] = None,
    attachments: Optional[list[dict[str, Any]]] = None,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    room_type, _ = parse_room_id(room_id)
    now = now or utcnow()
    return {
        "message_id": new_id(),
        "room_id": room_id,
        "room_type": room_type,
        "sender_id": sender_id,
        "type": message_type,
        "content": validate_content(content),
        "attachments": attachments or [],
        "parent_message_id": parent_message_id,
        "thread_count": 0,
        "reactions": [],
        "read_by": [],
        "delivered": False,
        "delivered_at": None,
        "edited": False,
        "edited_at": None,
        "deleted": False,
        "deleted_at": None,
        "pinned": False,
        "created_at": now.isoformat(),
    }


def edit(
    message: dict[str, Any], user_id: str, content: str, now: Optional[datetime] = None
) -> None:
    if message["sender_id"] != user_id:
        raise DomainError("Only the sender can edit this message", status_code=403)
    if message.get("deleted"):
        raise DomainError("Cannot edit a deleted message")
    message["content"] = validate_content(content)
    message["edited"] = True
    message["edited_at"] = (now or utcnow()).isoformat()


def soft_delete(message: dict[str, Any], user_id: str, now: Optional[datetime] = None) -> None:
    if message["sender_id"] != user_id:
        raise DomainError("Only the sender can delete this message", status_code=403)
    message["deleted"] = True
    message["deleted_at"] = (now or utcnow()).isoformat()
    message["content"] = DELETED_PLACEHOLDER


def toggle_reaction(message: dict[str, Any], user_id: str, emoji: str) -> bool:
    """Add the reaction, or remove it if already present. Returns True when added."""
    reactions = message.setdefault("reactions", [])
    for reaction in reactions:
        if reaction["user_id"] == user_id and reaction["emoji"] == emoji:
            reactions.remove(reaction)
            return False
    reactions.append({"emoji": emoji, "user_id": user_id})
    return True


def mark_read(message: dict[str, Any], user_id: str, now: Optional[datetime] = None) -> bool:
    read_by = message.setdefault("read_by", [])
    if any(r["user_id"] == user_id for r in read_by):
        return False
    read_by.append({"user_id": user_id, "read_at": (now or utcnow()).isoformat()})
    return True
