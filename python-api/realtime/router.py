"""WebSocket endpoint for chat rooms and live team/project updates.

Protocol:
    Client -> Server:
        {"action": "join_room", "room_id": "team_<id>"}
        {"action": "send_message", "room_id": "...", "content": "...", "type": "text"}
        {"action": "typing", "room_id": "..."}
        {"action": "ping"}

    Server -> Client:
        {"event": "receive_message", "data": {...}}
        {"event": "message_sent", "data": {"message_id": "..."}}
        {"event": "error", "data": {"message": "..."}}
        {"event": "pong", "data": {"timestamp": "..."}}
"""

import json
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect
from integrations.zerodb.client import ZeroDBClient
from integrations.zerodb.dependencies import build_zerodb_client
from integrations.zerodb.exceptions import ZeroDBError
from models.common import DomainError, utcnow
from realtime.manager import manager
from services import message_service
from services.auth_exceptions import AuthError
from services.auth_service import authenticate_token
from services.authorization import check_room_access

logger = logging.getLogger(__name__)

router = APIRouter()

# WebSocket close code for rejected credentials
AUTH_FAILED_CODE = 4001

Handler = Callable[[ZeroDBClient, str, Dict[str, Any], Dict[str, Any]], Awaitable[None]]


def _require(msg: Dict[str, Any], key: str) -> Any:
    value = msg.get(key)
    if not value:
        raise DomainError(f"{key} is required")
    return value


async def _join_room(
    client: ZeroDBClient, conn_id: str, user: Dict[str, Any], msg: Dict[str, Any]
) -> None:
    room_id = _require(msg, "room_id")
    await check_room_access(client, user, room_id)
    manager.join_room(conn_id, room_id)
    await manager.send_to_connection(
        conn_id,
        "joined_room",
        {"room_id": room_id, "online_users": sorted(manager.room_members(room_id))},
    )
    await manager.broadcast_to_room(
        room_id,
        "user_joined",
        {"room_id": room_id, "user_id": user["user_id"], "name": user.get("name")},
        exclude=conn_id,
    )


async def _leave_room(
    client: ZeroDBClient, conn_id: str, user: Dict[str, Any], msg: Dict[str, Any]
) -> None:
    room_id = _require(msg, "room_id")
    manager.leave_room(conn_id, room_id)
    await manager.broadcast_to_room(
        room_id, "user_left", {"room_id": room_id, "user_id": user["user_id"]}
    )
    await manager.send_to_connection(conn_id, "left_room", {"room_id": room_id})


async def _send_message(
    client: ZeroDBClient, conn_id: str, user: Dict[str, Any], msg: Dict[str, Any]
) -> None:
    room_id = _require(msg, "room_id")
    message = await message_service.create_message(
        client,
        user,
        room_id,
        msg.get("content") or "",
        message_type=msg.get("type", "text"),
        parent_message_id=msg.get("parent_message_id"),
        attachments=msg.get("attachments"),
    )
    delivered = await manager.broadcast_to_room(
        room_id, "receive_message", message, exclude=conn_id
    )
    await manager.send_to_connection(
        conn_id,
        "message_sent",
        {"message_id": message["message_id"], "temp_id": msg.get("temp_id")},
    )
    if delivered:
        await message_service.mark_delivered(client, message)
    await message_service.notify_offline_members(client, message, user)


async def _edit_message(
    client: ZeroDBClient, conn_id: str, user: Dict[str, Any], msg: Dict[str, Any]
) -> None:
    message = await message_service.edit_message(
        client, user, _require(msg, "message_id"), msg.get("content") or ""
    )
    await manager.broadcast_to_room(message["room_id"], "message_edited", message)


async def _delete_message(
    client: ZeroDBClient, conn_id: str, user: Dict[str, Any], msg: Dict[str, Any]
) -> None:
    message = await message_service.delete_message(client, user, _require(msg, "message_id"))
    await manager.broadcast_to_room(
        message["room_id"], "message_deleted", {"message_id": message["message_id"]}
    )


async def _react(
    client: ZeroDBClient, conn_id: str, user: Dict[str, Any], msg: Dict[str, Any]
) -> None:
    result = await message_service.react_to_message(
        client, user, _require(msg, "message_id"), _require(msg, "emoji")
    )
    message = result["message"]
    await manager.broadcast_to_room(
        message["room_id"],
        "message_reaction",
        {
            "message_id": message["message_id"],
            "reactions": message.get("reactions", []),
            "user_id": user["user_id"],
            "added": result["added"],
        },
    )


async def _mark_read(
    client: ZeroDBClient, conn_id: str, user: Dict[str, Any], msg: Dict[str, Any]
) -> None:
    message = await message_service.mark_as_read(client, user, _require(msg, "message_id"))
    await manager.broadcast_to_room(
        message["room_id"],
        "message_read",
        {
            "message_id": message["message_id"],
            "user_id": user["user_id"],
            "read_at": utcnow().isoformat(),
        },
        exclude=conn_id,
    )


def _typing_handler(event: str) -> Handler:
    async def handler(
        client: ZeroDBClient, conn_id: str, user: Dict[str, Any], msg: Dict[str, Any]
    ) -> None:
        room_id = _require(msg, "room_id")
        await manager.broadcast_to_room(
            room_id,
            event,
            {"room_id": room_id, "user_id": user["user_id"], "name": user.get("name")},
            exclude=conn_id,
        )

    return handler


def _entity_update_handler(kind: str) -> Handler:
    """Relay a client-side change to everyone else in ``<kind>_<id>``."""

    async def handler(
        client: ZeroDBClient, conn_id: str, user: Dict[str, Any], msg: Dict[str, Any]
    ) -> None:
        room_id = f"{kind}_{_require(msg, f'{kind}_id')}"
        await check_room_access(client, user, room_id)
        await manager.broadcast_to_room(
            room_id,
            f"{kind}_updated",
            {
                f"{kind}_id": msg[f"{kind}_id"],
                "update": msg.get("update") or {},
                "updated_by": user["user_id"],
            },
            exclude=conn_id,
        )

    return handler


async def _ping(
    client: ZeroDBClient, conn_id: str, user: Dict[str, Any], msg: Dict[str, Any]
) -> None:
    await manager.send_to_connection(conn_id, "pong", {"timestamp": utcnow().isoformat()})


HANDLERS: Dict[str, Handler] = {
    "join_room": _join_room,
    "leave_room": _leave_room,
    "send_message": _send_message,
    "edit_message": _edit_message,
    "delete_message": _delete_message,
    "react": _react,
    "mark_read": _mark_read,
    "typing": _typing_handler("user_typing"),
    "stop_typing": _typing_handler("user_stop_typing"),
    "team_update": _entity_update_handler("team"),
    "project_update": _entity_update_handler("project"),
    "ping": _ping,
}


async def _send_error(conn_id: str, message: str, action: Optional[str] = None) -> None:
    await manager.send_to_connection(conn_id, "error", {"message": message, "action": action})


async def handle_action(
    client: ZeroDBClient, conn_id: str, user: Dict[str, Any], msg: Dict[str, Any]
) -> None:
    """Run one client action, reporting rejected actions back to the sender."""
    action = msg.get("action")
    handler = HANDLERS.get(action)
    if handler is None:
        await _send_error(conn_id, f"Unknown action: {action}", action)
        return

    try:
        await handler(client, conn_id, user, msg)
    except HTTPException as e:
        detail = e.detail if isinstance(e.detail, str) else "Request rejected"
        await _send_error(conn_id, detail, action)
    except DomainError as e:
        await _send_error(conn_id, e.message, action)
    except ZeroDBError as e:
        logger.error(f"Database error handling {action} for socket {conn_id}: {e}")
        await _send_error(conn_id, "Database service unavailable", action)


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
) -> None:
    """Authenticated socket: the JWT is passed as the ``token`` query parameter."""
    try:
        client = build_zerodb_client()
    except ValueError as e:
        logger.error(f"Rejecting socket, database not configured: {e}")
        await websocket.close(code=1011, reason="Database service unavailable")
        return

    if not token:
        await websocket.close(code=AUTH_FAILED_CODE, reason="Authentication required")
        return
    try:
        user = await authenticate_token(client, token)
    except AuthError as e:
        logger.info(
            f"Socket authentication failed: {e.error_code}",
            extra={"event": "auth_failed", "error_code": e.error_code},
        )
        await websocket.close(code=AUTH_FAILED_CODE, reason=e.message)
        return

    conn_id = str(uuid.uuid4())
    await manager.connect(websocket, conn_id, user["user_id"], user.get("name", ""))
    await manager.send_to_connection(
        conn_id, "connected", {"user_id": user["user_id"], "connection_id": conn_id}
    )

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                await _send_error(conn_id, "Invalid JSON")
                continue
            if not isinstance(msg, dict):
                await _send_error(conn_id, "Expected a JSON object")
                continue
            await handle_action(client, conn_id, user, msg)
    except WebSocketDisconnect:
        await manager.disconnect(conn_id)
    except Exception:
        logger.exception(f"Socket error on {conn_id}")
        await manager.disconnect(conn_id)
