"""
Chat Message API Routes

REST access to room history. Live delivery happens over the websocket;
messages posted here are persisted and broadcast to the room as well.
"""

from typing import Any, Dict, Optional

from api.dependencies import get_current_user, get_zerodb_client
from api.responses import success_response
from api.schemas.common import SuccessResponse, error_responses
from api.schemas.messages import MessageCreateRequest, MessageEditRequest, ReactionRequest
from fastapi import APIRouter, Depends, Query, status
from integrations.zerodb.client import ZeroDBClient
from realtime.manager import manager
from services import message_service

router = APIRouter(prefix="/api/messages", tags=["Messages"])


@router.get(
    "/{room_id}",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403),
    summary="Room History",
    description="""
    Messages in a room, oldest first.

    - Room ids look like `team_<team_id>`, `project_<project_id>` or `direct_<a>_<b>`
    - Pass `before` (ISO timestamp) to page backwards
    - Pass `parent_message_id` to read a thread
    """,
)
async def get_room_messages_endpoint(
    room_id: str,
    before: Optional[str] = Query(None),
    parent_message_id: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await message_service.get_room_messages(
        zerodb_client,
        current_user,
        room_id,
        before=before,
        parent_message_id=parent_message_id,
        limit=limit,
    )
    return success_response(result)


@router.post(
    "/{room_id}",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(400, 401, 403, 404),
    summary="Post Message",
)
async def create_message_endpoint(
    room_id: str,
    request: MessageCreateRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    message = await message_service.create_message(
        zerodb_client,
        current_user,
        room_id,
        request.content,
        message_type=request.type,
        parent_message_id=request.parent_message_id,
        attachments=request.attachments,
    )
    await manager.broadcast_to_room(room_id, "receive_message", message)
    await message_service.notify_offline_members(zerodb_client, message, current_user)
    return success_response(message)


@router.get(
    "/{room_id}/pinned",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403),
    summary="Pinned Messages",
)
async def get_pinned_messages_endpoint(
    room_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    messages = await message_service.get_pinned_messages(zerodb_client, current_user, room_id)
    return success_response({"messages": messages})


@router.put(
    "/message/{message_id}",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Edit Message",
    description="Only the sender can edit, and only while the message is not deleted.",
)
async def edit_message_endpoint(
    message_id: str,
    request: MessageEditRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    message = await message_service.edit_message(
        zerodb_client, current_user, message_id, request.content
    )
    await manager.broadcast_to_room(message["room_id"], "message_edited", message)
    return success_response(message)


@router.delete(
    "/message/{message_id}",
    response_model=SuccessResponse,
    responses=error_responses(401, 403, 404),
    summary="Delete Message",
)
async def delete_message_endpoint(
    message_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    message = await message_service.delete_message(zerodb_client, current_user, message_id)
    await manager.broadcast_to_room(
        message["room_id"], "message_deleted", {"message_id": message_id}
    )
    return success_response(message, message="Message deleted")


@router.post(
    "/message/{message_id}/reactions",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Toggle Reaction",
)
async def react_to_message_endpoint(
    message_id: str,
    request: ReactionRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await message_service.react_to_message(
        zerodb_client, current_user, message_id, request.emoji
    )
    message = result["message"]
    await manager.broadcast_to_room(
        message["room_id"],
        "message_reaction",
        {"message_id": message_id, "reactions": message.get("reactions", [])},
    )
    return success_response(result)


@router.put(
    "/message/{message_id}/read",
    response_model=SuccessResponse,
    responses=error_responses(401, 404),
    summary="Mark Message Read",
)
async def mark_message_read_endpoint(
    message_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await message_service.mark_as_read(zerodb_client, current_user, message_id)
    )


@router.put(
    "/message/{message_id}/pin",
    response_model=SuccessResponse,
    responses=error_responses(401, 403, 404),
    summary="Pin Message",
)
async def pin_message_endpoint(
    message_id: str,
    pinned: bool = Query(True),
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await message_service.pin_message(zerodb_client, current_user, message_id, pinned)
    )
