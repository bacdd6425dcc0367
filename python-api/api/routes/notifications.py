"""
Notification API Routes

Every endpoint is scoped to the authenticated account. Notifications
belonging to someone else are reported as not found.
"""

from typing import Any, Dict, Optional

from api.dependencies import get_current_user, get_zerodb_client
from api.responses import success_response
from api.schemas.common import SuccessResponse, error_responses
from api.schemas.notifications import NotificationPreferencesRequest
from fastapi import APIRouter, Depends, Query
from integrations.zerodb.client import ZeroDBClient
from services import notification_service

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get(
    "",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="List Notifications",
    description="Newest first. Expired notifications are never returned.",
)
async def list_notifications_endpoint(
    is_read: Optional[bool] = Query(None),
    type: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    include_archived: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await notification_service.list_notifications(
        zerodb_client,
        current_user["user_id"],
        is_read=is_read,
        type=type,
        priority=priority,
        include_archived=include_archived,
        page=page,
        limit=limit,
    )
    return success_response(result)


@router.get(
    "/stats",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="Notification Stats",
)
async def get_notification_stats_endpoint(
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await notification_service.get_notification_stats(zerodb_client, current_user["user_id"])
    )


@router.get(
    "/preferences",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="Get Notification Preferences",
)
async def get_preferences_endpoint(
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await notification_service.get_preferences(zerodb_client, current_user["user_id"])
    )


@router.put(
    "/preferences",
    response_model=SuccessResponse,
    responses=error_responses(400, 401),
    summary="Update Notification Preferences",
    description="Only the supplied fields change.",
)
async def update_preferences_endpoint(
    request: NotificationPreferencesRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    preferences = await notification_service.update_preferences(
        zerodb_client, current_user["user_id"], request.model_dump(exclude_none=True)
    )
    return success_response(preferences)


@router.put(
    "/read-all",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="Mark All As Read",
)
async def mark_all_as_read_endpoint(
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    count = await notification_service.mark_all_as_read(zerodb_client, current_user["user_id"])
    return success_response({"updated": count}, message=f"{count} notifications marked as read")


@router.delete(
    "/read",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="Delete Read Notifications",
)
async def delete_read_notifications_endpoint(
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    count = await notification_service.delete_read_notifications(
        zerodb_client, current_user["user_id"]
    )
    return success_response({"deleted": count}, message=f"{count} notifications deleted")


@router.get(
    "/{notification_id}",
    response_model=SuccessResponse,
    responses=error_responses(401, 404),
    summary="Get Notification",
    description="Opening a notification marks it read.",
)
async def get_notification_endpoint(
    notification_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await notification_service.get_notification(
            zerodb_client, current_user["user_id"], notification_id
        )
    )


@router.put(
    "/{notification_id}/read",
    response_model=SuccessResponse,
    responses=error_responses(401, 404),
    summary="Mark As Read",
)
async def mark_as_read_endpoint(
    notification_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await notification_service.mark_as_read(
            zerodb_client, current_user["user_id"], notification_id
        )
    )


@router.put(
    "/{notification_id}/archive",
    response_model=SuccessResponse,
    responses=error_responses(401, 404),
    summary="Archive Notification",
)
async def archive_notification_endpoint(
    notification_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await notification_service.archive_notification(
            zerodb_client, current_user["user_id"], notification_id
        )
    )


@router.delete(
    "/{notification_id}",
    response_model=SuccessResponse,
    responses=error_responses(401, 404),
    summary="Delete Notification",
)
async def delete_notification_endpoint(
    notification_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    await notification_service.delete_notification(
        zerodb_client, current_user["user_id"], notification_id
    )
    return success_response(message="Notification deleted")
