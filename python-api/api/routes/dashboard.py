"""
Dashboard API Routes

Per-account aggregates for the participant dashboard.
"""

from typing import Any, Dict

from api.dependencies import get_current_user, get_zerodb_client
from api.responses import success_response
from api.schemas.common import SuccessResponse, error_responses
from fastapi import APIRouter, Depends, Query
from integrations.zerodb.client import ZeroDBClient
from services import dashboard_service

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get(
    "/overview",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="Dashboard Overview",
    description="""
    Counts, recent projects, upcoming deadlines for the next 7 days,
    active hackathons and unread notifications.
    """,
)
async def get_overview_endpoint(
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(await dashboard_service.get_overview(zerodb_client, current_user))


@router.get(
    "/activity",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="Activity Feed",
)
async def get_activity_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await dashboard_service.get_activity(
        zerodb_client, current_user["user_id"], page=page, limit=limit
    )
    return success_response(result)


@router.get(
    "/checklist/{project_id}",
    response_model=SuccessResponse,
    responses=error_responses(401, 403, 404),
    summary="Submission Checklist",
    description="Completion percentage for a project. Submission is allowed at 90% or above.",
)
async def get_checklist_endpoint(
    project_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await dashboard_service.get_checklist(zerodb_client, current_user, project_id)
    )


@router.get(
    "/timeline",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="Personal Timeline",
)
async def get_timeline_endpoint(
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await dashboard_service.get_timeline(zerodb_client, current_user["user_id"])
    )


@router.get(
    "/quick-stats",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="Quick Stats",
)
async def get_quick_stats_endpoint(
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(await dashboard_service.get_quick_stats(zerodb_client, current_user))
