"""
Hackathon API Routes

Public listing and detail endpoints, admin-only create/update, and the
event-level views: projects, teams, leaderboard, timeline and resources.
"""

from typing import Any, Dict, Optional

from api.dependencies import (
    get_current_user,
    get_current_user_optional,
    get_zerodb_client,
    require_admin,
)
from api.responses import success_response
from api.schemas.common import SuccessResponse, error_responses
from api.schemas.hackathons import HackathonCreateRequest, HackathonUpdateRequest
from fastapi import APIRouter, Depends, Query, status
from integrations.zerodb.client import ZeroDBClient
from services import hackathon_service

# Initialize router
router = APIRouter(prefix="/api/hackathons", tags=["Hackathons"])


@router.get(
    "",
    response_model=SuccessResponse,
    summary="List Hackathons",
    description="""
    List public hackathons, soonest first.

    - `status` filters on the schedule-derived status (upcoming,
      registration_open, in_progress, judging, completed, cancelled)
    - `search` matches name, tagline and description
    """,
)
async def list_hackathons_endpoint(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await hackathon_service.list_hackathons(
        zerodb_client, status=status_filter, search=search, page=page, limit=limit
    )
    return success_response(result)


@router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(400, 401, 403),
    summary="Create Hackathon",
    description="**Authorization:** admin only",
)
async def create_hackathon_endpoint(
    request: HackathonCreateRequest,
    current_user: Dict[str, Any] = Depends(require_admin),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    hackathon = await hackathon_service.create_hackathon(
        zerodb_client, current_user["user_id"], request.model_dump()
    )
    return success_response(hackathon)


@router.get(
    "/{hackathon_id}",
    response_model=SuccessResponse,
    responses=error_responses(404),
    summary="Get Hackathon",
)
async def get_hackathon_endpoint(
    hackathon_id: str,
    current_user: Optional[Dict[str, Any]] = Depends(get_current_user_optional),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await hackathon_service.get_hackathon(zerodb_client, hackathon_id, current_user)
    return success_response(result)


@router.put(
    "/{hackathon_id}",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Update Hackathon",
    description="**Authorization:** admin only",
)
async def update_hackathon_endpoint(
    hackathon_id: str,
    request: HackathonUpdateRequest,
    current_user: Dict[str, Any] = Depends(require_admin),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    hackathon = await hackathon_service.update_hackathon(
        zerodb_client, hackathon_id, request.changes()
    )
    return success_response(hackathon)


@router.get(
    "/{hackathon_id}/projects",
    response_model=SuccessResponse,
    responses=error_responses(404),
    summary="Hackathon Projects",
)
async def get_hackathon_projects_endpoint(
    hackathon_id: str,
    status_filter: Optional[str] = Query(None, alias="status"),
    sort: str = Query("-created_at"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await hackathon_service.get_hackathon_projects(
        zerodb_client, hackathon_id, status=status_filter, sort=sort, page=page, limit=limit
    )
    return success_response(result)


@router.get(
    "/{hackathon_id}/teams",
    response_model=SuccessResponse,
    responses=error_responses(404),
    summary="Hackathon Teams",
)
async def get_hackathon_teams_endpoint(
    hackathon_id: str,
    looking_for_members: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await hackathon_service.get_hackathon_teams(
        zerodb_client,
        hackathon_id,
        looking_for_members=looking_for_members,
        page=page,
        limit=limit,
    )
    return success_response(result)


@router.get(
    "/{hackathon_id}/leaderboard",
    response_model=SuccessResponse,
    responses=error_responses(404),
    summary="Hackathon Leaderboard",
    description="Public scored projects ranked by average score.",
)
async def get_hackathon_leaderboard_endpoint(
    hackathon_id: str,
    limit: int = Query(20, ge=1, le=100),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await hackathon_service.get_hackathon_leaderboard(zerodb_client, hackathon_id, limit)
    return success_response(result)


@router.post(
    "/{hackathon_id}/register",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 404),
    summary="Register For Hackathon",
    description="""
    Check that the caller can take part: registration must be open, the
    participant limit not reached, and the caller not already on a team for
    this hackathon. Returns the next steps.
    """,
)
async def register_for_hackathon_endpoint(
    hackathon_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await hackathon_service.register_for_hackathon(
        zerodb_client, hackathon_id, current_user["user_id"]
    )
    return success_response(result, message="Successfully registered for hackathon")


@router.get(
    "/{hackathon_id}/timeline",
    response_model=SuccessResponse,
    responses=error_responses(404),
    summary="Hackathon Timeline",
)
async def get_hackathon_timeline_endpoint(
    hackathon_id: str,
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await hackathon_service.get_hackathon_timeline(zerodb_client, hackathon_id)
    )


@router.get(
    "/{hackathon_id}/resources",
    response_model=SuccessResponse,
    responses=error_responses(404),
    summary="Hackathon Resources",
)
async def get_hackathon_resources_endpoint(
    hackathon_id: str,
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await hackathon_service.get_hackathon_resources(zerodb_client, hackathon_id)
    )
