"""
User Directory API Routes

Public profiles, user search and per-user project and team listings.
"""

from typing import Any, Dict, List, Optional

from api.dependencies import get_current_user, get_zerodb_client
from api.responses import success_response
from api.schemas.common import SuccessResponse, error_responses
from fastapi import APIRouter, Depends, Query
from integrations.zerodb.client import ZeroDBClient
from services import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get(
    "",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="List Users",
)
async def list_users_endpoint(
    search: Optional[str] = Query(None, description="Match name, email or bio"),
    skills: Optional[List[str]] = Query(None, description="Any of these skills"),
    role: Optional[str] = Query(None),
    experience_level: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await user_service.list_users(
        zerodb_client,
        search=search,
        skills=skills,
        role=role,
        experience_level=experience_level,
        page=page,
        limit=limit,
    )
    return success_response(result)


@router.get(
    "/search/skills",
    response_model=SuccessResponse,
    responses=error_responses(400, 401),
    summary="Search Users By Skills",
)
async def search_by_skills_endpoint(
    skills: List[str] = Query(..., description="Skills to match"),
    match_all: bool = Query(False, description="Require every skill"),
    limit: int = Query(20, ge=1, le=100),
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await user_service.search_users_by_skills(
        zerodb_client, skills, match_all=match_all, limit=limit
    )
    return success_response(result)


@router.get(
    "/{user_id}",
    response_model=SuccessResponse,
    responses=error_responses(404),
    summary="User Profile",
)
async def get_user_profile_endpoint(
    user_id: str,
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(await user_service.get_user_profile(zerodb_client, user_id))


@router.get(
    "/{user_id}/projects",
    response_model=SuccessResponse,
    responses=error_responses(404),
    summary="User Projects",
)
async def get_user_projects_endpoint(
    user_id: str,
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await user_service.get_user_projects(
        zerodb_client, user_id, status=status, page=page, limit=limit
    )
    return success_response(result)


@router.get(
    "/{user_id}/teams",
    response_model=SuccessResponse,
    responses=error_responses(401, 404),
    summary="User Teams",
)
async def get_user_teams_endpoint(
    user_id: str,
    status: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(await user_service.get_user_teams(zerodb_client, user_id, status))
