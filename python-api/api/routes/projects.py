"""
Project API Routes

Project CRUD, team roster, likes, submission and analytics.
"""

from typing import Any, Dict, Optional

from api.dependencies import get_current_user, get_current_user_optional, get_zerodb_client
from api.responses import success_response
from api.schemas.common import SuccessResponse, error_responses
from api.schemas.projects import (
    ProjectCreateRequest,
    ProjectMemberAddRequest,
    ProjectUpdateRequest,
)
from fastapi import APIRouter, Depends, Query, status
from integrations.zerodb.client import ZeroDBClient
from services import project_service

router = APIRouter(prefix="/api/projects", tags=["Projects"])


@router.get(
    "",
    response_model=SuccessResponse,
    summary="List Projects",
    description="Public projects. `sort` is one of newest, oldest, score, views, title.",
)
async def list_projects_endpoint(
    hackathon_id: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    tech: Optional[str] = Query(None, description="Technology in the tech stack"),
    search: Optional[str] = Query(None),
    sort: str = Query("newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await project_service.list_projects(
        zerodb_client,
        hackathon_id=hackathon_id,
        status=status_filter,
        category=category,
        tech=tech,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )
    return success_response(result)


@router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(400, 401, 404),
    summary="Create Project",
)
async def create_project_endpoint(
    request: ProjectCreateRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    project = await project_service.create_project(
        zerodb_client, current_user, request.model_dump()
    )
    return success_response(project)


@router.get(
    "/{project_id}",
    response_model=SuccessResponse,
    responses=error_responses(403, 404),
    summary="Get Project",
)
async def get_project_endpoint(
    project_id: str,
    current_user: Optional[Dict[str, Any]] = Depends(get_current_user_optional),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await project_service.get_project(zerodb_client, project_id, current_user)
    )


@router.put(
    "/{project_id}",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Update Project",
    description="**Authorization:** project team members",
)
async def update_project_endpoint(
    project_id: str,
    request: ProjectUpdateRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    project = await project_service.update_project(
        zerodb_client, project_id, current_user, request.model_dump(exclude_unset=True)
    )
    return success_response(project)


@router.delete(
    "/{project_id}",
    response_model=SuccessResponse,
    responses=error_responses(401, 403, 404),
    summary="Delete Project",
    description="**Authorization:** team lead or admin",
)
async def delete_project_endpoint(
    project_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    await project_service.delete_project(zerodb_client, project_id, current_user)
    return success_response(message="Project deleted successfully")


@router.post(
    "/{project_id}/team",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Add Project Member",
    description="**Authorization:** team lead",
)
async def add_project_member_endpoint(
    project_id: str,
    request: ProjectMemberAddRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    project = await project_service.add_project_member(
        zerodb_client,
        project_id,
        current_user,
        request.user_id,
        role=request.role,
        contribution=request.contribution,
    )
    return success_response(project)


@router.delete(
    "/{project_id}/team/{user_id}",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Remove Project Member",
    description="**Authorization:** team lead. The lead cannot be removed.",
)
async def remove_project_member_endpoint(
    project_id: str,
    user_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    project = await project_service.remove_project_member(
        zerodb_client, project_id, current_user, user_id
    )
    return success_response(project)


@router.post(
    "/{project_id}/like",
    response_model=SuccessResponse,
    responses=error_responses(401, 404),
    summary="Like Project",
    description="Toggle the caller's like.",
)
async def like_project_endpoint(
    project_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await project_service.like_project(zerodb_client, project_id, current_user["user_id"])
    )


@router.post(
    "/{project_id}/submit",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Submit Project",
    description="Requires a repository URL, a demo video and at least one screenshot.",
)
async def submit_project_endpoint(
    project_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    project = await project_service.submit_project(zerodb_client, project_id, current_user)
    return success_response(project, message="Project submitted successfully")


@router.get(
    "/{project_id}/analytics",
    response_model=SuccessResponse,
    responses=error_responses(401, 403, 404),
    summary="Project Analytics",
)
async def get_project_analytics_endpoint(
    project_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await project_service.get_project_analytics(zerodb_client, project_id, current_user)
    )
