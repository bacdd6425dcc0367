"""
Team Management API Routes

Provides REST endpoints for team CRUD, invitations, join requests and
roster management. Reads of public teams are open; every mutation
requires authentication.
"""

import logging
from typing import Any, Dict, List, Optional

from api.dependencies import get_current_user, get_current_user_optional, get_zerodb_client
from api.responses import success_response
from api.schemas.common import SuccessResponse, error_responses
from api.schemas.teams import (
    InvitationResponseRequest,
    JoinRequest,
    JoinRequestReview,
    TeamCreateRequest,
    TeamInviteRequest,
    TeamUpdateRequest,
)
from fastapi import APIRouter, Depends, Query, status
from integrations.zerodb.client import ZeroDBClient
from services import team_service

# Configure logger
logger = logging.getLogger(__name__)

# Initialize router
router = APIRouter(prefix="/api/teams", tags=["Teams"])


@router.get(
    "",
    response_model=SuccessResponse,
    summary="List Teams",
    description="""
    List public teams with optional filtering.

    - `looking_for_members` filters on the derived recruiting flag
    - `skills` matches the skills a team is looking for
    """,
)
async def list_teams_endpoint(
    hackathon_id: Optional[str] = Query(None, description="Hackathon UUID"),
    looking_for_members: Optional[bool] = Query(None),
    skills: Optional[List[str]] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await team_service.list_teams(
        zerodb_client,
        hackathon_id=hackathon_id,
        looking_for_members=looking_for_members,
        skills=skills,
        search=search,
        page=page,
        limit=limit,
    )
    return success_response(result)


@router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(400, 401, 404),
    summary="Create Team",
    description="""
    Create a team for a hackathon.

    - The creator becomes the accepted Team Leader
    - Team starts in forming status
    """,
)
async def create_team_endpoint(
    request: TeamCreateRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    logger.info(
        f"Creating team '{request.name}' for hackathon {request.hackathon_id}",
        extra={"user_id": current_user["user_id"], "hackathon_id": request.hackathon_id},
    )
    team = await team_service.create_team(zerodb_client, current_user, request.model_dump())
    return success_response(team)


@router.get(
    "/recommendations",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="Recommended Teams",
    description="Recruiting teams ranked by overlap between their wanted skills and yours.",
)
async def get_recommended_teams_endpoint(
    hackathon_id: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=50),
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    teams = await team_service.get_recommended_teams(
        zerodb_client, current_user, hackathon_id=hackathon_id, limit=limit
    )
    return success_response({"teams": teams})


@router.get(
    "/invitations",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="My Invitations",
)
async def get_my_invitations_endpoint(
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    invitations = await team_service.get_user_invitations(zerodb_client, current_user["user_id"])
    return success_response({"invitations": invitations})


@router.get(
    "/{team_id}",
    response_model=SuccessResponse,
    responses=error_responses(403, 404),
    summary="Get Team",
)
async def get_team_endpoint(
    team_id: str,
    current_user: Optional[Dict[str, Any]] = Depends(get_current_user_optional),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(await team_service.get_team(zerodb_client, team_id, current_user))


@router.put(
    "/{team_id}",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Update Team",
    description="**Authorization:** team leaders",
)
async def update_team_endpoint(
    team_id: str,
    request: TeamUpdateRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    team = await team_service.update_team(
        zerodb_client, team_id, current_user, request.model_dump(exclude_unset=True)
    )
    return success_response(team)


@router.delete(
    "/{team_id}",
    response_model=SuccessResponse,
    responses=error_responses(401, 403, 404),
    summary="Disband Team",
    description="**Authorization:** team leaders or admin",
)
async def disband_team_endpoint(
    team_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    await team_service.disband_team(zerodb_client, team_id, current_user)
    return success_response(message="Team disbanded successfully")


@router.post(
    "/{team_id}/invite",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Invite Member",
    description="**Authorization:** accepted team members",
)
async def invite_member_endpoint(
    team_id: str,
    request: TeamInviteRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    slot = await team_service.invite_member(
        zerodb_client,
        team_id,
        current_user,
        user_id=request.user_id,
        email=request.email,
        role=request.role,
    )
    return success_response(slot, message="Invitation sent successfully")


@router.post(
    "/{team_id}/respond",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 404),
    summary="Respond To Invitation",
)
async def respond_to_invitation_endpoint(
    team_id: str,
    request: InvitationResponseRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    team = await team_service.respond_to_invitation(
        zerodb_client, team_id, current_user, request.accept
    )
    message = "Invitation accepted" if request.accept else "Invitation declined"
    return success_response(team, message=message)


@router.post(
    "/{team_id}/join",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 404),
    summary="Request To Join",
)
async def request_to_join_endpoint(
    team_id: str,
    request: JoinRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    slot = await team_service.request_to_join(
        zerodb_client, team_id, current_user, message=request.message
    )
    return success_response(slot, message="Join request sent")


@router.post(
    "/{team_id}/requests/{user_id}",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Review Join Request",
    description="**Authorization:** team leaders",
)
async def review_join_request_endpoint(
    team_id: str,
    user_id: str,
    request: JoinRequestReview,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    team = await team_service.review_join_request(
        zerodb_client, team_id, current_user, user_id, request.approve
    )
    return success_response(team)


@router.delete(
    "/{team_id}/members/{user_id}",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Remove Member",
    description="**Authorization:** team leaders. The last leader cannot be removed.",
)
async def remove_member_endpoint(
    team_id: str,
    user_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    team = await team_service.remove_member(zerodb_client, team_id, current_user, user_id)
    return success_response(team, message="Member removed successfully")


@router.post(
    "/{team_id}/leave",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 404),
    summary="Leave Team",
)
async def leave_team_endpoint(
    team_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    await team_service.leave_team(zerodb_client, team_id, current_user)
    return success_response(message="Left team successfully")


@router.post(
    "/{team_id}/leaders/{user_id}",
    response_model=SuccessResponse,
    responses=error_responses(401, 403, 404),
    summary="Promote Leader",
    description="**Authorization:** team leaders",
)
async def promote_leader_endpoint(
    team_id: str,
    user_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    team = await team_service.promote_leader(zerodb_client, team_id, current_user, user_id)
    return success_response(team)
