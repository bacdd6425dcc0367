"""
Authorization Service

Predicates that gate mutations: account role checks and membership checks
against teams, projects and chat rooms. Every failed check raises a 403
HTTPException with the user-facing reason.
"""

import logging
from typing import Any

from fastapi import HTTPException, status
from integrations.zerodb.client import ZeroDBClient
from models import project as project_rules
from models import team as team_rules
from models.common import DomainError
from models.message import parse_room_id
from services.records import find_one

# Configure logger
logger = logging.getLogger(__name__)


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def is_admin(user: dict[str, Any]) -> bool:
    return user.get("role") == "admin"


def is_judge(user: dict[str, Any]) -> bool:
    """Judges and admins may evaluate submissions."""
    return user.get("role") in ("judge", "admin")


def check_admin(user: dict[str, Any]) -> bool:
    """
    Require the admin role.

    Raises:
        HTTPException: 403 if the account is not an admin
    """
    if not is_admin(user):
        logger.warning(f"Authorization failed: user {user.get('user_id')} is not an admin")
        raise _forbidden("Not authorized as an admin")
    return True


def check_judge(user: dict[str, Any]) -> bool:
    """
    Require the judge role (admins pass as well).

    Raises:
        HTTPException: 403 if the account is neither judge nor admin
    """
    if not is_judge(user):
        logger.warning(f"Authorization failed: user {user.get('user_id')} is not a judge")
        raise _forbidden("Not authorized as a judge")
    return True


def check_team_member(team: dict[str, Any], user_id: str, detail: str) -> bool:
    if not team_rules.is_member(team, user_id):
        raise _forbidden(detail)
    return True


def check_team_leader(team: dict[str, Any], user_id: str, detail: str) -> bool:
    if not team_rules.is_leader(team, user_id):
        logger.warning(
            f"Authorization failed: user {user_id} is not a leader of team {team.get('team_id')}"
        )
        raise _forbidden(detail)
    return True


def check_project_member(project: dict[str, Any], user_id: str, detail: str) -> bool:
    if not project_rules.is_team_member(project, user_id):
        raise _forbidden(detail)
    return True


def check_project_lead(project: dict[str, Any], user_id: str, detail: str) -> bool:
    if not project_rules.is_team_lead(project, user_id):
        raise _forbidden(detail)
    return True


async def check_room_access(
    zerodb_client: ZeroDBClient,
    user: dict[str, Any],
    room_id: str,
) -> bool:
    """
    Check that an account may join or read a chat room.

    - ``team_<id>``: accepted team members
    - ``project_<id>``: project team members
    - ``direct_<a>_<b>``: the two participants
    - ``group_<id>``: any authenticated account
    Admins may join any room.

    Raises:
        HTTPException: 400 for a malformed room id, 403 if access is denied
    """
    try:
        room_type, entity_id = parse_room_id(room_id)
    except DomainError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    if is_admin(user):
        return True

    user_id = user["user_id"]
    if room_type == "team":
        team = await find_one(zerodb_client, "teams", {"team_id": entity_id})
        allowed = team is not None and team_rules.is_member(team, user_id)
    elif room_type == "project":
        project = await find_one(zerodb_client, "projects", {"project_id": entity_id})
        allowed = project is not None and project_rules.is_team_member(project, user_id)
    elif room_type == "direct":
        allowed = user_id in entity_id.split("_")
    else:
        allowed = True

    if not allowed:
        logger.warning(f"Authorization failed: user {user_id} denied access to room {room_id}")
        raise _forbidden("Not authorized to access this room")
    return True
