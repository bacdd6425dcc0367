"""
Team Management Service

Team CRUD and roster management for hackathons. The roster is embedded in
the team row as ``members`` slots; the transitions themselves live in
``models.team`` and this module loads, authorizes, persists and notifies.

Derived fields (member_count, available_slots, is_full,
is_looking_for_members) are attached on every read and never written.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from fastapi import status as http_status
from integrations.zerodb.client import ZeroDBClient
from models import hackathon as schedule
from models import team as team_rules
from models.common import new_id, unique_slug, utcnow
from models.notification import (
    TeamChangeMetadata,
    TeamInviteMetadata,
    TeamJoinRequestMetadata,
    TeamResponseMetadata,
)
from services.authorization import check_team_leader, is_admin
from services.notification_service import create_notification, notify_many
from services.records import find_all, find_one, get_or_404, not_found, paginate, sort_rows

# Configure logger
logger = logging.getLogger(__name__)

TABLE = "teams"

EDITABLE_FIELDS = (
    "name",
    "description",
    "max_members",
    "looking_for",
    "required_skills",
    "commitment_level",
    "availability",
    "category",
    "is_public",
    "is_open_to_members",
    "project_id",
)


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=detail)


async def get_team_record(zerodb_client: ZeroDBClient, team_id: str) -> Dict[str, Any]:
    team = await get_or_404(zerodb_client, TABLE, "team_id", team_id, "Team")
    if team.get("status") == "disbanded":
        raise not_found("Team")
    return team


async def _save_roster(zerodb_client: ZeroDBClient, team: Dict[str, Any]) -> None:
    team["updated_at"] = utcnow().isoformat()
    await zerodb_client.tables.update_row(
        TABLE,
        team["team_id"],
        data={
            "members": team["members"],
            "total_invites_sent": team.get("total_invites_sent", 0),
            "updated_at": team["updated_at"],
        },
    )


async def _display_name(zerodb_client: ZeroDBClient, user_id: str) -> str:
    user = await find_one(zerodb_client, "users", {"user_id": user_id})
    return user.get("name", "Someone") if user else "Someone"


async def _in_hackathon_team(
    zerodb_client: ZeroDBClient, hackathon_id: str, user_id: str, exclude_team: Optional[str] = None
) -> bool:
    teams = await find_all(
        zerodb_client,
        TABLE,
        {"hackathon_id": hackathon_id, "members.user_id": user_id, "status": {"$ne": "disbanded"}},
    )
    return any(
        team_rules.is_member(t, user_id) for t in teams if t["team_id"] != exclude_team
    )


def _team_link(team: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "team_id": team["team_id"],
        "hackathon_id": team.get("hackathon_id"),
        "action_link": f"/teams/{team['team_id']}",
        "action_text": "View team",
    }


async def list_teams(
    zerodb_client: ZeroDBClient,
    hackathon_id: Optional[str] = None,
    looking_for_members: Optional[bool] = None,
    skills: Optional[List[str]] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 12,
) -> Dict[str, Any]:
    """
    List public teams that have not been disbanded.

    Args:
        hackathon_id: Restrict to one hackathon
        looking_for_members: Filter on the derived recruiting flag
        skills: Teams looking for any of these skills
        search: Case-insensitive match on name or description

    Returns:
        Dict with ``teams`` and ``pagination``
    """
    filter: Dict[str, Any] = {"is_public": True, "status": {"$ne": "disbanded"}}
    if hackathon_id:
        filter["hackathon_id"] = hackathon_id
    if skills:
        filter["looking_for"] = {"$in": skills}
    if search:
        pattern = re.escape(search)
        filter["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]

    rows = await find_all(zerodb_client, TABLE, filter)
    teams = [team_rules.with_derived_fields(t) for t in rows]
    if looking_for_members is not None:
        teams = [t for t in teams if t["is_looking_for_members"] == looking_for_members]

    items, pagination = paginate(sort_rows(teams, "-created_at"), page, limit)
    return {"teams": items, "pagination": pagination}


async def get_team(
    zerodb_client: ZeroDBClient, team_id: str, user: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    team = await get_team_record(zerodb_client, team_id)
    user_id = (user or {}).get("user_id")
    if (
        not team.get("is_public", True)
        and not (user_id and team_rules.find_member(team, user_id))
        and not (user and is_admin(user))
    ):
        raise HTTPException(
            status_code=http_status.HTTP_403_FORBIDDEN,
            detail="Not authorized to view this team",
        )
    return team_rules.with_derived_fields(team)


async def create_team(
    zerodb_client: ZeroDBClient,
    user: Dict[str, Any],
    data: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Create a team for a hackathon with the caller as its leader.

    The creator's slot is accepted immediately. A hackathon's own
    ``max_team_size`` caps ``max_members`` when set.

    Raises:
        HTTPException: 404 unknown hackathon; 400 if registration is closed,
            the caller already has a team there, or the size is out of range
    """
    hackathon = await get_or_404(
        zerodb_client, "hackathons", "hackathon_id", data["hackathon_id"], "Hackathon"
    )
    if not schedule.is_registration_open(hackathon) and not schedule.is_active(hackathon):
        raise _bad_request("Team registration is closed for this hackathon")

    if await _in_hackathon_team(zerodb_client, hackathon["hackathon_id"], user["user_id"]):
        raise _bad_request("You are already in a team for this hackathon")

    max_members = int(data.get("max_members") or team_rules.DEFAULT_MAX_MEMBERS)
    upper = int(hackathon.get("max_team_size") or team_rules.MAX_TEAM_SIZE)
    if not team_rules.MIN_TEAM_SIZE <= max_members <= upper:
        raise _bad_request(f"Team size must be between {team_rules.MIN_TEAM_SIZE} and {upper}")

    now = utcnow()
    team_id = new_id()
    team = {
        "team_id": team_id,
        "slug": unique_slug(data["name"]),
        "description": None,
        "looking_for": [],
        "required_skills": [],
        "commitment_level": "moderate",
        "availability": None,
        "category": None,
        "is_public": True,
        "is_open_to_members": True,
        "project_id": None,
        **{k: v for k, v in data.items() if k in EDITABLE_FIELDS or k == "hackathon_id"},
        "max_members": max_members,
        "status": "forming",
        "chat_room_id": team_rules.chat_room_id(team_id),
        "total_invites_sent": 0,
        "created_by": user["user_id"],
        "created_at": now.isoformat(),
        "updated_at": now.isoformat(),
        "members": [
            team_rules.new_member_slot(
                user["user_id"],
                team_rules.LEADER_ROLE,
                is_leader=True,
                invitation_status="accepted",
                now=now,
            )
        ],
    }

    await zerodb_client.tables.insert_rows(TABLE, rows=[team])
    logger.info(f"Created team {team_id} for hackathon {team['hackathon_id']}")
    return team_rules.with_derived_fields(team)


async def update_team(
    zerodb_client: ZeroDBClient,
    team_id: str,
    user: Dict[str, Any],
    updates: Dict[str, Any],
) -> Dict[str, Any]:
    team = await get_team_record(zerodb_client, team_id)
    check_team_leader(team, user["user_id"], "Only team leaders can update the team")

    changes = {k: v for k, v in updates.items() if k in EDITABLE_FIELDS}
    if "max_members" in changes:
        size = int(changes["max_members"])
        if not team_rules.MIN_TEAM_SIZE <= size <= team_rules.MAX_TEAM_SIZE:
            raise _bad_request(
                f"Team size must be between {team_rules.MIN_TEAM_SIZE} "
                f"and {team_rules.MAX_TEAM_SIZE}"
            )
        if size < team_rules.member_count(team):
            raise _bad_request("Team size cannot be smaller than the current member count")
    if "status" in updates:
        if updates["status"] not in team_rules.ACTIVE_TEAM_STATUSES + ("completed",):
            raise _bad_request("Invalid team status")
        changes["status"] = updates["status"]

    changes["updated_at"] = utcnow().isoformat()
    await zerodb_client.tables.update_row(TABLE, team_id, data=changes)
    team.update(changes)
    logger.info(f"Updated team {team_id}: {sorted(changes)}")

    fields = sorted(k for k in changes if k != "updated_at")
    await notify_many(
        zerodb_client,
        [m["user_id"] for m in team_rules.accepted_members(team)],
        "announcement",
        f"Team {team['name']} was updated",
        f"Updated: {', '.join(fields)}",
        TeamChangeMetadata(team_name=team["name"], change="updated", updated_fields=fields),
        exclude=[user["user_id"]],
        priority="low",
        sender_id=user["user_id"],
        **_team_link(team),
    )
    return team_rules.with_derived_fields(team)


async def disband_team(zerodb_client: ZeroDBClient, team_id: str, user: Dict[str, Any]) -> None:
    """Soft-delete a team (leader or admin) and tell its members."""
    team = await get_team_record(zerodb_client, team_id)
    if not is_admin(user):
        check_team_leader(team, user["user_id"], "Only team leaders can disband the team")

    await zerodb_client.tables.update_row(
        TABLE,
        team_id,
        data={
            "status": "disbanded",
            "is_open_to_members": False,
            "updated_at": utcnow().isoformat(),
        },
    )
    logger.info(f"Team {team_id} disbanded by user {user['user_id']}")

    await notify_many(
        zerodb_client,
        [m["user_id"] for m in team["members"]],
        "announcement",
        f"Team {team['name']} was disbanded",
        "The team leader has disbanded this team.",
        TeamChangeMetadata(team_name=team["name"], change="disbanded"),
        exclude=[user["user_id"]],
        priority="high",
        sender_id=user["user_id"],
        team_id=team_id,
        hackathon_id=team.get("hackathon_id"),
    )


async def invite_member(
    zerodb_client: ZeroDBClient,
    team_id: str,
    inviter: Dict[str, Any],
    user_id: Optional[str] = None,
    email: Optional[str] = None,
    role: str = "Member",
) -> Dict[str, Any]:
    """
    Invite an account by id or email.

    Raises:
        HTTPException: 404 if the account does not exist; 400 if it is
            already on another team for this hackathon
        DomainError: Roster rule violations (full, duplicate, non-member inviter)
    """
    team = await get_team_record(zerodb_client, team_id)

    if user_id:
        invitee = await find_one(zerodb_client, "users", {"user_id": user_id, "is_active": True})
    elif email:
        invitee = await find_one(
            zerodb_client, "users", {"email": email.strip().lower(), "is_active": True}
        )
    else:
        raise _bad_request("Either user_id or email is required")
    if invitee is None:
        raise not_found("User")

    if await _in_hackathon_team(
        zerodb_client, team["hackathon_id"], invitee["user_id"], exclude_team=team_id
    ):
        raise _bad_request("User is already in a team for this hackathon")

    slot = team_rules.invite_member(team, inviter["user_id"], invitee["user_id"], role)
    await _save_roster(zerodb_client, team)
    logger.info(f"User {inviter['user_id']} invited {invitee['user_id']} to team {team_id}")

    await create_notification(
        zerodb_client,
        invitee["user_id"],
        "team_invite",
        f"Invitation to join {team['name']}",
        f"{inviter.get('name', 'A team member')} invited you to join {team['name']} as {role}",
        TeamInviteMetadata(
            team_name=team["name"], inviter_name=inviter.get("name", "Someone"), role=role
        ),
        priority="high",
        sender_id=inviter["user_id"],
        **_team_link(team),
    )
    return slot


async def _notify_leaders_of_response(
    zerodb_client: ZeroDBClient,
    team: Dict[str, Any],
    member: Dict[str, Any],
    accepted: bool,
    verb: str,
) -> None:
    await notify_many(
        zerodb_client,
        team_rules.leader_ids(team),
        "team_acceptance" if accepted else "team_rejection",
        f"{member.get('name', 'A user')} {verb} {team['name']}",
        f"{member.get('name', 'A user')} {verb} your team {team['name']}",
        TeamResponseMetadata(
            team_name=team["name"], member_name=member.get("name", "A user"), accepted=accepted
        ),
        exclude=[member["user_id"]],
        sender_id=member["user_id"],
        **_team_link(team),
    )


async def respond_to_invitation(
    zerodb_client: ZeroDBClient, team_id: str, user: Dict[str, Any], accept: bool
) -> Dict[str, Any]:
    team = await get_team_record(zerodb_client, team_id)
    team_rules.respond_to_invitation(team, user["user_id"], accept)
    await _save_roster(zerodb_client, team)
    outcome = "accepted" if accept else "declined"
    logger.info(f"User {user['user_id']} {outcome} invitation to team {team_id}")

    await _notify_leaders_of_response(
        zerodb_client, team, user, accept, "joined" if accept else "declined the invitation to"
    )
    return team_rules.with_derived_fields(team)


async def request_to_join(
    zerodb_client: ZeroDBClient,
    team_id: str,
    user: Dict[str, Any],
    message: Optional[str] = None,
) -> Dict[str, Any]:
    team = await get_team_record(zerodb_client, team_id)
    if await _in_hackathon_team(
        zerodb_client, team["hackathon_id"], user["user_id"], exclude_team=team_id
    ):
        raise _bad_request("You are already in a team for this hackathon")

    slot = team_rules.request_to_join(team, user["user_id"])
    await _save_roster(zerodb_client, team)
    logger.info(f"User {user['user_id']} requested to join team {team_id}")

    await notify_many(
        zerodb_client,
        team_rules.leader_ids(team),
        "team_join_request",
        f"New join request for {team['name']}",
        f"{user.get('name', 'A user')} wants to join {team['name']}",
        TeamJoinRequestMetadata(
            team_name=team["name"], requester_name=user.get("name", "A user"), message=message
        ),
        priority="high",
        sender_id=user["user_id"],
        **_team_link(team),
    )
    return slot


async def review_join_request(
    zerodb_client: ZeroDBClient,
    team_id: str,
    leader: Dict[str, Any],
    user_id: str,
    approve: bool,
) -> Dict[str, Any]:
    team = await get_team_record(zerodb_client, team_id)
    team_rules.review_join_request(team, leader["user_id"], user_id, approve)
    await _save_roster(zerodb_client, team)
    logger.info(
        f"Leader {leader['user_id']} {'approved' if approve else 'rejected'} "
        f"join request from {user_id} for team {team_id}"
    )

    await create_notification(
        zerodb_client,
        user_id,
        "team_acceptance" if approve else "team_rejection",
        f"Join request {'approved' if approve else 'declined'}",
        f"Your request to join {team['name']} was {'approved' if approve else 'declined'}",
        TeamResponseMetadata(
            team_name=team["name"],
            member_name=await _display_name(zerodb_client, user_id),
            accepted=approve,
        ),
        sender_id=leader["user_id"],
        **_team_link(team),
    )
    return team_rules.with_derived_fields(team)


async def remove_member(
    zerodb_client: ZeroDBClient, team_id: str, leader: Dict[str, Any], user_id: str
) -> Dict[str, Any]:
    team = await get_team_record(zerodb_client, team_id)
    check_team_leader(team, leader["user_id"], "Only team leaders can remove members")

    team_rules.remove_member(team, user_id)
    await _save_roster(zerodb_client, team)
    logger.info(f"Leader {leader['user_id']} removed user {user_id} from team {team_id}")

    if user_id != leader["user_id"]:
        await create_notification(
            zerodb_client,
            user_id,
            "announcement",
            f"Removed from {team['name']}",
            f"You have been removed from the team {team['name']}",
            TeamChangeMetadata(team_name=team["name"], change="removed"),
            sender_id=leader["user_id"],
            team_id=team_id,
            hackathon_id=team.get("hackathon_id"),
        )
    return team_rules.with_derived_fields(team)


async def leave_team(zerodb_client: ZeroDBClient, team_id: str, user: Dict[str, Any]) -> None:
    team = await get_team_record(zerodb_client, team_id)
    team_rules.leave_team(team, user["user_id"])
    await _save_roster(zerodb_client, team)
    logger.info(f"User {user['user_id']} left team {team_id}")

    await notify_many(
        zerodb_client,
        team_rules.leader_ids(team),
        "announcement",
        f"{user.get('name', 'A member')} left {team['name']}",
        f"{user.get('name', 'A member')} has left the team",
        TeamChangeMetadata(team_name=team["name"], change="member_left"),
        priority="low",
        sender_id=user["user_id"],
        **_team_link(team),
    )


async def promote_leader(
    zerodb_client: ZeroDBClient, team_id: str, leader: Dict[str, Any], user_id: str
) -> Dict[str, Any]:
    team = await get_team_record(zerodb_client, team_id)
    team_rules.promote_leader(team, leader["user_id"], user_id)
    await _save_roster(zerodb_client, team)
    logger.info(f"User {user_id} promoted to leader of team {team_id}")
    return team_rules.with_derived_fields(team)


async def get_user_invitations(zerodb_client: ZeroDBClient, user_id: str) -> List[Dict[str, Any]]:
    """Teams holding a pending invitation slot for the account."""
    teams = await find_all(
        zerodb_client, TABLE, {"members.user_id": user_id, "status": {"$ne": "disbanded"}}
    )
    invitations = []
    for team in teams:
        if team_rules.has_pending_invitation(team, user_id):
            slot = team_rules.find_member(team, user_id)
            invitations.append(
                {
                    "team": team_rules.with_derived_fields(team),
                    "role": slot.get("role"),
                    "invited_by": slot.get("invited_by"),
                    "invited_at": slot.get("invited_at"),
                }
            )
    return sort_rows(invitations, "-invited_at")


async def get_recommended_teams(
    zerodb_client: ZeroDBClient,
    user: Dict[str, Any],
    hackathon_id: Optional[str] = None,
    limit: int = 10,
) -> List[Dict[str, Any]]:
    """Recruiting public teams ranked by overlap with the account's skills."""
    filter: Dict[str, Any] = {"is_public": True, "status": "forming"}
    if hackathon_id:
        filter["hackathon_id"] = hackathon_id

    skills = user.get("skills") or []
    ranked = []
    for team in await find_all(zerodb_client, TABLE, filter):
        if not team_rules.is_looking_for_members(team):
            continue
        if team_rules.find_member(team, user["user_id"]):
            continue
        ranked.append(
            {
                **team_rules.with_derived_fields(team),
                "match_score": team_rules.skill_match_score(team, skills),
            }
        )

    ranked.sort(key=lambda t: (-t["match_score"], -t["available_slots"]))
    return ranked[:limit]
