"""
Team roster rules.

A team record embeds its roster as ``members``: one slot per account with an
invitation status (pending, accepted or rejected) and a leader flag. The
functions here mutate a team dict in place and raise DomainError for illegal
transitions. Persisting the result is the caller's job.

Invariants kept by every transition:
- accepted member count never exceeds ``max_members``
- at least one accepted member carries the leader flag
"""

from datetime import datetime
from typing import Any, Literal, Optional

from models.common import DomainError, utcnow

InvitationStatus = Literal["pending", "accepted", "rejected"]
SlotSource = Literal["invite", "request"]

TEAM_STATUSES = ("forming", "active", "completed", "disbanded")
ACTIVE_TEAM_STATUSES = ("forming", "active")
COMMITMENT_LEVELS = ("casual", "moderate", "serious", "competitive")

MIN_TEAM_SIZE = 2
MAX_TEAM_SIZE = 10
DEFAULT_MAX_MEMBERS = 4

LEADER_ROLE = "Team Leader"


def chat_room_id(team_id: str) -> str:
    return f"team_{team_id}"


def new_member_slot(
    user_id: str,
    role: str = "Member",
    *,
    is_leader: bool = False,
    invitation_status: InvitationStatus = "pending",
    source: SlotSource = "invite",
    invited_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    now = now or utcnow()
    return {
        "user_id": user_id,
        "role": role,
        "is_leader": is_leader,
        "invitation_status": invitation_status,
        "source": source,
        "invited_by": invited_by,
        "invited_at": now.isoformat(),
        "joined_at": now.isoformat() if invitation_status == "accepted" else None,
    }


def find_member(team: dict[str, Any], user_id: str) -> Optional[dict[str, Any]]:
    for member in team.get("members", []):
        if member["user_id"] == user_id:
            return member
    return None


def accepted_members(team: dict[str, Any]) -> list[dict[str, Any]]:
    return [m for m in team.get("members", []) if m.get("invitation_status") == "accepted"]


def pending_members(team: dict[str, Any]) -> list[dict[str, Any]]:
    return [m for m in team.get("members", []) if m.get("invitation_status") == "pending"]


def leader_ids(team: dict[str, Any]) -> list[str]:
    return [m["user_id"] for m in accepted_members(team) if m.get("is_leader")]


def member_count(team: dict[str, Any]) -> int:
    return len(accepted_members(team))


def max_members(team: dict[str, Any]) -> int:
    return int(team.get("max_members") or DEFAULT_MAX_MEMBERS)


def available_slots(team: dict[str, Any]) -> int:
    return max(0, max_members(team) - member_count(team))


def is_full(team: dict[str, Any]) -> bool:
    return member_count(team) >= max_members(team)


def is_member(team: dict[str, Any], user_id: str) -> bool:
    member = find_member(team, user_id)
    return member is not None and member.get("invitation_status") == "accepted"


def is_leader(team: dict[str, Any], user_id: str) -> bool:
    return user_id in leader_ids(team)


def is_looking_for_members(team: dict[str, Any]) -> bool:
    return (
        bool(team.get("is_open_to_members", True))
        and team.get("status", "forming") == "forming"
        and not is_full(team)
    )


def has_pending_invitation(team: dict[str, Any], user_id: str) -> bool:
    slot = find_member(team, user_id)
    return (
        slot is not None
        and slot.get("invitation_status") == "pending"
        and slot.get("source", "invite") == "invite"
    )


def with_derived_fields(team: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of the team with its roster-derived fields attached."""
    return {
        **team,
        "member_count": member_count(team),
        "available_slots": available_slots(team),
        "is_full": is_full(team),
        "is_looking_for_members": is_looking_for_members(team),
    }


def invite_member(
    team: dict[str, Any],
    inviter_id: str,
    user_id: str,
    role: str = "Member",
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Add a pending invitation slot, or re-pend a previously rejected one."""
    if not is_member(team, inviter_id):
        raise DomainError("Only team members can invite", status_code=403)
    if is_full(team):
        raise DomainError("Team is full")

    now = now or utcnow()
    slot = find_member(team, user_id)
    if slot is not None:
        if slot["invitation_status"] == "pending":
            raise DomainError("User already has a pending invitation")
        if slot["invitation_status"] == "accepted":
            raise DomainError("User is already a team member")
        slot.update(
            role=role,
            is_leader=False,
            invitation_status="pending",
            source="invite",
            invited_by=inviter_id,
            invited_at=now.isoformat(),
            joined_at=None,
        )
    else:
        slot = new_member_slot(user_id, role, invited_by=inviter_id, now=now)
        team.setdefault("members", []).append(slot)

    team["total_invites_sent"] = int(team.get("total_invites_sent") or 0) + 1
    return slot


def _accept(team: dict[str, Any], slot: dict[str, Any], now: datetime) -> None:
    if is_full(team):
        raise DomainError("Team is full")
    slot["invitation_status"] = "accepted"
    slot["joined_at"] = now.isoformat()


def respond_to_invitation(
    team: dict[str, Any],
    user_id: str,
    accept: bool,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """The invited account accepts or rejects its own pending invitation."""
    slot = find_member(team, user_id)
    if (
        slot is None
        or slot["invitation_status"] != "pending"
        or slot.get("source", "invite") != "invite"
    ):
        raise DomainError("No pending invitation found", status_code=404)

    if accept:
        _accept(team, slot, now or utcnow())
    else:
        slot["invitation_status"] = "rejected"
    return slot


def request_to_join(
    team: dict[str, Any],
    user_id: str,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Add a pending slot created by the requester, to be reviewed by a leader."""
    if not team.get("is_public", True) or not is_looking_for_members(team):
        raise DomainError("Team is not accepting new members")

    now = now or utcnow()
    slot = find_member(team, user_id)
    if slot is not None:
        if slot["invitation_status"] == "accepted":
            raise DomainError("You are already a member of this team")
        if slot["invitation_status"] == "pending":
            raise DomainError("You already have a pending request for this team")
        slot.update(
            role="Requested",
            invitation_status="pending",
            source="request",
            invited_by=None,
            invited_at=now.isoformat(),
            joined_at=None,
        )
        return slot

    slot = new_member_slot(user_id, "Requested", source="request", now=now)
    team.setdefault("members", []).append(slot)
    return slot


def review_join_request(
    team: dict[str, Any],
    leader_id: str,
    user_id: str,
    approve: bool,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    if not is_leader(team, leader_id):
        raise DomainError("Only team leaders can review join requests", status_code=403)

    slot = find_member(team, user_id)
    if slot is None or slot["invitation_status"] != "pending" or slot.get("source") != "request":
        raise DomainError("No pending join request found", status_code=404)

    if approve:
        _accept(team, slot, now or utcnow())
        slot["role"] = "Member"
    else:
        slot["invitation_status"] = "rejected"
    return slot


def remove_member(team: dict[str, Any], user_id: str) -> dict[str, Any]:
    """Delete a slot outright, unless it holds the sole accepted leader."""
    slot = find_member(team, user_id)
    if slot is None:
        raise DomainError("Member not found in team", status_code=404)

    if (
        slot.get("is_leader")
        and slot.get("invitation_status") == "accepted"
        and len(leader_ids(team)) <= 1
    ):
        raise DomainError("Cannot remove the last team leader")

    team["members"] = [m for m in team["members"] if m["user_id"] != user_id]
    return slot


def leave_team(team: dict[str, Any], user_id: str) -> dict[str, Any]:
    if not is_member(team, user_id):
        raise DomainError("You are not a member of this team")
    if is_leader(team, user_id) and len(leader_ids(team)) <= 1:
        raise DomainError("Cannot leave as the only team leader. Promote another leader first.")
    return remove_member(team, user_id)


def promote_leader(team: dict[str, Any], leader_id: str, user_id: str) -> dict[str, Any]:
    if not is_leader(team, leader_id):
        raise DomainError("Only team leaders can promote members", status_code=403)
    if not is_member(team, user_id):
        raise DomainError("Member not found in team", status_code=404)

    slot = find_member(team, user_id)
    slot["is_leader"] = True
    return slot


def skill_match_score(team: dict[str, Any], skills: list[str]) -> int:
    """Percentage of the team's wanted skills that the account has."""
    wanted = {s.lower() for s in team.get("looking_for") or []}
    if not wanted:
        return 0
    have = {s.lower() for s in skills}
    return round(len(wanted & have) / len(wanted) * 100)
