"""
Project status and embedded team roster.
"""

from datetime import datetime
from typing import Any, Optional

from models.common import DomainError, utcnow

PROJECT_STATUSES = (
    "draft",
    "in_progress",
    "submitted",
    "under_review",
    "selected",
    "winner",
    "completed",
    "rejected",
)
ACTIVE_PROJECT_STATUSES = ("draft", "in_progress", "submitted")
FINISHED_PROJECT_STATUSES = ("submitted", "under_review", "completed", "winner")

LEAD_ROLE = "Team Lead"


def project_room_id(project_id: str) -> str:
    return f"project_{project_id}"


def team_member_ids(project: dict[str, Any]) -> list[str]:
    return [m["user_id"] for m in project.get("team", [])]


def is_team_member(project: dict[str, Any], user_id: str) -> bool:
    return user_id in team_member_ids(project)


def is_team_lead(project: dict[str, Any], user_id: str) -> bool:
    return any(
        m["user_id"] == user_id and m.get("role") == LEAD_ROLE for m in project.get("team", [])
    )


def set_status(project: dict[str, Any], status: str, now: Optional[datetime] = None) -> None:
    """Change status; the first move into ``submitted`` stamps ``submission_date`` once."""
    if status not in PROJECT_STATUSES:
        raise DomainError(f"Invalid project status: {status}")

    project["status"] = status
    if status == "submitted" and not project.get("submission_date"):
        project["submission_date"] = (now or utcnow()).isoformat()


def add_team_member(
    project: dict[str, Any],
    user_id: str,
    role: str = "Member",
    contribution: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    if is_team_member(project, user_id):
        raise DomainError("User is already a team member")

    member = {
        "user_id": user_id,
        "role": role,
        "contribution": contribution,
        "joined_at": (now or utcnow()).isoformat(),
    }
    project.setdefault("team", []).append(member)
    return member


def remove_team_member(project: dict[str, Any], user_id: str) -> None:
    if not is_team_member(project, user_id):
        raise DomainError("Member not found in project team", status_code=404)
    if is_team_lead(project, user_id):
        raise DomainError("Cannot remove the team lead")
    project["team"] = [m for m in project["team"] if m["user_id"] != user_id]


def missing_submission_requirements(project: dict[str, Any]) -> list[str]:
    missing = []
    if not project.get("repo_url"):
        missing.append("repository URL")
    if not project.get("video_url"):
        missing.append("demo video")
    if not project.get("screenshots"):
        missing.append("at least one screenshot")
    return missing


def with_derived_fields(project: dict[str, Any]) -> dict[str, Any]:
    return {
        **project,
        "team_size": len(project.get("team", [])),
        "like_count": len(project.get("likes", [])),
    }
