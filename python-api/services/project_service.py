"""
Project Service

Projects belong to a hackathon and embed their own ``team`` roster of
``{user_id, role, contribution, joined_at}`` entries. The creator is the
``Team Lead``. Projects are soft-deleted (``is_deleted``) and hidden from
every listing afterwards.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from fastapi import status as http_status
from integrations.zerodb.client import ZeroDBClient
from models import hackathon as schedule
from models import project as project_rules
from models.common import new_id, parse_datetime, utcnow
from models.notification import ProjectUpdateMetadata
from services.authorization import check_project_lead, check_project_member, is_admin
from services.notification_service import notify_many
from services.records import find_all, find_one, get_or_404, not_found, paginate, sort_rows

# Configure logger
logger = logging.getLogger(__name__)

TABLE = "projects"

EDITABLE_FIELDS = (
    "title",
    "description",
    "problem_statement",
    "solution",
    "tech_stack",
    "tags",
    "category",
    "repo_url",
    "demo_url",
    "video_url",
    "screenshots",
    "is_public",
)

SORT_FIELDS = {
    "newest": "-created_at",
    "oldest": "created_at",
    "score": "-average_score",
    "views": "-views",
    "title": "title",
}


async def get_project_record(zerodb_client: ZeroDBClient, project_id: str) -> Dict[str, Any]:
    project = await get_or_404(zerodb_client, TABLE, "project_id", project_id, "Project")
    if project.get("is_deleted"):
        raise not_found("Project")
    return project


async def _notify_team(
    zerodb_client: ZeroDBClient,
    project: Dict[str, Any],
    actor_id: str,
    update_type: str,
    message: str,
    recipients: Optional[List[str]] = None,
) -> None:
    await notify_many(
        zerodb_client,
        recipients if recipients is not None else project_rules.team_member_ids(project),
        "project_update",
        f"Project update: {project['title']}",
        message,
        ProjectUpdateMetadata(project_title=project["title"], update_type=update_type),
        exclude=[actor_id],
        project_id=project["project_id"],
        hackathon_id=project.get("hackathon_id"),
        sender_id=actor_id,
        action_link=f"/projects/{project['project_id']}",
        action_text="View project",
    )


async def create_project(
    zerodb_client: ZeroDBClient,
    user: Dict[str, Any],
    data: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Create a project for a hackathon that is accepting work.

    Args:
        zerodb_client: ZeroDB client instance
        user: Creating account, becomes the Team Lead
        data: Validated project fields including ``hackathon_id``

    Returns:
        The stored project with derived fields

    Raises:
        HTTPException: 404 if the hackathon is missing, 400 if it is not
            accepting projects
    """
    hackathon = await get_or_404(
        zerodb_client, "hackathons", "hackathon_id", data["hackathon_id"], "Hackathon"
    )
    if schedule.current_status(hackathon) not in ("registration_open", "in_progress"):
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="Hackathon is not accepting new projects",
        )

    now = utcnow()
    project = {
        "project_id": new_id(),
        "status": "draft",
        "is_public": True,
        "tech_stack": [],
        "tags": [],
        "screenshots": [],
        "likes": [],
        "views": 0,
        "average_score": 0,
        "submission_date": None,
        "is_deleted": False,
        "created_by": user["user_id"],
        "created_at": now.isoformat(),
        "updated_at": now.isoformat(),
        **{k: v for k, v in data.items() if k in EDITABLE_FIELDS or k == "hackathon_id"},
        "team": [],
    }
    project_rules.add_team_member(project, user["user_id"], project_rules.LEAD_ROLE, now=now)

    await zerodb_client.tables.insert_rows(TABLE, rows=[project])
    logger.info(f"User {user['user_id']} created project {project['project_id']}")
    return project_rules.with_derived_fields(project)


async def list_projects(
    zerodb_client: ZeroDBClient,
    hackathon_id: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    tech: Optional[str] = None,
    search: Optional[str] = None,
    sort: str = "newest",
    page: int = 1,
    limit: int = 12,
) -> Dict[str, Any]:
    filter: Dict[str, Any] = {"is_public": True}
    if hackathon_id:
        filter["hackathon_id"] = hackathon_id
    if status:
        filter["status"] = status
    if category:
        filter["category"] = category
    if tech:
        filter["tech_stack"] = {"$in": [tech]}
    if search:
        pattern = re.escape(search)
        filter["$or"] = [
            {"title": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
            {"tags": {"$regex": pattern, "$options": "i"}},
        ]

    rows = [p for p in await find_all(zerodb_client, TABLE, filter) if not p.get("is_deleted")]
    ordered = sort_rows(rows, SORT_FIELDS.get(sort, sort))
    items, pagination = paginate(ordered, page, limit)
    return {
        "projects": [project_rules.with_derived_fields(p) for p in items],
        "pagination": pagination,
    }


async def get_project(
    zerodb_client: ZeroDBClient,
    project_id: str,
    user: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Fetch one project.

    Private projects are visible to their team and admins only. A view by
    anyone outside the team increments ``views``.
    """
    project = await get_project_record(zerodb_client, project_id)
    user_id = (user or {}).get("user_id")
    is_member = bool(user_id) and project_rules.is_team_member(project, user_id)

    if not project.get("is_public", True) and not is_member and not (user and is_admin(user)):
        raise HTTPException(
            status_code=http_status.HTTP_403_FORBIDDEN,
            detail="Not authorized to view this project",
        )

    if not is_member:
        project["views"] = int(project.get("views") or 0) + 1
        await zerodb_client.tables.update_row(TABLE, project_id, data={"views": project["views"]})

    return project_rules.with_derived_fields(project)


async def update_project(
    zerodb_client: ZeroDBClient,
    project_id: str,
    user: Dict[str, Any],
    updates: Dict[str, Any],
) -> Dict[str, Any]:
    project = await get_project_record(zerodb_client, project_id)
    check_project_member(project, user["user_id"], "Not authorized to update this project")

    changes = {k: v for k, v in updates.items() if k in EDITABLE_FIELDS}
    if "status" in updates:
        project_rules.set_status(project, updates["status"])
        changes["status"] = project["status"]
        changes["submission_date"] = project.get("submission_date")

    changes["updated_at"] = utcnow().isoformat()
    await zerodb_client.tables.update_row(TABLE, project_id, data=changes)
    project.update(changes)
    logger.info(f"User {user['user_id']} updated project {project_id}: {sorted(changes)}")

    await _notify_team(
        zerodb_client,
        project,
        user["user_id"],
        "updated",
        f"{user.get('name', 'A teammate')} updated the project",
    )
    return project_rules.with_derived_fields(project)


async def delete_project(
    zerodb_client: ZeroDBClient, project_id: str, user: Dict[str, Any]
) -> None:
    """Soft-delete a project (team lead or admin)."""
    project = await get_project_record(zerodb_client, project_id)
    if not is_admin(user):
        check_project_lead(project, user["user_id"], "Only the team lead can delete this project")

    await zerodb_client.tables.update_row(
        TABLE,
        project_id,
        data={"is_deleted": True, "is_public": False, "updated_at": utcnow().isoformat()},
    )
    logger.info(f"User {user['user_id']} deleted project {project_id}")


async def add_project_member(
    zerodb_client: ZeroDBClient,
    project_id: str,
    user: Dict[str, Any],
    member_id: str,
    role: str = "Member",
    contribution: Optional[str] = None,
) -> Dict[str, Any]:
    project = await get_project_record(zerodb_client, project_id)
    check_project_lead(project, user["user_id"], "Only the team lead can add members")

    member = await find_one(zerodb_client, "users", {"user_id": member_id, "is_active": True})
    if member is None:
        raise not_found("User")

    project_rules.add_team_member(project, member_id, role, contribution)
    await zerodb_client.tables.update_row(
        TABLE, project_id, data={"team": project["team"], "updated_at": utcnow().isoformat()}
    )
    logger.info(f"Added user {member_id} to project {project_id}")

    await _notify_team(
        zerodb_client,
        project,
        user["user_id"],
        "member_added",
        f"{member.get('name', 'A new member')} joined the project as {role}",
    )
    return project_rules.with_derived_fields(project)


async def remove_project_member(
    zerodb_client: ZeroDBClient,
    project_id: str,
    user: Dict[str, Any],
    member_id: str,
) -> Dict[str, Any]:
    project = await get_project_record(zerodb_client, project_id)
    check_project_lead(project, user["user_id"], "Only the team lead can remove members")

    project_rules.remove_team_member(project, member_id)
    await zerodb_client.tables.update_row(
        TABLE, project_id, data={"team": project["team"], "updated_at": utcnow().isoformat()}
    )
    logger.info(f"Removed user {member_id} from project {project_id}")

    await _notify_team(
        zerodb_client,
        project,
        user["user_id"],
        "member_removed",
        "You were removed from the project team",
        recipients=[member_id],
    )
    return project_rules.with_derived_fields(project)


async def like_project(
    zerodb_client: ZeroDBClient, project_id: str, user_id: str
) -> Dict[str, Any]:
    """Toggle the caller's like."""
    project = await get_project_record(zerodb_client, project_id)
    likes = list(project.get("likes") or [])
    liked = user_id not in likes
    if liked:
        likes.append(user_id)
    else:
        likes.remove(user_id)

    await zerodb_client.tables.update_row(TABLE, project_id, data={"likes": likes})
    return {"liked": liked, "like_count": len(likes)}


async def submit_project(
    zerodb_client: ZeroDBClient, project_id: str, user: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Move a project to ``submitted``.

    Raises:
        HTTPException: 400 if required material is missing, the project was
            already submitted, or the hackathon no longer accepts submissions
    """
    project = await get_project_record(zerodb_client, project_id)
    check_project_member(project, user["user_id"], "Not authorized to submit this project")

    if project.get("status") not in ("draft", "in_progress"):
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="Project has already been submitted",
        )

    missing = project_rules.missing_submission_requirements(project)
    if missing:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail=f"Project is missing required items: {', '.join(missing)}",
        )

    hackathon = await get_or_404(
        zerodb_client, "hackathons", "hackathon_id", project["hackathon_id"], "Hackathon"
    )
    open_now = schedule.is_submission_open(hackathon)
    if not open_now and not schedule.accepts_late_submission(hackathon):
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="Submission deadline has passed",
        )

    project_rules.set_status(project, "submitted")
    changes = {
        "status": project["status"],
        "submission_date": project["submission_date"],
        "updated_at": utcnow().isoformat(),
    }
    await zerodb_client.tables.update_row(TABLE, project_id, data=changes)
    project.update(changes)
    logger.info(f"Project {project_id} submitted by user {user['user_id']}")

    await _notify_team(
        zerodb_client, project, user["user_id"], "submitted", "The project has been submitted"
    )
    return project_rules.with_derived_fields(project)


async def get_project_analytics(
    zerodb_client: ZeroDBClient, project_id: str, user: Dict[str, Any]
) -> Dict[str, Any]:
    project = await get_project_record(zerodb_client, project_id)
    if not is_admin(user):
        check_project_member(project, user["user_id"], "Not authorized to view project analytics")

    created = parse_datetime(project.get("created_at")) or utcnow()
    submission = await find_one(zerodb_client, "submissions", {"project_id": project_id})

    return {
        "views": int(project.get("views") or 0),
        "likes": len(project.get("likes") or []),
        "team_size": len(project.get("team") or []),
        "days_since_created": (utcnow() - created).days,
        "status": project.get("status"),
        "submission_date": project.get("submission_date"),
        "average_score": project.get("average_score") or 0,
        "submission": {
            "submission_id": submission["submission_id"],
            "status": submission.get("status"),
            "judge_count": len(submission.get("judges") or []),
        }
        if submission
        else None,
    }
