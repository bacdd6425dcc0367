"""
Hackathon Service

Event CRUD, schedule-derived status, registration checks and event-level
listings (projects, teams, leaderboard, timeline, resources).

The schedule status is never persisted except for ``cancelled``; every read
attaches ``current_status`` and the other clock-derived fields.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException
from fastapi import status as http_status
from integrations.zerodb.client import ZeroDBClient
from models import hackathon as schedule
from models import team as team_rules
from models.common import new_id, parse_datetime, to_iso, unique_slug, utcnow
from models.project import with_derived_fields as project_view
from services.records import find_all, get_or_404, not_found, paginate, sort_rows

# Configure logger
logger = logging.getLogger(__name__)

TABLE = "hackathons"

DATE_FIELDS = (
    "registration_start",
    "registration_end",
    "hackathon_start",
    "hackathon_end",
    "judging_start",
    "judging_end",
    "results_announcement",
)

# (earlier, later) pairs that must be ordered
DATE_ORDER = (
    ("registration_start", "registration_end"),
    ("hackathon_start", "hackathon_end"),
    ("judging_start", "judging_end"),
    ("registration_start", "hackathon_start"),
    ("hackathon_end", "judging_start"),
)

LEADERBOARD_PROJECT_STATUSES = ("submitted", "under_review", "completed", "winner", "selected")


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=detail)


def validate_schedule(hackathon: Dict[str, Any]) -> None:
    """
    Check that the event windows are well ordered.

    Raises:
        HTTPException: 400 naming the first pair out of order
    """
    for earlier, later in DATE_ORDER:
        start = parse_datetime(hackathon.get(earlier))
        end = parse_datetime(hackathon.get(later))
        if start and end and start > end:
            raise _bad_request(f"{earlier} must be before {later}")


def _normalize_dates(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (to_iso(v) if k in DATE_FIELDS and isinstance(v, (str, datetime)) else v)
            for k, v in data.items()}


async def get_hackathon_record(zerodb_client: ZeroDBClient, hackathon_id: str) -> Dict[str, Any]:
    return await get_or_404(zerodb_client, TABLE, "hackathon_id", hackathon_id, "Hackathon")


async def create_hackathon(
    zerodb_client: ZeroDBClient,
    organizer_id: str,
    data: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Create a hackathon.

    Args:
        zerodb_client: ZeroDB client instance
        organizer_id: Account creating the event (admin)
        data: Validated event fields (name, windows, limits, prizes, ...)

    Returns:
        The stored hackathon with derived schedule fields

    Raises:
        HTTPException: 400 if the windows are out of order
    """
    now = utcnow().isoformat()
    hackathon = {
        "hackathon_id": new_id(),
        "slug": unique_slug(data["name"]),
        "status": "upcoming",
        "visibility": "public",
        "max_participants": 0,
        "organizer_id": organizer_id,
        "created_at": now,
        "updated_at": now,
        **_normalize_dates(data),
    }
    validate_schedule(hackathon)

    await zerodb_client.tables.insert_rows(TABLE, rows=[hackathon])
    logger.info(f"Created hackathon {hackathon['hackathon_id']} ({hackathon['name']})")
    return schedule.with_derived_fields(hackathon)


async def update_hackathon(
    zerodb_client: ZeroDBClient,
    hackathon_id: str,
    updates: Dict[str, Any],
) -> Dict[str, Any]:
    hackathon = await get_hackathon_record(zerodb_client, hackathon_id)
    changes = _normalize_dates(updates)
    if "name" in changes:
        changes["slug"] = unique_slug(changes["name"])
    merged = {**hackathon, **changes}
    validate_schedule(merged)

    changes["updated_at"] = utcnow().isoformat()
    await zerodb_client.tables.update_row(TABLE, hackathon_id, data=changes)
    logger.info(f"Updated hackathon {hackathon_id}: {sorted(changes)}")
    return schedule.with_derived_fields({**merged, **changes})


async def list_hackathons(
    zerodb_client: ZeroDBClient,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Dict[str, Any]:
    """
    List public hackathons, filtered by their computed status.

    Returns:
        Dict with ``hackathons`` (soonest start first) and ``pagination``
    """
    filter: Dict[str, Any] = {"visibility": "public"}
    if search:
        pattern = re.escape(search)
        filter["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"tagline": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]

    now = utcnow()
    rows = [
        schedule.with_derived_fields(h, now) for h in await find_all(zerodb_client, TABLE, filter)
    ]
    if status:
        rows = [h for h in rows if h["current_status"] == status]

    items, pagination = paginate(sort_rows(rows, "hackathon_start"), page, limit)
    return {"hackathons": items, "pagination": pagination}


async def _participant_ids(zerodb_client: ZeroDBClient, hackathon_id: str) -> set:
    teams = await find_all(
        zerodb_client, "teams", {"hackathon_id": hackathon_id, "status": {"$ne": "disbanded"}}
    )
    return {m["user_id"] for t in teams for m in team_rules.accepted_members(t)}


async def get_hackathon(
    zerodb_client: ZeroDBClient,
    hackathon_id: str,
    user: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    hackathon = await get_hackathon_record(zerodb_client, hackathon_id)
    if hackathon.get("visibility", "public") != "public" and (user or {}).get("role") != "admin":
        raise not_found("Hackathon")

    projects = await find_all(zerodb_client, "projects", {"hackathon_id": hackathon_id})
    teams = await find_all(
        zerodb_client, "teams", {"hackathon_id": hackathon_id, "status": {"$ne": "disbanded"}}
    )
    submissions = await find_all(zerodb_client, "submissions", {"hackathon_id": hackathon_id})

    return {
        "hackathon": schedule.with_derived_fields(hackathon),
        "stats": {
            "projects": sum(1 for p in projects if not p.get("is_deleted")),
            "teams": len(teams),
            "participants": len(
                {m["user_id"] for t in teams for m in team_rules.accepted_members(t)}
            ),
            "submissions": len(submissions),
        },
    }


async def get_hackathon_projects(
    zerodb_client: ZeroDBClient,
    hackathon_id: str,
    status: Optional[str] = None,
    sort: str = "-created_at",
    page: int = 1,
    limit: int = 12,
) -> Dict[str, Any]:
    await get_hackathon_record(zerodb_client, hackathon_id)
    filter: Dict[str, Any] = {"hackathon_id": hackathon_id, "is_public": True}
    if status:
        filter["status"] = status

    rows = [p for p in await find_all(zerodb_client, "projects", filter) if not p.get("is_deleted")]
    items, pagination = paginate(sort_rows(rows, sort), page, limit)
    return {"projects": [project_view(p) for p in items], "pagination": pagination}


async def get_hackathon_teams(
    zerodb_client: ZeroDBClient,
    hackathon_id: str,
    looking_for_members: Optional[bool] = None,
    page: int = 1,
    limit: int = 12,
) -> Dict[str, Any]:
    await get_hackathon_record(zerodb_client, hackathon_id)
    rows = await find_all(
        zerodb_client,
        "teams",
        {"hackathon_id": hackathon_id, "is_public": True, "status": {"$ne": "disbanded"}},
    )
    teams = [team_rules.with_derived_fields(t) for t in rows]
    if looking_for_members is not None:
        teams = [t for t in teams if t["is_looking_for_members"] == looking_for_members]

    items, pagination = paginate(sort_rows(teams, "-created_at"), page, limit)
    return {"teams": items, "pagination": pagination}


async def get_hackathon_leaderboard(
    zerodb_client: ZeroDBClient, hackathon_id: str, limit: int = 20
) -> Dict[str, Any]:
    """Public scored projects, best average first, earlier submission breaking ties."""
    await get_hackathon_record(zerodb_client, hackathon_id)
    rows = await find_all(
        zerodb_client,
        "projects",
        {
            "hackathon_id": hackathon_id,
            "is_public": True,
            "status": {"$in": list(LEADERBOARD_PROJECT_STATUSES)},
            "average_score": {"$gt": 0},
        },
    )
    rows = sorted(
        (p for p in rows if not p.get("is_deleted")),
        key=lambda p: (-float(p.get("average_score") or 0), p.get("submission_date") or ""),
    )[:limit]

    teams = await find_all(zerodb_client, "teams", {"hackathon_id": hackathon_id})
    team_by_project = {t.get("project_id"): t for t in teams if t.get("project_id")}

    leaderboard = []
    for rank, project in enumerate(rows, start=1):
        team = team_by_project.get(project["project_id"])
        leaderboard.append(
            {
                "rank": rank,
                "project_id": project["project_id"],
                "title": project.get("title"),
                "average_score": project.get("average_score"),
                "status": project.get("status"),
                "team_name": team.get("name") if team else None,
                "team_size": len(project.get("team", [])),
            }
        )
    return {"leaderboard": leaderboard}


async def register_for_hackathon(
    zerodb_client: ZeroDBClient, hackathon_id: str, user_id: str
) -> Dict[str, Any]:
    """
    Check that an account can take part in a hackathon.

    Registration is implicit: taking part means joining or creating a team.
    This validates the window, the account's existing teams and the
    participant limit (0 means unlimited).

    Raises:
        HTTPException: 400 with the reason registration is refused
    """
    hackathon = await get_hackathon_record(zerodb_client, hackathon_id)
    if not schedule.is_registration_open(hackathon):
        raise _bad_request("Registration for this hackathon is not currently open")

    participants = await _participant_ids(zerodb_client, hackathon_id)
    if user_id in participants:
        raise _bad_request("You are already registered for this hackathon")

    max_participants = int(hackathon.get("max_participants") or 0)
    if max_participants > 0 and len(participants) >= max_participants:
        raise _bad_request("Hackathon has reached maximum participant limit")

    logger.info(f"User {user_id} registered for hackathon {hackathon_id}")
    return {
        "hackathon": {
            "hackathon_id": hackathon_id,
            "name": hackathon.get("name"),
            "hackathon_start": hackathon.get("hackathon_start"),
            "hackathon_end": hackathon.get("hackathon_end"),
        },
        "next_steps": [
            "Create or join a team",
            "Start working on your project",
            "Submit before the deadline",
        ],
    }


async def get_hackathon_timeline(zerodb_client: ZeroDBClient, hackathon_id: str) -> Dict[str, Any]:
    hackathon = await get_hackathon_record(zerodb_client, hackathon_id)
    return {"timeline": schedule.timeline(hackathon)}


async def get_hackathon_resources(zerodb_client: ZeroDBClient, hackathon_id: str) -> Dict[str, Any]:
    hackathon = await get_hackathon_record(zerodb_client, hackathon_id)
    resources = hackathon.get("resources") or []

    def of_type(kind: str) -> list:
        return [r for r in resources if r.get("type") == kind]

    return {
        "resources": {
            "documentation": of_type("documentation"),
            "tutorials": of_type("tutorial"),
            "tools": of_type("tool"),
            "templates": of_type("template"),
        },
        "tech_stack": hackathon.get("tech_stack") or [],
        "submission_requirements": hackathon.get("submission_requirements") or [],
        "judging_criteria": hackathon.get("judging_criteria") or [],
    }
