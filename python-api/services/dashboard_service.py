"""
Dashboard Service

Read-only aggregates for the signed-in account: overview, activity feed,
submission checklist, project timelines and quick stats.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List

from integrations.zerodb.client import ZeroDBClient
from models import hackathon as schedule
from models import project as project_rules
from models import team as team_rules
from models.common import parse_datetime, utcnow
from services.authorization import check_project_member
from services.notification_service import live_filter
from services.records import find_all, find_one, get_or_404, paginate, sort_rows

# Configure logger
logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 50
SUBMIT_THRESHOLD = 90


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


async def _user_projects(zerodb_client: ZeroDBClient, user_id: str) -> List[Dict[str, Any]]:
    rows = await find_all(zerodb_client, "projects", {"team.user_id": user_id})
    return [p for p in rows if not p.get("is_deleted")]


async def _user_teams(zerodb_client: ZeroDBClient, user_id: str) -> List[Dict[str, Any]]:
    rows = await find_all(
        zerodb_client, "teams", {"members.user_id": user_id, "status": {"$ne": "disbanded"}}
    )
    return [t for t in rows if team_rules.is_member(t, user_id)]


def _upcoming_deadlines(hackathons: List[Dict[str, Any]], days: int) -> List[Dict[str, Any]]:
    now = utcnow()
    horizon = now + timedelta(days=days)
    deadlines = []
    for hackathon in hackathons:
        for field, label in (
            ("registration_end", "Registration closes"),
            ("hackathon_end", "Submission deadline"),
            ("judging_end", "Judging ends"),
        ):
            when = parse_datetime(hackathon.get(field))
            if when and now <= when <= horizon:
                deadlines.append(
                    {
                        "hackathon_id": hackathon["hackathon_id"],
                        "hackathon_name": hackathon.get("name"),
                        "event": label,
                        "date": when.isoformat(),
                        "days_left": (when - now).days,
                    }
                )
    return sorted(deadlines, key=lambda d: d["date"])


async def _active_hackathons(zerodb_client: ZeroDBClient) -> List[Dict[str, Any]]:
    rows = await find_all(zerodb_client, "hackathons", {"visibility": "public"})
    now = utcnow()
    return [
        schedule.with_derived_fields(h, now)
        for h in rows
        if schedule.current_status(h, now) in ("registration_open", "in_progress", "judging")
    ]


async def get_overview(zerodb_client: ZeroDBClient, user: Dict[str, Any]) -> Dict[str, Any]:
    user_id = user["user_id"]
    projects = await _user_projects(zerodb_client, user_id)
    teams = await _user_teams(zerodb_client, user_id)
    unread = await find_all(
        zerodb_client, "notifications", live_filter(user_id, is_read=False)
    )
    hackathons = await _active_hackathons(zerodb_client)

    active_projects = [
        p for p in projects if p.get("status") in project_rules.ACTIVE_PROJECT_STATUSES
    ]
    active_teams = [t for t in teams if t.get("status") in team_rules.ACTIVE_TEAM_STATUSES]

    return {
        "projects": [
            project_rules.with_derived_fields(p)
            for p in sort_rows(active_projects, "-updated_at")[:5]
        ],
        "teams": [
            team_rules.with_derived_fields(t) for t in sort_rows(active_teams, "-updated_at")[:5]
        ],
        "notifications": sort_rows(unread, "-created_at")[:10],
        "hackathons": sort_rows(hackathons, "hackathon_start")[:3],
        "deadlines": _upcoming_deadlines(hackathons, days=7),
        "stats": {
            "total_projects": len(projects),
            "active_projects": len(active_projects),
            "submitted_projects": sum(
                1 for p in projects if p.get("status") in project_rules.FINISHED_PROJECT_STATUSES
            ),
            "total_teams": len(teams),
            "unread_notifications": len(unread),
        },
    }


async def get_activity(
    zerodb_client: ZeroDBClient, user_id: str, page: int = 1, limit: int = 20
) -> Dict[str, Any]:
    rows = await find_all(zerodb_client, "notifications", live_filter(user_id))
    items, pagination = paginate(sort_rows(rows, "-created_at"), page, limit)
    activities = [
        {
            "id": n["notification_id"],
            "type": n["type"],
            "title": n["title"],
            "message": n["message"],
            "link": n.get("action_link"),
            "is_read": n.get("is_read", False),
            "timestamp": n["created_at"],
        }
        for n in items
    ]
    return {"activities": activities, "pagination": pagination}


def _item(label: str, completed: bool, required: bool = True) -> Dict[str, Any]:
    return {"label": label, "completed": completed, "required": required}


def build_checklist(project: Dict[str, Any], hackathon: Dict[str, Any]) -> Dict[str, Any]:
    """
    Sectioned readiness checklist for a project.

    Optional items are shown but do not count towards the percentage.
    ``can_submit`` is true from 90 percent.
    """
    team = project.get("team") or []
    sections = {
        "project_basics": [
            _item("Project title", bool(project.get("title"))),
            _item(
                "Description (at least 50 characters)",
                len(project.get("description") or "") >= MIN_DESCRIPTION_LENGTH,
            ),
            _item(
                "Problem statement and solution",
                bool(project.get("problem_statement") and project.get("solution")),
            ),
        ],
        "technical": [
            _item("Repository URL", bool(project.get("repo_url"))),
            _item("Tech stack", bool(project.get("tech_stack"))),
            _item("Tags", bool(project.get("tags"))),
        ],
        "media": [
            _item("Demo video", bool(project.get("video_url"))),
            _item("Screenshots", bool(project.get("screenshots"))),
            _item("Live demo", bool(project.get("demo_url")), required=False),
        ],
        "team": [
            _item("Team members", len(team) > 0),
            _item("Member roles", bool(team) and all(m.get("role") for m in team)),
        ],
    }

    requirements = hackathon.get("submission_requirements") or []
    if requirements:
        # Event-specific requirements are free text, so they are listed for
        # the team to confirm and left out of the percentage
        sections["hackathon_requirements"] = [
            _item(r if isinstance(r, str) else r.get("label", "Requirement"), False, required=False)
            for r in requirements
        ]

    required = [i for items in sections.values() for i in items if i["required"]]
    done = sum(1 for i in required if i["completed"])
    percentage = round(done / len(required) * 100) if required else 100

    return {
        "project_id": project["project_id"],
        "sections": sections,
        "completed_items": done,
        "total_items": len(required),
        "completion_percentage": percentage,
        "can_submit": percentage >= SUBMIT_THRESHOLD,
    }


async def get_checklist(
    zerodb_client: ZeroDBClient, user: Dict[str, Any], project_id: str
) -> Dict[str, Any]:
    project = await get_or_404(zerodb_client, "projects", "project_id", project_id, "Project")
    check_project_member(project, user["user_id"], "Not authorized to view this checklist")
    hackathon = await find_one(
        zerodb_client, "hackathons", {"hackathon_id": project.get("hackathon_id")}
    )
    return build_checklist(project, hackathon or {})


async def get_timeline(zerodb_client: ZeroDBClient, user_id: str) -> Dict[str, Any]:
    """Per-project milestones: created, submitted, judged and ranked."""
    projects = await _user_projects(zerodb_client, user_id)
    timeline = []
    for project in sort_rows(projects, "-created_at"):
        events = [{"event": "created", "date": project.get("created_at")}]
        if project.get("submission_date"):
            events.append({"event": "submitted", "date": project["submission_date"]})
        if float(project.get("average_score") or 0) > 0:
            events.append(
                {
                    "event": "judged",
                    "date": project.get("updated_at"),
                    "score": project["average_score"],
                }
            )
        if project.get("rank"):
            events.append(
                {
                    "event": "ranked",
                    "date": project.get("updated_at"),
                    "rank": _ordinal(int(project["rank"])),
                }
            )
        timeline.append(
            {
                "project_id": project["project_id"],
                "title": project.get("title"),
                "status": project.get("status"),
                "events": events,
            }
        )
    return {"timeline": timeline}


async def get_quick_stats(zerodb_client: ZeroDBClient, user: Dict[str, Any]) -> Dict[str, Any]:
    user_id = user["user_id"]
    projects = await _user_projects(zerodb_client, user_id)
    teams = await _user_teams(zerodb_client, user_id)

    invited = await find_all(
        zerodb_client, "teams", {"members.user_id": user_id, "status": {"$ne": "disbanded"}}
    )
    pending_invitations = sum(1 for t in invited if team_rules.has_pending_invitation(t, user_id))

    skills = user.get("skills") or []
    open_teams = await find_all(zerodb_client, "teams", {"is_public": True, "status": "forming"})
    matching_teams = sum(
        1
        for t in open_teams
        if team_rules.is_looking_for_members(t)
        and not team_rules.find_member(t, user_id)
        and team_rules.skill_match_score(t, skills) > 0
    )

    hackathons = await _active_hackathons(zerodb_client)
    week_ago = (utcnow() - timedelta(days=7)).isoformat()
    recent = await find_all(
        zerodb_client,
        "notifications",
        live_filter(user_id, created_at={"$gte": week_ago}),
    )

    return {
        "projects": {
            "total": len(projects),
            "active": sum(
                1 for p in projects if p.get("status") in project_rules.ACTIVE_PROJECT_STATUSES
            ),
        },
        "teams": {"total": len(teams), "pending_invitations": pending_invitations},
        "opportunities": {
            "matching_teams": matching_teams,
            "upcoming_deadlines": len(_upcoming_deadlines(hackathons, days=3)),
        },
        "activity": {"recent": len(recent)},
    }
