"""
User Directory Service

Public profiles, filtered user listings and skill search. Only active
accounts are listed and credentials never leave this module.
"""

import logging
import re
from typing import Any, Optional

from integrations.zerodb.client import ZeroDBClient
from models import team as team_rules
from models.project import with_derived_fields as project_view
from services.auth_service import get_user_stats, public_user
from services.records import find_all, get_or_404, not_found, paginate, sort_rows

logger = logging.getLogger(__name__)

TABLE = "users"


async def get_active_user(zerodb_client: ZeroDBClient, user_id: str) -> dict[str, Any]:
    user = await get_or_404(zerodb_client, TABLE, "user_id", user_id, "User")
    if not user.get("is_active", True):
        # Deactivated accounts are hidden from the directory
        raise not_found("User")
    return user


async def list_users(
    zerodb_client: ZeroDBClient,
    search: Optional[str] = None,
    skills: Optional[list[str]] = None,
    role: Optional[str] = None,
    experience_level: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> dict[str, Any]:
    """
    List active users.

    Args:
        search: Case-insensitive match on name, email or bio
        skills: Users having any of these skills
        role: Account role filter
        experience_level: Experience level filter
        page: 1-based page number
        limit: Page size

    Returns:
        Dict with ``users`` and ``pagination``
    """
    filter: dict[str, Any] = {"is_active": True}
    if role:
        filter["role"] = role
    if experience_level:
        filter["experience_level"] = experience_level
    if skills:
        filter["skills"] = {"$in": skills}
    if search:
        pattern = re.escape(search)
        filter["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"email": {"$regex": pattern, "$options": "i"}},
            {"bio": {"$regex": pattern, "$options": "i"}},
        ]

    rows = await find_all(zerodb_client, TABLE, filter)
    items, pagination = paginate(sort_rows(rows, "-created_at"), page, limit)
    return {"users": [public_user(u) for u in items], "pagination": pagination}


async def get_user_profile(zerodb_client: ZeroDBClient, user_id: str) -> dict[str, Any]:
    user = await get_active_user(zerodb_client, user_id)
    projects = await find_all(
        zerodb_client, "projects", {"team.user_id": user_id, "is_public": True}
    )
    recent = sort_rows([p for p in projects if not p.get("is_deleted")], "-created_at")[:5]
    return {
        "user": public_user(user),
        "stats": await get_user_stats(zerodb_client, user_id),
        "recent_projects": [project_view(p) for p in recent],
    }


async def get_user_projects(
    zerodb_client: ZeroDBClient,
    user_id: str,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> dict[str, Any]:
    await get_active_user(zerodb_client, user_id)
    filter: dict[str, Any] = {"team.user_id": user_id}
    if status:
        filter["status"] = status

    rows = [p for p in await find_all(zerodb_client, "projects", filter) if not p.get("is_deleted")]
    items, pagination = paginate(sort_rows(rows, "-created_at"), page, limit)
    return {"projects": [project_view(p) for p in items], "pagination": pagination}


async def get_user_teams(
    zerodb_client: ZeroDBClient,
    user_id: str,
    status: Optional[str] = None,
) -> dict[str, Any]:
    await get_active_user(zerodb_client, user_id)
    filter: dict[str, Any] = {"members.user_id": user_id}
    if status:
        filter["status"] = status

    rows = await find_all(zerodb_client, "teams", filter)
    teams = [team_rules.with_derived_fields(t) for t in rows if team_rules.is_member(t, user_id)]
    return {"teams": sort_rows(teams, "-created_at")}


async def search_users_by_skills(
    zerodb_client: ZeroDBClient,
    skills: list[str],
    match_all: bool = False,
    limit: int = 20,
) -> dict[str, Any]:
    """Active users ranked by how many of the requested skills they have."""
    wanted = {s.lower() for s in skills}
    rows = await find_all(zerodb_client, TABLE, {"is_active": True})

    ranked = []
    for user in rows:
        have = {s.lower() for s in user.get("skills") or []}
        matches = len(wanted & have)
        if matches == 0 or (match_all and matches < len(wanted)):
            continue
        ranked.append({**public_user(user), "match_count": matches})

    ranked.sort(key=lambda u: u["match_count"], reverse=True)
    return {"users": ranked[:limit], "total": len(ranked)}
