"""
Authentication Service

Account registration, login, token verification and self-service account
management. Accounts are never hard-deleted: deletion flips ``is_active`` and
renames the email so the address can be registered again.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import HTTPException
from fastapi import status as http_status
from integrations.zerodb.client import ZeroDBClient
from integrations.zerodb.exceptions import ZeroDBError
from models import team as team_rules
from models.common import new_id, utcnow
from models.notification import SystemMetadata
from services.auth_exceptions import (
    AccountDeactivatedError,
    InvalidCredentialsError,
    UserNotFoundError,
)
from services.notification_service import create_notification
from services.records import find_all, find_one
from services.security import (
    MIN_PASSWORD_LENGTH,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

# Configure logger
logger = logging.getLogger(__name__)

TABLE = "users"

PRIVATE_FIELDS = ("password_hash", "notification_preferences")

PROFILE_FIELDS = (
    "name",
    "bio",
    "avatar",
    "skills",
    "experience_level",
    "location",
    "github",
    "linkedin",
    "portfolio",
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    """Strip credential and preference fields before a user leaves the API."""
    return {k: v for k, v in user.items() if k not in PRIVATE_FIELDS}


def _token_response(user: dict[str, Any]) -> dict[str, Any]:
    return {
        "user": public_user(user),
        "token": create_access_token(user["user_id"], user.get("role", "participant")),
    }


def _check_password_length(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )


async def register(
    zerodb_client: ZeroDBClient,
    email: str,
    password: str,
    name: str,
    skills: Optional[list[str]] = None,
    experience_level: str = "beginner",
) -> dict[str, Any]:
    """
    Register a new participant account.

    Args:
        zerodb_client: ZeroDB client instance
        email: Email address (stored trimmed and lowercased)
        password: Plain password, at least 8 characters
        name: Display name
        skills: Optional skill list
        experience_level: beginner, intermediate, advanced or expert

    Returns:
        Dict with the public user and an access token

    Raises:
        HTTPException: 400 if the email is already registered
    """
    email = normalize_email(email)
    _check_password_length(password)

    if await find_one(zerodb_client, TABLE, {"email": email}):
        logger.warning(f"Registration rejected: {email} already exists")
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="User already exists",
        )

    now = utcnow().isoformat()
    user = {
        "user_id": new_id(),
        "email": email,
        "password_hash": hash_password(password),
        "name": name.strip(),
        "bio": None,
        "avatar": None,
        "skills": skills or [],
        "experience_level": experience_level,
        "role": "participant",
        "is_active": True,
        "last_login": now,
        "created_at": now,
        "updated_at": now,
    }
    try:
        await zerodb_client.tables.insert_rows(TABLE, rows=[user])
    except ZeroDBError as e:
        # unique index on email catches a concurrent registration
        if e.status_code == 409:
            raise HTTPException(
                status_code=http_status.HTTP_400_BAD_REQUEST,
                detail="User already exists",
            ) from e
        raise
    logger.info(f"Registered user {user['user_id']}", extra={"event": "user_registered"})

    await create_notification(
        zerodb_client,
        user["user_id"],
        "system",
        "Welcome to HackHub!",
        "Complete your profile, join a hackathon and start building.",
        SystemMetadata(event="welcome"),
        priority="low",
        action_link="/profile",
        action_text="Complete profile",
    )

    return _token_response(user)


async def login(zerodb_client: ZeroDBClient, email: str, password: str) -> dict[str, Any]:
    """
    Authenticate with email and password.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password (401)
        AccountDeactivatedError: Account was deactivated (403)
    """
    user = await find_one(zerodb_client, TABLE, {"email": normalize_email(email)})
    if user is None or not verify_password(password, user.get("password_hash")):
        logger.warning("Login failed: invalid credentials", extra={"event": "login_failed"})
        raise InvalidCredentialsError()

    if not user.get("is_active", True):
        logger.warning(
            f"Login refused for deactivated user {user['user_id']}",
            extra={"event": "login_failed", "user_id": user["user_id"]},
        )
        raise AccountDeactivatedError()

    now = utcnow().isoformat()
    await zerodb_client.tables.update_row(TABLE, user["user_id"], data={"last_login": now})
    user["last_login"] = now
    logger.info(f"User {user['user_id']} logged in", extra={"event": "login_success"})
    return _token_response(user)


async def authenticate_token(zerodb_client: ZeroDBClient, token: str) -> dict[str, Any]:
    """
    Resolve a bearer token to an active account.

    Raises:
        InvalidTokenError / TokenExpiredError: Token cannot be trusted
        UserNotFoundError: Token subject no longer exists
        AccountDeactivatedError: Account was deactivated after the token was issued
    """
    payload = decode_access_token(token)
    user = await find_one(zerodb_client, TABLE, {"user_id": payload["sub"]})
    if user is None:
        raise UserNotFoundError()
    if not user.get("is_active", True):
        raise AccountDeactivatedError()
    return user


async def update_profile(
    zerodb_client: ZeroDBClient, user: dict[str, Any], updates: dict[str, Any]
) -> dict[str, Any]:
    changes = {k: v for k, v in updates.items() if k in PROFILE_FIELDS}
    if not changes:
        return public_user(user)

    changes["updated_at"] = utcnow().isoformat()
    await zerodb_client.tables.update_row(TABLE, user["user_id"], data=changes)
    logger.info(f"Updated profile fields {sorted(changes)} for user {user['user_id']}")
    return public_user({**user, **changes})


async def update_password(
    zerodb_client: ZeroDBClient,
    user: dict[str, Any],
    current_password: str,
    new_password: str,
) -> dict[str, Any]:
    if not verify_password(current_password, user.get("password_hash")):
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )
    _check_password_length(new_password)

    await zerodb_client.tables.update_row(
        TABLE,
        user["user_id"],
        data={"password_hash": hash_password(new_password), "updated_at": utcnow().isoformat()},
    )
    logger.info(f"Password changed for user {user['user_id']}", extra={"event": "password_changed"})
    return _token_response(user)


async def delete_account(zerodb_client: ZeroDBClient, user: dict[str, Any], password: str) -> None:
    """Soft-delete the caller's account after confirming the password."""
    if not verify_password(password, user.get("password_hash")):
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="Password is incorrect",
        )

    now = utcnow()
    stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
    renamed = f"deleted_{stamp}_{user['email']}"
    await zerodb_client.tables.update_row(
        TABLE,
        user["user_id"],
        data={"is_active": False, "email": renamed, "updated_at": now.isoformat()},
    )
    logger.info(f"Deactivated account {user['user_id']}", extra={"event": "account_deleted"})


async def get_user_stats(zerodb_client: ZeroDBClient, user_id: str) -> dict[str, Any]:
    projects = await find_all(zerodb_client, "projects", {"team.user_id": user_id})
    projects = [p for p in projects if not p.get("is_deleted")]
    teams = await find_all(
        zerodb_client, "teams", {"members.user_id": user_id, "status": {"$ne": "disbanded"}}
    )
    submissions = []
    if projects:
        submissions = await find_all(
            zerodb_client,
            "submissions",
            {"project_id": {"$in": [p["project_id"] for p in projects]}},
        )

    scored = [s["average_score"] for s in submissions if s.get("average_score")]
    by_status: dict[str, int] = {}
    for project in projects:
        by_status[project["status"]] = by_status.get(project["status"], 0) + 1

    return {
        "projects": {"total": len(projects), "by_status": by_status},
        "teams": {
            "total": sum(1 for t in teams if team_rules.is_member(t, user_id)),
        },
        "submissions": {
            "total": len(submissions),
            "wins": sum(1 for s in submissions if s.get("status") == "winner"),
            "average_score": round(sum(scored) / len(scored), 2) if scored else 0,
        },
    }
