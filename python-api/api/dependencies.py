"""
FastAPI Dependencies

Provides the shared ZeroDB client and the authenticated account. Bearer
tokens are verified locally (JWT) and resolved to an active user row, with
auth events logged as structured records.
"""

import logging
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from integrations.zerodb.client import ZeroDBClient
from integrations.zerodb.dependencies import build_zerodb_client
from services.auth_exceptions import AuthError, InsufficientRoleError, format_error_response
from services.auth_service import authenticate_token

# Configure structured logging
logger = logging.getLogger(__name__)

# Missing credentials are reported by get_current_user, not by the scheme
security = HTTPBearer(auto_error=False)


async def get_zerodb_client() -> ZeroDBClient:
    """
    Dependency to provide the ZeroDB client instance.

    Raises:
        HTTPException: 503 if the client cannot be configured
    """
    try:
        return build_zerodb_client()
    except ValueError as e:
        logger.error(f"Failed to initialize ZeroDB client: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service unavailable",
        )


def _auth_exception(error: AuthError) -> HTTPException:
    return HTTPException(
        status_code=error.status_code,
        detail=format_error_response(error),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> dict[str, Any]:
    """
    Get the authenticated account for a request.

    Returns:
        The stored user row (including ``password_hash``, which routes must
        not return; use ``auth_service.public_user``)

    Raises:
        HTTPException: 401 missing or invalid token, 403 deactivated account

    Example:
        >>> @app.get("/protected")
        >>> async def protected_route(user: dict = Depends(get_current_user)):
        ...     return {"user_id": user["user_id"]}
    """
    if credentials is None:
        logger.info(
            "Request without bearer token",
            extra={"event": "auth_failed", "path": request.url.path},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user = await authenticate_token(zerodb_client, credentials.credentials)
    except AuthError as e:
        logger.warning(
            f"Token authentication failed: {e.error_code}",
            extra={"event": "auth_failed", "error_code": e.error_code, "path": request.url.path},
        )
        raise _auth_exception(e)

    logger.debug(
        "JWT token authentication successful",
        extra={"event": "auth_success", "user_id": user["user_id"]},
    )
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Optional[dict[str, Any]]:
    """
    Get the account if a valid token was sent, otherwise None.

    Public endpoints use this to tailor their answer (private records,
    view counting) without requiring a login.

    Example:
        >>> @router.get("/hackathons/{hackathon_id}")
        >>> async def get_hackathon(
        ...     hackathon_id: str,
        ...     user: Optional[dict] = Depends(get_current_user_optional)
        ... ):
        ...     ...
    """
    if credentials is None:
        return None
    try:
        return await authenticate_token(zerodb_client, credentials.credentials)
    except AuthError as e:
        logger.debug(f"Ignoring invalid optional credentials: {e.error_code}")
        return None


def require_roles(*roles: str):
    """Build a dependency that admits only the given account roles."""

    async def checker(user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
        if user.get("role") not in roles:
            logger.warning(
                f"User {user['user_id']} with role {user.get('role')} denied",
                extra={"event": "role_denied", "required_roles": list(roles)},
            )
            raise _auth_exception(InsufficientRoleError(roles))
        return user

    return checker


require_admin = require_roles("admin")
require_judge = require_roles("judge", "admin")
