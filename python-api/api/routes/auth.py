"""
Authentication API Routes

Registration, login and self-service account management. Tokens are
stateless JWTs, so logout is an acknowledgement and the client discards
its token.
"""

import logging
from typing import Any, Dict

from api.dependencies import get_current_user, get_zerodb_client
from api.responses import success_response
from api.schemas.auth import (
    DeleteAccountRequest,
    LoginRequest,
    PasswordUpdateRequest,
    ProfileUpdateRequest,
    RegisterRequest,
)
from api.schemas.common import SuccessResponse, error_responses
from fastapi import APIRouter, Depends, status
from integrations.zerodb.client import ZeroDBClient
from services import auth_service

# Configure logger
logger = logging.getLogger(__name__)

# Initialize router
router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(400, 429),
    summary="Register",
    description="""
    Create a participant account and return it with an access token.

    - Email is trimmed and lowercased; duplicates are rejected
    - Password must be at least 8 characters
    - A welcome notification is created
    """,
)
async def register_endpoint(
    request: RegisterRequest,
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await auth_service.register(
        zerodb_client,
        email=request.email,
        password=request.password,
        name=request.name,
        skills=request.skills,
        experience_level=request.experience_level,
    )
    return success_response(result)


@router.post(
    "/login",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 429),
    summary="Login",
    description="Exchange email and password for an access token.",
)
async def login_endpoint(
    request: LoginRequest,
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await auth_service.login(zerodb_client, request.email, request.password)
    return success_response(result)


@router.get(
    "/me",
    response_model=SuccessResponse,
    responses=error_responses(401, 403),
    summary="Current Account",
)
async def get_me_endpoint(
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        {
            "user": auth_service.public_user(current_user),
            "stats": await auth_service.get_user_stats(zerodb_client, current_user["user_id"]),
        }
    )


@router.put(
    "/profile",
    response_model=SuccessResponse,
    responses=error_responses(400, 401),
    summary="Update Profile",
)
async def update_profile_endpoint(
    request: ProfileUpdateRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    user = await auth_service.update_profile(
        zerodb_client, current_user, request.model_dump(exclude_unset=True)
    )
    return success_response(user)


@router.put(
    "/password",
    response_model=SuccessResponse,
    responses=error_responses(400, 401),
    summary="Change Password",
    description="Verify the current password, store the new one and issue a fresh token.",
)
async def update_password_endpoint(
    request: PasswordUpdateRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    result = await auth_service.update_password(
        zerodb_client, current_user, request.current_password, request.new_password
    )
    return success_response(result, message="Password updated successfully")


@router.post(
    "/logout",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="Logout",
)
async def logout_endpoint(
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    logger.info(
        f"User {current_user['user_id']} logged out", extra={"event": "logout"}
    )
    return success_response(message="Logged out successfully")


@router.delete(
    "/account",
    response_model=SuccessResponse,
    responses=error_responses(400, 401),
    summary="Delete Account",
    description="Deactivate the caller's account after confirming the password.",
)
async def delete_account_endpoint(
    request: DeleteAccountRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    await auth_service.delete_account(zerodb_client, current_user, request.password)
    return success_response(message="Account deleted successfully")
