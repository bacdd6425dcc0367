"""
Authentication Custom Exceptions

Provides specific error types for different authentication failure scenarios.
All exceptions include structured error codes and consistent error messaging.
"""

from datetime import datetime
from typing import Any, Optional


class AuthError(Exception):
    """Base exception for all authentication errors"""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 401,
        details: Optional[dict[str, Any]] = None,
    ):
        """
        Initialize authentication error

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code (e.g., "INVALID_TOKEN")
            status_code: HTTP status code (default: 401)
            details: Optional additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}


class TokenExpiredError(AuthError):
    """Raised when JWT token has expired"""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message=message, error_code="TOKEN_EXPIRED", status_code=401)


class InvalidTokenError(AuthError):
    """Raised when JWT token is malformed or invalid"""

    def __init__(self, message: str = "Not authorized, token failed"):
        super().__init__(message=message, error_code="INVALID_TOKEN", status_code=401)


class UserNotFoundError(AuthError):
    """Raised when the token subject no longer exists"""

    def __init__(self, message: str = "User not found"):
        super().__init__(message=message, error_code="USER_NOT_FOUND", status_code=401)


class InvalidCredentialsError(AuthError):
    """Raised when email or password does not match"""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, error_code="INVALID_CREDENTIALS", status_code=401)


class AccountDeactivatedError(AuthError):
    """Raised when a soft-deleted or disabled account tries to authenticate"""

    def __init__(self, message: str = "Account has been deactivated"):
        super().__init__(message=message, error_code="ACCOUNT_DEACTIVATED", status_code=403)


class InsufficientRoleError(AuthError):
    """Raised when the account role is not allowed on a route"""

    def __init__(self, required_roles: tuple[str, ...]):
        super().__init__(
            message=f"Requires one of roles: {', '.join(required_roles)}",
            error_code="INSUFFICIENT_ROLE",
            status_code=403,
            details={"required_roles": list(required_roles)},
        )


def format_error_response(
    error: AuthError, request_id: Optional[str] = None
) -> dict[str, Any]:
    """
    Format authentication error as consistent JSON response

    Args:
        error: AuthError instance
        request_id: Optional request ID for tracing

    Returns:
        Dictionary with consistent error format:
        {
            "detail": "Human-readable error message",
            "error_code": "MACHINE_READABLE_CODE",
            "timestamp": "2025-12-28T12:34:56.789Z",
        }
    """
    response = {
        "detail": error.message,
        "error_code": error.error_code,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }

    if request_id:
        response["request_id"] = request_id

    if error.details:
        response.update(error.details)

    return response
