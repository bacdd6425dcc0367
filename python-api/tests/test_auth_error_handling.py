"""
Tests for Authentication Error Handling

Covers the exception classes and the consistent error format the auth
dependencies and handlers return.
"""

import pytest
from services.auth_exceptions import (
    AccountDeactivatedError,
    AuthError,
    InsufficientRoleError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    UserNotFoundError,
    format_error_response,
)


class TestAuthExceptions:
    """Test suite for custom authentication exception classes"""

    def test_auth_error_base(self):
        """Test base AuthError exception"""
        error = AuthError(message="Auth failed", error_code="AUTH_001", status_code=401)

        assert error.message == "Auth failed"
        assert error.error_code == "AUTH_001"
        assert error.status_code == 401
        assert str(error) == "Auth failed"

    @pytest.mark.parametrize(
        "error_class,error_code,status_code",
        [
            (TokenExpiredError, "TOKEN_EXPIRED", 401),
            (InvalidTokenError, "INVALID_TOKEN", 401),
            (UserNotFoundError, "USER_NOT_FOUND", 401),
            (InvalidCredentialsError, "INVALID_CREDENTIALS", 401),
            (AccountDeactivatedError, "ACCOUNT_DEACTIVATED", 403),
        ],
    )
    def test_error_codes(self, error_class, error_code, status_code):
        error = error_class()

        assert isinstance(error, AuthError)
        assert error.error_code == error_code
        assert error.status_code == status_code
        assert error.message

    def test_insufficient_role_lists_roles(self):
        error = InsufficientRoleError(("judge", "admin"))

        assert error.status_code == 403
        assert error.details == {"required_roles": ["judge", "admin"]}
        assert "judge, admin" in error.message


class TestErrorResponseFormat:
    """Test format_error_response()"""

    def test_basic_format(self):
        response = format_error_response(InvalidTokenError())

        assert response["error_code"] == "INVALID_TOKEN"
        assert response["detail"]
        assert response["timestamp"].endswith("Z")
        assert "request_id" not in response

    def test_request_id_and_details(self):
        response = format_error_response(InsufficientRoleError(("admin",)), request_id="req-1")

        assert response["request_id"] == "req-1"
        assert response["required_roles"] == ["admin"]


class TestErrorEnvelope:
    """Auth failures reach clients in the standard error envelope"""

    def test_expired_token_envelope(self, api_client, make_user):
        from services.security import create_access_token

        user = make_user()
        token = create_access_token(user["user_id"], "participant", expires_minutes=-5)

        response = api_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "TOKEN_EXPIRED"
        assert body["path"] == "/api/auth/me"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_role_denied_envelope(self, api_client, make_user, auth_headers):
        payload = {
            "name": "Judged Jam",
            "registration_start": "2030-01-01T00:00:00",
            "registration_end": "2030-01-02T00:00:00",
            "hackathon_start": "2030-01-03T00:00:00",
            "hackathon_end": "2030-01-04T00:00:00",
        }

        response = api_client.post(
            "/api/hackathons", json=payload, headers=auth_headers(make_user(role="judge"))
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "INSUFFICIENT_ROLE"
