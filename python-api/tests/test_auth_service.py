"""
Tests for Auth Service

Registration, login and bearer token resolution against the in-memory
ZeroDB fake.
"""

import time

import pytest
from fastapi import HTTPException
from integrations.zerodb.exceptions import ZeroDBError
from services.auth_exceptions import (
    AccountDeactivatedError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    UserNotFoundError,
)
from services.auth_service import (
    authenticate_token,
    delete_account,
    login,
    register,
    update_password,
    update_profile,
)
from services.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_and_verify(self):
        """Should verify the original password and reject others"""
        hashed = hash_password("password123")

        assert hashed != "password123"
        assert verify_password("password123", hashed) is True
        assert verify_password("wrong-password", hashed) is False

    def test_verify_never_raises(self):
        assert verify_password("password123", None) is False
        assert verify_password("password123", "not-a-hash") is False


class TestTokens:
    def test_round_trip(self):
        payload = decode_access_token(create_access_token("u1", "judge"))

        assert payload["sub"] == "u1"
        assert payload["role"] == "judge"

    def test_expired_token(self):
        token = create_access_token("u1", "participant", expires_minutes=-1)

        with pytest.raises(TokenExpiredError):
            decode_access_token(token)

    def test_tampered_token(self):
        with pytest.raises(InvalidTokenError):
            decode_access_token(create_access_token("u1", "participant") + "x")


class TestRegister:
    """Test register()"""

    @pytest.mark.asyncio
    async def test_register_success(self, fake_db):
        """Should store a normalized account and return a token"""
        # Act
        result = await register(fake_db, "  Ann@Example.COM ", "password123", " Ann ")

        # Assert
        user = result["user"]
        assert user["email"] == "ann@example.com"
        assert user["name"] == "Ann"
        assert user["role"] == "participant"
        assert "password_hash" not in user
        assert decode_access_token(result["token"])["sub"] == user["user_id"]

        stored = fake_db.tables.get("users", user["user_id"])
        assert verify_password("password123", stored["password_hash"])

    @pytest.mark.asyncio
    async def test_register_sends_welcome_notification(self, fake_db):
        result = await register(fake_db, "ann@example.com", "password123", "Ann")

        rows = fake_db.tables.all("notifications")
        assert len(rows) == 1
        assert rows[0]["user_id"] == result["user"]["user_id"]
        assert rows[0]["type"] == "system"

    @pytest.mark.asyncio
    async def test_register_survives_notification_failure(self, fake_db, monkeypatch):
        """Should return the new account when the welcome notification cannot be stored"""
        # Arrange
        insert_rows = fake_db.tables.insert_rows

        async def failing_insert(table_name, rows):
            if table_name == "notifications":
                raise ZeroDBError("API error: 500", status_code=500)
            return await insert_rows(table_name, rows)

        monkeypatch.setattr(fake_db.tables, "insert_rows", failing_insert)

        # Act
        result = await register(fake_db, "ann@example.com", "password123", "Ann")

        # Assert
        assert result["user"]["email"] == "ann@example.com"
        assert result["token"]
        assert fake_db.tables.get("users", result["user"]["user_id"]) is not None
        assert fake_db.tables.all("notifications") == []

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, fake_db, make_user):
        """Should reject an email that differs only by case"""
        make_user(email="ann@example.com")

        with pytest.raises(HTTPException) as exc_info:
            await register(fake_db, "ANN@example.com", "password123", "Ann")

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "User already exists"

    @pytest.mark.asyncio
    async def test_register_short_password(self, fake_db):
        with pytest.raises(HTTPException) as exc_info:
            await register(fake_db, "ann@example.com", "short", "Ann")

        assert exc_info.value.status_code == 400


class TestLogin:
    """Test login()"""

    @pytest.mark.asyncio
    async def test_login_success(self, fake_db, make_user):
        user = make_user(email="ann@example.com")

        result = await login(fake_db, "Ann@Example.com", "password123")

        assert result["user"]["user_id"] == user["user_id"]
        assert fake_db.tables.get("users", user["user_id"])["last_login"] is not None

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, fake_db, make_user):
        make_user(email="ann@example.com")

        with pytest.raises(InvalidCredentialsError):
            await login(fake_db, "ann@example.com", "wrong-password")

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, fake_db):
        """Should not reveal whether the email exists"""
        with pytest.raises(InvalidCredentialsError) as exc_info:
            await login(fake_db, "nobody@example.com", "password123")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_login_deactivated(self, fake_db, make_user):
        make_user(email="ann@example.com", is_active=False)

        with pytest.raises(AccountDeactivatedError) as exc_info:
            await login(fake_db, "ann@example.com", "password123")

        assert exc_info.value.status_code == 403


class TestAuthenticateToken:
    """Test authenticate_token()"""

    @pytest.mark.asyncio
    async def test_resolves_active_user(self, fake_db, make_user):
        user = make_user()
        token = create_access_token(user["user_id"], "participant")

        resolved = await authenticate_token(fake_db, token)

        assert resolved["user_id"] == user["user_id"]

    @pytest.mark.asyncio
    async def test_unknown_subject(self, fake_db):
        with pytest.raises(UserNotFoundError):
            await authenticate_token(fake_db, create_access_token("ghost", "participant"))

    @pytest.mark.asyncio
    async def test_deactivated_after_issue(self, fake_db, make_user):
        """Should reject tokens of accounts deactivated after the token was issued"""
        user = make_user()
        token = create_access_token(user["user_id"], "participant")
        fake_db.tables.get("users", user["user_id"])["is_active"] = False

        with pytest.raises(AccountDeactivatedError):
            await authenticate_token(fake_db, token)


class TestAccountManagement:
    @pytest.mark.asyncio
    async def test_update_profile_ignores_unknown_fields(self, fake_db, make_user):
        user = make_user()

        updated = await update_profile(fake_db, user, {"bio": "Builder", "role": "admin"})

        stored = fake_db.tables.get("users", user["user_id"])
        assert updated["bio"] == "Builder"
        assert stored["role"] == "participant"

    @pytest.mark.asyncio
    async def test_update_password_checks_current(self, fake_db, make_user):
        user = make_user()

        with pytest.raises(HTTPException):
            await update_password(fake_db, user, "wrong-password", "new-password-1")

        await update_password(fake_db, user, "password123", "new-password-1")
        result = await login(fake_db, user["email"], "new-password-1")
        assert result["user"]["user_id"] == user["user_id"]

    @pytest.mark.asyncio
    async def test_delete_account_deactivates(self, fake_db, make_user):
        user = make_user()
        before = int(time.time() * 1000)

        await delete_account(fake_db, user, "password123")

        stored = fake_db.tables.get("users", user["user_id"])
        assert stored["is_active"] is False
        assert stored["email"].startswith("deleted_")
        # suffix is epoch milliseconds regardless of the host timezone
        stamp = int(stored["email"].split("_")[1])
        assert before <= stamp <= int(time.time() * 1000)
        # the address is released for a new registration
        with pytest.raises(InvalidCredentialsError):
            await login(fake_db, user["email"], "password123")
