"""
Tests for Notification Service
"""

from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException
from models.notification import SystemMetadata, TeamChangeMetadata
from services.notification_service import (
    archive_notification,
    create_notification,
    delete_read_notifications,
    get_notification,
    get_notification_stats,
    get_preferences,
    list_notifications,
    mark_all_as_read,
    notify_many,
    update_preferences,
)


async def _notify(fake_db, user_id, **fields):
    return await create_notification(
        fake_db, user_id, "system", "Hello", "Body", SystemMetadata(event="test"), **fields
    )


class TestFanOut:
    """Test notify_many()"""

    @pytest.mark.asyncio
    async def test_dedupes_and_excludes_actor(self, fake_db):
        """Should store one row per recipient, skipping the acting account"""
        # Act
        stored = await notify_many(
            fake_db,
            ["u1", "u2", "u1", "actor"],
            "announcement",
            "Team updated",
            "Updated: name",
            TeamChangeMetadata(team_name="Rocket", change="updated"),
            exclude=["actor"],
        )

        # Assert
        assert sorted(row["user_id"] for row in stored) == ["u1", "u2"]
        assert len(fake_db.tables.all("notifications")) == 2

    @pytest.mark.asyncio
    async def test_failed_insert_does_not_block_others(self, fake_db):
        """Should keep going when one recipient's insert fails"""
        fake_db.tables.fail_inserts_for.add("u2")

        stored = await notify_many(
            fake_db, ["u1", "u2", "u3"], "system", "Hi", "Body", SystemMetadata(event="x")
        )

        assert sorted(row["user_id"] for row in stored) == ["u1", "u3"]

    @pytest.mark.asyncio
    async def test_no_recipients(self, fake_db):
        assert await notify_many(fake_db, [], "system", "Hi", "Body") == []

    @pytest.mark.asyncio
    async def test_single_insert_failure_is_logged(self, fake_db, caplog):
        """Should return None and log a warning instead of raising"""
        fake_db.tables.fail_inserts_for.add("u1")

        with caplog.at_level("WARNING"):
            row = await _notify(fake_db, "u1")

        assert row is None
        assert fake_db.tables.all("notifications") == []
        assert any(
            getattr(r, "event", None) == "notification_fanout_failed" for r in caplog.records
        )


class TestReadingNotifications:
    """Test listing, reading and expiry"""

    @pytest.mark.asyncio
    async def test_list_hides_expired_and_archived(self, fake_db):
        # Arrange
        live = await _notify(fake_db, "u1")
        expired = await _notify(fake_db, "u1")
        archived = await _notify(fake_db, "u1")
        await _notify(fake_db, "someone-else")
        fake_db.tables.get("notifications", expired["notification_id"])["expires_at"] = (
            datetime.utcnow() - timedelta(minutes=1)
        ).isoformat()
        await archive_notification(fake_db, "u1", archived["notification_id"])

        # Act
        result = await list_notifications(fake_db, "u1")

        # Assert
        ids = [n["notification_id"] for n in result["notifications"]]
        assert ids == [live["notification_id"]]
        assert result["unread_count"] == 2
        assert result["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_opening_marks_read(self, fake_db):
        row = await _notify(fake_db, "u1")

        opened = await get_notification(fake_db, "u1", row["notification_id"])

        assert opened["is_read"] is True
        assert fake_db.tables.get("notifications", row["notification_id"])["read_at"]

    @pytest.mark.asyncio
    async def test_other_users_notification_is_not_found(self, fake_db):
        row = await _notify(fake_db, "u1")

        with pytest.raises(HTTPException) as exc_info:
            await get_notification(fake_db, "u2", row["notification_id"])

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_mark_all_and_delete_read(self, fake_db):
        for _ in range(3):
            await _notify(fake_db, "u1")
        await _notify(fake_db, "u2")

        assert await mark_all_as_read(fake_db, "u1") == 3
        assert await delete_read_notifications(fake_db, "u1") == 3
        assert [r["user_id"] for r in fake_db.tables.all("notifications")] == ["u2"]

    @pytest.mark.asyncio
    async def test_stats(self, fake_db):
        first = await _notify(fake_db, "u1", priority="high")
        await _notify(fake_db, "u1")
        await get_notification(fake_db, "u1", first["notification_id"])

        stats = await get_notification_stats(fake_db, "u1")

        assert stats["total"] == 2
        assert stats["unread"] == 1
        assert stats["by_type"]["system"] == {"total": 2, "unread": 1}
        assert stats["by_priority"] == {"high": 1, "medium": 1}
        assert stats["recent"] == 2


class TestPreferences:
    @pytest.mark.asyncio
    async def test_defaults_and_merge(self, fake_db, make_user):
        user = make_user()

        defaults = await get_preferences(fake_db, user["user_id"])
        merged = await update_preferences(fake_db, user["user_id"], {"frequency": "daily"})

        assert defaults["frequency"] == "instant"
        assert merged["frequency"] == "daily"
        assert merged["email"] == defaults["email"]
        stored = fake_db.tables.get("users", user["user_id"])
        assert stored["notification_preferences"]["frequency"] == "daily"
