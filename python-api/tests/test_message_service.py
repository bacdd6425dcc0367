"""
Tests for Message Service and chat room access
"""

import pytest
from fastapi import HTTPException
from models.common import DomainError
from realtime.manager import manager
from realtime.presence import InMemoryPresenceRegistry
from services.authorization import check_room_access
from services.message_service import (
    create_message,
    delete_message,
    edit_message,
    get_pinned_messages,
    get_room_messages,
    mark_as_read,
    notify_offline_members,
    pin_message,
    react_to_message,
)


@pytest.fixture
def room(make_user, make_team):
    """A team chat room with a leader and one member."""
    leader = make_user(name="Leader")
    member = make_user(name="Member")
    team = make_team("h1", leader["user_id"], [member["user_id"]])
    return {"leader": leader, "member": member, "room_id": f"team_{team['team_id']}"}


@pytest.fixture
def presence(monkeypatch):
    registry = InMemoryPresenceRegistry()
    monkeypatch.setattr(manager, "presence", registry)
    return registry


class TestRoomAccess:
    """Test check_room_access()"""

    @pytest.mark.asyncio
    async def test_team_members_only(self, fake_db, room, make_user):
        assert await check_room_access(fake_db, room["member"], room["room_id"]) is True

        with pytest.raises(HTTPException) as exc_info:
            await check_room_access(fake_db, make_user(), room["room_id"])
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_pending_invitee_denied(self, fake_db, make_user, make_team):
        invitee = make_user()
        team = make_team("h1", "leader")
        fake_db.tables.get("teams", team["team_id"])["members"].append(
            {"user_id": invitee["user_id"], "is_leader": False, "invitation_status": "pending"}
        )

        with pytest.raises(HTTPException):
            await check_room_access(fake_db, invitee, f"team_{team['team_id']}")

    @pytest.mark.asyncio
    async def test_project_direct_and_group_rooms(self, fake_db, make_user, make_project):
        alice = make_user()
        bob = make_user()
        project = make_project("h1", [alice["user_id"]])

        assert await check_room_access(fake_db, alice, f"project_{project['project_id']}")
        assert await check_room_access(
            fake_db, bob, f"direct_{alice['user_id']}_{bob['user_id']}"
        )
        assert await check_room_access(fake_db, bob, "group_general")
        with pytest.raises(HTTPException):
            await check_room_access(fake_db, bob, f"project_{project['project_id']}")

    @pytest.mark.asyncio
    async def test_admin_and_malformed(self, fake_db, make_user):
        assert await check_room_access(fake_db, make_user(role="admin"), "team_unknown")

        with pytest.raises(HTTPException) as exc_info:
            await check_room_access(fake_db, make_user(), "lobby")
        assert exc_info.value.status_code == 400


class TestMessages:
    """Test create_message() and history"""

    @pytest.mark.asyncio
    async def test_reply_bumps_thread_count(self, fake_db, room):
        # Arrange
        parent = await create_message(fake_db, room["leader"], room["room_id"], "Kickoff at 9")

        # Act
        reply = await create_message(
            fake_db,
            room["member"],
            room["room_id"],
            "See you",
            parent_message_id=parent["message_id"],
        )

        # Assert
        assert reply["sender_name"] == "Member"
        assert fake_db.tables.get("messages", parent["message_id"])["thread_count"] == 1

    @pytest.mark.asyncio
    async def test_failed_reply_leaves_thread_count(self, fake_db, room, monkeypatch):
        """Should not count a reply whose insert failed"""
        # Arrange
        parent = await create_message(fake_db, room["leader"], room["room_id"], "Kickoff at 9")

        async def failing_insert(table_name, rows):
            raise RuntimeError("insert failed")

        monkeypatch.setattr(fake_db.tables, "insert_rows", failing_insert)

        # Act
        with pytest.raises(RuntimeError):
            await create_message(
                fake_db,
                room["member"],
                room["room_id"],
                "See you",
                parent_message_id=parent["message_id"],
            )

        # Assert
        assert fake_db.tables.get("messages", parent["message_id"])["thread_count"] == 0

    @pytest.mark.asyncio
    async def test_unknown_parent(self, fake_db, room):
        with pytest.raises(HTTPException) as exc_info:
            await create_message(
                fake_db, room["leader"], room["room_id"], "Hi", parent_message_id="missing"
            )

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_empty_content(self, fake_db, room):
        with pytest.raises(DomainError):
            await create_message(fake_db, room["leader"], room["room_id"], "   ")

    @pytest.mark.asyncio
    async def test_history_oldest_first_with_paging(self, fake_db, room):
        for i, stamp in enumerate(["2024-01-01T10:00", "2024-01-01T11:00", "2024-01-01T12:00"]):
            message = await create_message(fake_db, room["leader"], room["room_id"], f"m{i}")
            fake_db.tables.get("messages", message["message_id"])["created_at"] = stamp

        latest = await get_room_messages(fake_db, room["member"], room["room_id"], limit=2)
        earlier = await get_room_messages(
            fake_db, room["member"], room["room_id"], before="2024-01-01T11:00"
        )

        assert [m["content"] for m in latest["messages"]] == ["m1", "m2"]
        assert latest["has_more"] is True
        assert [m["content"] for m in earlier["messages"]] == ["m0"]
        assert earlier["has_more"] is False

    @pytest.mark.asyncio
    async def test_history_excludes_thread_replies(self, fake_db, room):
        parent = await create_message(fake_db, room["leader"], room["room_id"], "Question")
        await create_message(
            fake_db,
            room["member"],
            room["room_id"],
            "Answer",
            parent_message_id=parent["message_id"],
        )

        top = await get_room_messages(fake_db, room["member"], room["room_id"])
        thread = await get_room_messages(
            fake_db, room["member"], room["room_id"], parent_message_id=parent["message_id"]
        )

        assert [m["content"] for m in top["messages"]] == ["Question"]
        assert [m["content"] for m in thread["messages"]] == ["Answer"]


class TestMessageActions:
    @pytest.mark.asyncio
    async def test_only_sender_edits_and_deletes(self, fake_db, room):
        message = await create_message(fake_db, room["leader"], room["room_id"], "Draft")

        with pytest.raises(DomainError) as exc_info:
            await edit_message(fake_db, room["member"], message["message_id"], "Hijack")
        assert exc_info.value.status_code == 403

        edited = await edit_message(fake_db, room["leader"], message["message_id"], "Final")
        assert edited["edited"] is True

        deleted = await delete_message(fake_db, room["leader"], message["message_id"])
        assert deleted["content"] == "[This message was deleted]"
        assert fake_db.tables.get("messages", message["message_id"])["deleted"] is True

    @pytest.mark.asyncio
    async def test_reactions_toggle_and_read_receipts(self, fake_db, room):
        message = await create_message(fake_db, room["leader"], room["room_id"], "Ship it")

        first = await react_to_message(fake_db, room["member"], message["message_id"], "🚀")
        second = await react_to_message(fake_db, room["member"], message["message_id"], "🚀")
        await mark_as_read(fake_db, room["member"], message["message_id"])
        read = await mark_as_read(fake_db, room["member"], message["message_id"])

        assert first["added"] is True
        assert second["added"] is False
        assert second["message"]["reactions"] == []
        assert [r["user_id"] for r in read["read_by"]] == [room["member"]["user_id"]]

    @pytest.mark.asyncio
    async def test_pinned_messages(self, fake_db, room):
        keep = await create_message(fake_db, room["leader"], room["room_id"], "Rules")
        await create_message(fake_db, room["leader"], room["room_id"], "Chatter")

        await pin_message(fake_db, room["member"], keep["message_id"])
        pinned = await get_pinned_messages(fake_db, room["member"], room["room_id"])

        assert [m["content"] for m in pinned] == ["Rules"]


class TestOfflineNotifications:
    @pytest.mark.asyncio
    async def test_only_offline_members_notified(self, fake_db, room, presence, make_user):
        third = make_user()
        fake_db.tables.get("teams", room["room_id"][len("team_"):])["members"].append(
            {"user_id": third["user_id"], "is_leader": False, "invitation_status": "accepted"}
        )
        await presence.add(room["member"]["user_id"], "conn-1")
        message = await create_message(fake_db, room["leader"], room["room_id"], "x" * 150)

        count = await notify_offline_members(fake_db, message, room["leader"])

        assert count == 1
        notes = fake_db.tables.all("notifications")
        assert [n["user_id"] for n in notes] == [third["user_id"]]
        assert notes[0]["type"] == "new_message"
        assert notes[0]["message"] == "x" * 100 + "..."

    @pytest.mark.asyncio
    async def test_everyone_online(self, fake_db, room, presence):
        await presence.add(room["member"]["user_id"], "conn-1")
        message = await create_message(fake_db, room["leader"], room["room_id"], "hi")

        assert await notify_offline_members(fake_db, message, room["leader"]) == 0
