"""
Tests for Hackathon Service
"""

from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException
from services.hackathon_service import (
    create_hackathon,
    get_hackathon,
    get_hackathon_leaderboard,
    get_hackathon_resources,
    get_hackathon_teams,
    get_hackathon_timeline,
    list_hackathons,
    register_for_hackathon,
    update_hackathon,
    validate_schedule,
)


def _days(n):
    return (datetime.utcnow() + timedelta(days=n)).isoformat()


def _windows(offset=0):
    return {
        "registration_start": _days(offset - 2),
        "registration_end": _days(offset + 2),
        "hackathon_start": _days(offset + 3),
        "hackathon_end": _days(offset + 5),
        "judging_start": _days(offset + 6),
        "judging_end": _days(offset + 8),
    }


class TestSchedule:
    """Test validate_schedule()"""

    def test_ordered_windows_pass(self):
        validate_schedule(_windows())

    def test_out_of_order_window_rejected(self):
        windows = {**_windows(), "hackathon_end": _days(-10)}

        with pytest.raises(HTTPException) as exc_info:
            validate_schedule(windows)

        assert exc_info.value.status_code == 400
        assert "hackathon_start must be before hackathon_end" in exc_info.value.detail


class TestCreateAndUpdate:
    @pytest.mark.asyncio
    async def test_create_derives_status(self, fake_db):
        """Should store the event and compute its status from the clock"""
        # Act
        hackathon = await create_hackathon(
            fake_db, "admin-1", {"name": "Summer Build", "description": "Build", **_windows()}
        )

        # Assert
        assert hackathon["organizer_id"] == "admin-1"
        assert hackathon["slug"].startswith("summer-build")
        assert hackathon["current_status"] == "registration_open"
        assert hackathon["is_registration_open"] is True
        assert len(fake_db.tables.all("hackathons")) == 1

    @pytest.mark.asyncio
    async def test_update_revalidates_windows(self, fake_db, make_hackathon):
        hackathon = make_hackathon()

        with pytest.raises(HTTPException):
            await update_hackathon(
                fake_db, hackathon["hackathon_id"], {"judging_start": _days(-30)}
            )

        renamed = await update_hackathon(fake_db, hackathon["hackathon_id"], {"name": "Autumn"})
        assert renamed["name"] == "Autumn"
        assert renamed["slug"].startswith("autumn")

    @pytest.mark.asyncio
    async def test_cancelled_status_is_kept(self, fake_db, make_hackathon):
        hackathon = make_hackathon()

        updated = await update_hackathon(
            fake_db, hackathon["hackathon_id"], {"status": "cancelled"}
        )

        assert updated["current_status"] == "cancelled"
        assert updated["is_registration_open"] is False


class TestListing:
    @pytest.mark.asyncio
    async def test_filter_by_computed_status(self, fake_db, make_hackathon):
        make_hackathon(name="Open Now")
        make_hackathon(name="Later", **_windows(offset=30))
        make_hackathon(name="Secret", visibility="private")

        open_now = await list_hackathons(fake_db, status="registration_open")
        everything = await list_hackathons(fake_db)
        searched = await list_hackathons(fake_db, search="later")

        assert [h["name"] for h in open_now["hackathons"]] == ["Open Now"]
        assert [h["name"] for h in everything["hackathons"]] == ["Open Now", "Later"]
        assert [h["name"] for h in searched["hackathons"]] == ["Later"]

    @pytest.mark.asyncio
    async def test_private_hidden_from_non_admins(self, fake_db, make_hackathon, make_user):
        hackathon = make_hackathon(visibility="private")

        with pytest.raises(HTTPException) as exc_info:
            await get_hackathon(fake_db, hackathon["hackathon_id"], make_user())
        assert exc_info.value.status_code == 404

        result = await get_hackathon(fake_db, hackathon["hackathon_id"], make_user(role="admin"))
        assert result["hackathon"]["hackathon_id"] == hackathon["hackathon_id"]

    @pytest.mark.asyncio
    async def test_stats(self, fake_db, make_hackathon, make_team, make_project):
        hackathon = make_hackathon()
        hid = hackathon["hackathon_id"]
        make_team(hid, "lead", ["a", "b"])
        make_team(hid, "other", status="disbanded")
        make_project(hid, ["lead"])
        make_project(hid, ["x"], is_deleted=True)

        result = await get_hackathon(fake_db, hid)

        assert result["stats"] == {"projects": 1, "teams": 1, "participants": 3, "submissions": 0}

    @pytest.mark.asyncio
    async def test_teams_looking_for_members(self, fake_db, make_hackathon, make_team):
        hackathon = make_hackathon()
        hid = hackathon["hackathon_id"]
        make_team(hid, "l1", name="Open")
        make_team(hid, "l2", ["a", "b", "c"], name="Full")

        result = await get_hackathon_teams(fake_db, hid, looking_for_members=True)

        assert [t["name"] for t in result["teams"]] == ["Open"]


class TestRegistration:
    """Test register_for_hackathon()"""

    @pytest.mark.asyncio
    async def test_register_returns_next_steps(self, fake_db, make_hackathon):
        hackathon = make_hackathon()

        result = await register_for_hackathon(fake_db, hackathon["hackathon_id"], "newbie")

        assert result["hackathon"]["hackathon_id"] == hackathon["hackathon_id"]
        assert "Create or join a team" in result["next_steps"]

    @pytest.mark.asyncio
    async def test_already_on_a_team(self, fake_db, make_hackathon, make_team):
        hackathon = make_hackathon()
        make_team(hackathon["hackathon_id"], "lead")

        with pytest.raises(HTTPException) as exc_info:
            await register_for_hackathon(fake_db, hackathon["hackathon_id"], "lead")

        assert "already registered" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_participant_limit(self, fake_db, make_hackathon, make_team):
        hackathon = make_hackathon(max_participants=2)
        make_team(hackathon["hackathon_id"], "lead", ["mate"])

        with pytest.raises(HTTPException) as exc_info:
            await register_for_hackathon(fake_db, hackathon["hackathon_id"], "late-comer")

        assert "maximum participant limit" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_registration_closed(self, fake_db, make_hackathon, running_window):
        hackathon = make_hackathon(**running_window)

        with pytest.raises(HTTPException) as exc_info:
            await register_for_hackathon(fake_db, hackathon["hackathon_id"], "someone")

        assert exc_info.value.status_code == 400


class TestHackathonPages:
    @pytest.mark.asyncio
    async def test_leaderboard_orders_by_score(self, fake_db, make_hackathon, make_project):
        hid = make_hackathon()["hackathon_id"]
        make_project(hid, ["a"], title="Second", status="under_review", average_score=7.0)
        make_project(hid, ["b"], title="First", status="winner", average_score=9.2)
        make_project(hid, ["c"], title="Unscored", status="submitted", average_score=0)

        result = await get_hackathon_leaderboard(fake_db, hid)

        assert [row["title"] for row in result["leaderboard"]] == ["First", "Second"]
        assert result["leaderboard"][0]["rank"] == 1

    @pytest.mark.asyncio
    async def test_timeline_and_resources(self, fake_db, make_hackathon):
        hackathon = make_hackathon(
            resources=[
                {"type": "tutorial", "title": "Intro", "url": "https://example.com/intro"},
                {"type": "tool", "title": "CLI", "url": "https://example.com/cli"},
            ],
            tech_stack=["python"],
        )

        timeline = await get_hackathon_timeline(fake_db, hackathon["hackathon_id"])
        resources = await get_hackathon_resources(fake_db, hackathon["hackathon_id"])

        assert timeline["timeline"][0]["event"] == "Registration Starts"
        assert timeline["timeline"][0]["status"] == "completed"
        assert [r["title"] for r in resources["resources"]["tutorials"]] == ["Intro"]
        assert resources["resources"]["documentation"] == []
        assert resources["tech_stack"] == ["python"]
