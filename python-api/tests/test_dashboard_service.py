"""
Tests for Dashboard Service
"""

import pytest
from fastapi import HTTPException
from models.notification import SystemMetadata
from services.dashboard_service import (
    build_checklist,
    get_activity,
    get_checklist,
    get_overview,
    get_quick_stats,
    get_timeline,
)
from services.notification_service import create_notification

COMPLETE_PROJECT = {
    "project_id": "p1",
    "title": "Rocket",
    "description": "A reusable rocket planner that schedules launches around the weather.",
    "problem_statement": "Launch windows are hard to plan",
    "solution": "Forecast-aware scheduling",
    "repo_url": "https://github.com/example/rocket",
    "tech_stack": ["python"],
    "tags": ["space"],
    "video_url": "https://youtu.be/demo",
    "screenshots": ["https://img.example.com/1.png"],
    "team": [{"user_id": "u1", "role": "Team Lead"}],
}


class TestChecklist:
    """Test build_checklist()"""

    def test_complete_project_can_submit(self):
        checklist = build_checklist(COMPLETE_PROJECT, {})

        assert checklist["total_items"] == 10
        assert checklist["completed_items"] == 10
        assert checklist["completion_percentage"] == 100
        assert checklist["can_submit"] is True
        assert checklist["sections"]["media"][2] == {
            "label": "Live demo",
            "completed": False,
            "required": False,
        }

    def test_short_description_and_missing_video(self):
        project = {**COMPLETE_PROJECT, "description": "Too short", "video_url": None}

        checklist = build_checklist(project, {})

        assert checklist["completed_items"] == 8
        assert checklist["completion_percentage"] == 80
        assert checklist["can_submit"] is False

    def test_event_requirements_listed_but_optional(self):
        checklist = build_checklist(
            COMPLETE_PROJECT,
            {"submission_requirements": ["Public repository", {"label": "Slides"}]},
        )

        labels = [i["label"] for i in checklist["sections"]["hackathon_requirements"]]
        assert labels == ["Public repository", "Slides"]
        assert checklist["total_items"] == 10

    @pytest.mark.asyncio
    async def test_members_only(self, fake_db, make_user, make_project):
        lead = make_user()
        project = make_project("h1", [lead["user_id"]])

        result = await get_checklist(fake_db, lead, project["project_id"])
        assert result["project_id"] == project["project_id"]

        with pytest.raises(HTTPException) as exc_info:
            await get_checklist(fake_db, make_user(), project["project_id"])
        assert exc_info.value.status_code == 403


class TestOverview:
    @pytest.mark.asyncio
    async def test_overview_counts(
        self, fake_db, make_user, make_hackathon, make_project, make_team
    ):
        # Arrange
        user = make_user()
        hackathon = make_hackathon()
        hid = hackathon["hackathon_id"]
        make_project(hid, [user["user_id"]], status="in_progress")
        make_project(hid, [user["user_id"]], status="winner")
        make_project(hid, [user["user_id"]], is_deleted=True)
        make_team(hid, user["user_id"])
        await create_notification(
            fake_db, user["user_id"], "system", "Welcome", "Hello", SystemMetadata(event="welcome")
        )

        # Act
        overview = await get_overview(fake_db, user)

        # Assert
        assert overview["stats"] == {
            "total_projects": 2,
            "active_projects": 1,
            "submitted_projects": 1,
            "total_teams": 1,
            "unread_notifications": 1,
        }
        assert [h["hackathon_id"] for h in overview["hackathons"]] == [hid]
        assert [d["event"] for d in overview["deadlines"]] == [
            "Registration closes",
            "Submission deadline",
        ]

    @pytest.mark.asyncio
    async def test_activity_feed(self, fake_db):
        for title in ("First", "Second"):
            await create_notification(
                fake_db, "u1", "system", title, "Body", SystemMetadata(event="test")
            )

        result = await get_activity(fake_db, "u1", limit=1)

        assert len(result["activities"]) == 1
        assert result["pagination"]["total"] == 2
        assert result["activities"][0]["is_read"] is False


class TestTimelineAndStats:
    @pytest.mark.asyncio
    async def test_timeline_events(self, fake_db, make_project):
        make_project(
            "h1",
            ["u1"],
            submission_date="2024-03-02T10:00:00",
            average_score=8.4,
            rank=2,
        )

        result = await get_timeline(fake_db, "u1")

        events = result["timeline"][0]["events"]
        assert [e["event"] for e in events] == ["created", "submitted", "judged", "ranked"]
        assert events[-1]["rank"] == "2nd"

    @pytest.mark.asyncio
    async def test_quick_stats(self, fake_db, make_user, make_hackathon, make_team):
        user = make_user(skills=["python"])
        hid = make_hackathon()["hackathon_id"]
        inviting = make_team(hid, "leader-1", name="Inviting")
        make_team(hid, "leader-2", name="Matching")
        fake_db.tables.get("teams", inviting["team_id"])["members"].append(
            {
                "user_id": user["user_id"],
                "role": "Member",
                "is_leader": False,
                "invitation_status": "pending",
                "source": "invite",
            }
        )

        stats = await get_quick_stats(fake_db, user)

        assert stats["teams"] == {"total": 0, "pending_invitations": 1}
        assert stats["opportunities"]["matching_teams"] == 1
