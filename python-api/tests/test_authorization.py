"""
Tests for Authorization Service

Role checks and membership checks against teams and projects.
Room access is covered with the message service tests.
"""

import pytest
from fastapi import HTTPException
from services.authorization import (
    check_admin,
    check_judge,
    check_project_lead,
    check_project_member,
    check_team_leader,
    check_team_member,
    is_admin,
    is_judge,
)

TEAM = {
    "team_id": "team-1",
    "members": [
        {"user_id": "leader", "is_leader": True, "invitation_status": "accepted"},
        {"user_id": "member", "is_leader": False, "invitation_status": "accepted"},
        {"user_id": "invitee", "is_leader": False, "invitation_status": "pending"},
    ],
}

PROJECT = {
    "project_id": "project-1",
    "team": [
        {"user_id": "lead", "role": "Team Lead"},
        {"user_id": "dev", "role": "Developer"},
    ],
}


class TestRoleChecks:
    """Test account role checks"""

    @pytest.mark.parametrize(
        "role,admin,judge",
        [
            ("admin", True, True),
            ("judge", False, True),
            ("participant", False, False),
            ("mentor", False, False),
        ],
    )
    def test_role_predicates(self, role, admin, judge):
        user = {"user_id": "u1", "role": role}

        assert is_admin(user) is admin
        assert is_judge(user) is judge

    def test_check_admin_rejects_participant(self):
        """Should raise 403 for non-admins"""
        with pytest.raises(HTTPException) as exc_info:
            check_admin({"user_id": "u1", "role": "participant"})

        assert exc_info.value.status_code == 403

    def test_check_judge_admits_admin(self):
        assert check_judge({"user_id": "u1", "role": "admin"}) is True

    def test_check_judge_rejects_mentor(self):
        with pytest.raises(HTTPException) as exc_info:
            check_judge({"user_id": "u1", "role": "mentor"})

        assert exc_info.value.status_code == 403


class TestTeamChecks:
    """Test team membership checks"""

    def test_accepted_member_passes(self):
        assert check_team_member(TEAM, "member", "denied") is True

    def test_pending_invitee_is_not_a_member(self):
        with pytest.raises(HTTPException) as exc_info:
            check_team_member(TEAM, "invitee", "Not a member of this team")

        assert exc_info.value.detail == "Not a member of this team"

    def test_only_leaders_pass_leader_check(self):
        assert check_team_leader(TEAM, "leader", "denied") is True
        with pytest.raises(HTTPException):
            check_team_leader(TEAM, "member", "Only team leaders can do this")


class TestProjectChecks:
    """Test project roster checks"""

    def test_member_and_lead(self):
        assert check_project_member(PROJECT, "dev", "denied") is True
        assert check_project_lead(PROJECT, "lead", "denied") is True

    def test_developer_is_not_lead(self):
        with pytest.raises(HTTPException) as exc_info:
            check_project_lead(PROJECT, "dev", "Only the team lead can do this")

        assert exc_info.value.status_code == 403

    def test_outsider_rejected(self):
        with pytest.raises(HTTPException):
            check_project_member(PROJECT, "stranger", "denied")
