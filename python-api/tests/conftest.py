"""
Pytest configuration and fixtures for FastAPI testing.
"""

import copy
import os
import re
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

# The app-wide limiter would throttle the auth tests; it is tested on its own app
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from models.common import new_id  # noqa: E402
from services.security import create_access_token, hash_password  # noqa: E402


def _values_at(row: Any, path: List[str]) -> List[Any]:
    """Resolve a dotted path, fanning out through lists like a document store."""
    if not path:
        return [row]
    if isinstance(row, list):
        return [v for item in row for v in _values_at(item, path)]
    if not isinstance(row, dict) or path[0] not in row:
        return []
    return _values_at(row[path[0]], path[1:])


def _candidates(values: List[Any]) -> List[Any]:
    flat = []
    for value in values:
        if isinstance(value, list):
            flat.extend(value)
        flat.append(value)
    return flat


def _match_condition(values: List[Any], condition: Any) -> bool:
    if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
        candidates = _candidates(values)
        for op, operand in condition.items():
            if op == "$in":
                ok = any(not isinstance(c, list) and c in operand for c in candidates)
            elif op == "$ne":
                ok = operand not in candidates
            elif op in ("$gt", "$gte", "$lt", "$lte"):
                compare = {
                    "$gt": lambda a, b: a > b,
                    "$gte": lambda a, b: a >= b,
                    "$lt": lambda a, b: a < b,
                    "$lte": lambda a, b: a <= b,
                }[op]
                ok = any(
                    c is not None and not isinstance(c, list) and compare(c, operand)
                    for c in candidates
                )
            elif op == "$regex":
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                ok = any(
                    isinstance(c, str) and re.search(operand, c, flags) for c in candidates
                )
            elif op == "$options":
                continue
            else:
                raise NotImplementedError(op)
            if not ok:
                return False
        return True

    if condition is None:
        return not values or any(v is None for v in values)
    return condition in _candidates(values)


def matches(row: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
    for key, condition in (filter or {}).items():
        if key == "$or":
            if not any(matches(row, sub) for sub in condition):
                return False
            continue
        if not _match_condition(_values_at(row, key.split(".")), condition):
            return False
    return True


class FakeTables:
    """In-memory stand-in for TablesAPI, keyed by each table's ``<entity>_id``."""

    def __init__(self):
        self.rows: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_inserts_for: set = set()

    @staticmethod
    def id_field(table_name: str) -> str:
        return f"{table_name[:-1]}_id"

    async def create(self, name, schema, description=None):
        self.rows.setdefault(name, [])
        return {"name": name}

    async def list(self, skip=0, limit=100):
        return [{"name": name} for name in self.rows]

    async def insert_rows(self, table_name, rows):
        for row in rows:
            if row.get("user_id") in self.fail_inserts_for and table_name == "notifications":
                raise RuntimeError("insert failed")
        table = self.rows.setdefault(table_name, [])
        table.extend(copy.deepcopy(rows))
        return {"inserted_ids": [r.get(self.id_field(table_name)) for r in rows]}

    async def query_rows(self, table_name, filter=None, skip=0, limit=100):
        found = [r for r in self.rows.get(table_name, []) if matches(r, filter)]
        return copy.deepcopy(found[skip : skip + limit])

    async def update_row(self, table_name, row_id, data):
        id_field = self.id_field(table_name)
        for row in self.rows.get(table_name, []):
            if row.get(id_field) == row_id:
                row.update(copy.deepcopy(data))
                return {"updated": True}
        return {"updated": False}

    async def delete_row(self, table_name, row_id):
        id_field = self.id_field(table_name)
        table = self.rows.get(table_name, [])
        self.rows[table_name] = [r for r in table if r.get(id_field) != row_id]
        return {"deleted": len(table) != len(self.rows[table_name])}

    def all(self, table_name: str) -> List[Dict[str, Any]]:
        return self.rows.get(table_name, [])

    def get(self, table_name: str, row_id: str) -> Optional[Dict[str, Any]]:
        id_field = self.id_field(table_name)
        return next((r for r in self.all(table_name) if r.get(id_field) == row_id), None)


class FakeZeroDBClient:
    def __init__(self):
        self.tables = FakeTables()
        self.project_id = "test-project"

    async def close(self):
        pass


def _iso(days: float) -> str:
    return (datetime.utcnow() + timedelta(days=days)).isoformat()


@pytest.fixture
def client():
    """
    Create a test client for the FastAPI application.

    This fixture is imported late to avoid circular dependencies
    and to ensure the app is properly configured before testing.
    """
    from main import app

    return TestClient(app)


@pytest.fixture
def mock_env(monkeypatch):
    """
    Set up mock environment variables for testing.
    """
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setenv("API_VERSION", "v1")
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173")


@pytest.fixture
def fake_db():
    return FakeZeroDBClient()


@pytest.fixture
def api_client(fake_db):
    """TestClient whose routes talk to the in-memory database."""
    from api.dependencies import get_zerodb_client
    from main import app

    app.dependency_overrides[get_zerodb_client] = lambda: fake_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(fake_db):
    def factory(**fields) -> Dict[str, Any]:
        user = {
            "user_id": new_id(),
            "email": f"user-{new_id()[:8]}@example.com",
            "password_hash": hash_password("password123"),
            "name": "Test User",
            "role": "participant",
            "skills": [],
            "experience_level": "intermediate",
            "is_active": True,
            "created_at": datetime.utcnow().isoformat(),
        }
        user.update(fields)
        fake_db.tables.rows.setdefault("users", []).append(user)
        return copy.deepcopy(user)

    return factory


@pytest.fixture
def auth_headers():
    def factory(user: Dict[str, Any]) -> Dict[str, str]:
        token = create_access_token(user["user_id"], user.get("role", "participant"))
        return {"Authorization": f"Bearer {token}"}

    return factory


@pytest.fixture
def make_hackathon(fake_db):
    """Hackathon whose registration window is open unless overridden."""

    def factory(**fields) -> Dict[str, Any]:
        hackathon = {
            "hackathon_id": new_id(),
            "name": "Spring Hack",
            "slug": f"spring-hack-{new_id()[:6]}",
            "description": "A test hackathon",
            "status": "upcoming",
            "visibility": "public",
            "registration_start": _iso(-2),
            "registration_end": _iso(2),
            "hackathon_start": _iso(3),
            "hackathon_end": _iso(5),
            "judging_start": _iso(6),
            "judging_end": _iso(8),
            "max_participants": 0,
            "min_team_size": 1,
            "max_team_size": 5,
            "allow_late_submissions": False,
            "submission_requirements": [],
            "judging_criteria": [],
            "resources": [],
            "created_at": datetime.utcnow().isoformat(),
        }
        hackathon.update(fields)
        fake_db.tables.rows.setdefault("hackathons", []).append(hackathon)
        return copy.deepcopy(hackathon)

    return factory


@pytest.fixture
def running_window():
    """Schedule fields for a hackathon that is currently in progress."""
    return {
        "registration_start": _iso(-5),
        "registration_end": _iso(-3),
        "hackathon_start": _iso(-1),
        "hackathon_end": _iso(1),
        "judging_start": _iso(2),
        "judging_end": _iso(4),
    }


@pytest.fixture
def make_project(fake_db):
    def factory(hackathon_id: str, members: List[str], **fields) -> Dict[str, Any]:
        now = datetime.utcnow().isoformat()
        project = {
            "project_id": new_id(),
            "hackathon_id": hackathon_id,
            "title": "Test Project",
            "description": "Something useful",
            "status": "in_progress",
            "is_public": True,
            "is_deleted": False,
            "tech_stack": ["python"],
            "tags": [],
            "screenshots": [],
            "likes": [],
            "views": 0,
            "average_score": 0,
            "submission_date": None,
            "created_by": members[0],
            "created_at": now,
            "updated_at": now,
            "team": [
                {
                    "user_id": uid,
                    "role": "Team Lead" if i == 0 else "Member",
                    "contribution": None,
                    "joined_at": now,
                }
                for i, uid in enumerate(members)
            ],
        }
        project.update(fields)
        fake_db.tables.rows.setdefault("projects", []).append(project)
        return copy.deepcopy(project)

    return factory


@pytest.fixture
def make_team(fake_db):
    def factory(
        hackathon_id: str,
        leader_id: str,
        members: Optional[List[str]] = None,
        **fields,
    ) -> Dict[str, Any]:
        now = datetime.utcnow().isoformat()
        team_id = new_id()

        def slot(uid, leader=False):
            return {
                "user_id": uid,
                "role": "Team Leader" if leader else "Member",
                "is_leader": leader,
                "invitation_status": "accepted",
                "source": "invite",
                "invited_by": None if leader else leader_id,
                "invited_at": now,
                "joined_at": now,
            }

        team = {
            "team_id": team_id,
            "hackathon_id": hackathon_id,
            "name": "Team Rocket",
            "slug": f"team-rocket-{team_id[:6]}",
            "description": "We build rockets",
            "max_members": 4,
            "looking_for": ["python"],
            "required_skills": [],
            "status": "forming",
            "is_public": True,
            "is_open_to_members": True,
            "total_invites_sent": 0,
            "chat_room_id": f"team_{team_id}",
            "created_by": leader_id,
            "created_at": now,
            "updated_at": now,
            "members": [slot(leader_id, True)] + [slot(uid) for uid in members or []],
        }
        team.update(fields)
        fake_db.tables.rows.setdefault("teams", []).append(team)
        return copy.deepcopy(team)

    return factory
