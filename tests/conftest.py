from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

from difm.config import Settings
from difm.errors import DuplicateUser
from difm.main import create_app
from difm.models import Credentials, JobSummary, UserProfile
from difm.sessions import hash_password
from difm.stores import Stores


class FakeUserStore:
    """In-memory stand-in for the "User" table, keyed by id."""

    def __init__(self, rows: List[dict] = ()):
        self.rows: Dict[str, dict] = {r["id"]: dict(r) for r in rows}
        self.profile_reads = 0

    async def get_profile(self, user_id):
        self.profile_reads += 1
        row = self.rows.get(user_id)
        return UserProfile.from_row(row) if row else None

    async def get_credentials(self, email):
        for row in self.rows.values():
            if row["email"] == email:
                return Credentials(profile=UserProfile.from_row(row), password_hash=row.get("passwordHash"))
        return None

    async def create_user(self, *, email, name, password_hash, role, is_online):
        if any(r["email"] == email for r in self.rows.values()):
            raise DuplicateUser(email)
        row = {
            "id": f"u{len(self.rows) + 1}",
            "email": email,
            "name": name,
            "role": role.value,
            "isOnline": is_online,
            "passwordHash": password_hash,
        }
        self.rows[row["id"]] = row
        return UserProfile.from_row(row)

    async def set_online(self, user_id, is_online):
        self.rows[user_id]["isOnline"] = is_online
        return is_online

    async def update_location(self, user_id, latitude, longitude, *, go_online=False):
        row = self.rows[user_id]
        row["latitude"] = latitude
        row["longitude"] = longitude
        if go_online:
            row["isOnline"] = True

    async def find_by_emails(self, emails):
        return [
            {"email": r["email"], "role": r["role"]}
            for r in self.rows.values()
            if r["email"] in emails
        ]


class FakeJobStore:
    def __init__(self, rows: List[dict] = ()):
        self.rows = [dict(r) for r in rows]

    async def list_by_status(self, statuses):
        wanted = {s.value for s in statuses}
        return [JobSummary.from_row(r) for r in self.rows if r["status"] in wanted]

    async def count_by_descriptions(self, descriptions):
        return sum(1 for r in self.rows if r.get("description") in descriptions)

    async def delete_by_descriptions(self, descriptions):
        before = len(self.rows)
        self.rows = [r for r in self.rows if r.get("description") not in descriptions]
        return before - len(self.rows)

    async def recent(self, limit=5):
        return self.rows[:limit]


class FakeStores(Stores):
    closed = False
    fail_ping = False

    async def ping(self):
        if self.fail_ping:
            raise ConnectionError("connection refused")

    async def aclose(self):
        self.closed = True


ANN = {
    "id": "u123",
    "email": "a@b.com",
    "name": "Ann",
    "role": "CUSTOMER",
    "isOnline": True,
    "passwordHash": hash_password("hunter2"),
}

BOB = {
    "id": "p1",
    "email": "bob@trades.com",
    "name": "Bob",
    "role": "PROVIDER",
    "isOnline": False,
    "passwordHash": hash_password("wrench"),
}


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def user_store():
    return FakeUserStore([ANN, BOB])


@pytest.fixture
def job_store():
    return FakeJobStore([
        {"id": "j1", "status": "COMPLETED", "fixedPrice": 75.0, "description": "Fix tap"},
        {"id": "j2", "status": "CREATED", "fixedPrice": 40.0, "description": "Test Reschedule Required"},
        {"id": "j3", "status": "PAID", "fixedPrice": 80.0, "description": "Test Cancel from Reschedule Required"},
        {"id": "j4", "status": "CLOSED", "fixedPrice": None, "description": "Test Reschedule Required (copy)"},
    ])


@pytest.fixture
def stores(user_store, job_store):
    return FakeStores(users=user_store, jobs=job_store)


@pytest.fixture
def app(stores):
    return create_app(Settings(), stores_factory=lambda settings: stores)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
