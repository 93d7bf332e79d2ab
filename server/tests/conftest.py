"""
Pytest configuration: an in-memory stand-in for the Mongo-backed Database
and helpers to sign a user into the test client.
"""
import copy
import os
import uuid

import pytest
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")

from fastapi.testclient import TestClient  # noqa: E402

from main import app  # noqa: E402
from database.DB import get_db  # noqa: E402
from helpers.DateTimeSerializer import DateTimeSerializerVisitor  # noqa: E402
from routes.dependencies import get_current_user  # noqa: E402


def _get(doc, field):
    value = doc
    for part in field.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _matches(doc, query):
    for field, condition in (query or {}).items():
        value = _get(doc, field)
        if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
            for op, operand in condition.items():
                if op == "$in" and value not in operand:
                    return False
                if op == "$ne" and value == operand:
                    return False
                if op == "$gte" and (value is None or value < operand):
                    return False
                if op == "$lt" and (value is None or value >= operand):
                    return False
        elif value != condition:
            return False
    return True


class FakeDatabase:
    """Implements the subset of Database used by the app, over plain dicts"""

    UNIQUE = {
        "event_registrations": ("user_id", "event_id"),
        "evaluations": ("captain_id", "volunteer_id", "event_id", "team_id"),
    }

    def __init__(self):
        self.collections = {}
        self.fail_on = set()
        self.serializer = DateTimeSerializerVisitor().visit

    def _collection(self, name):
        if name in self.fail_on:
            raise ServerSelectionTimeoutError(f"{name} unavailable")
        return self.collections.setdefault(name, [])

    def insert(self, name, doc):
        """Synchronous seeding helper"""
        doc = copy.deepcopy(doc)
        doc.setdefault("id", str(uuid.uuid4()))
        doc.setdefault("_id", str(uuid.uuid4()))
        self.collections.setdefault(name, []).append(doc)
        return doc

    def all(self, name):
        return self.collections.get(name, [])

    async def add(self, collection_name, data):
        collection = self._collection(collection_name)
        keys = self.UNIQUE.get(collection_name)
        if keys and any(all(d.get(k) == data.get(k) for k in keys) for d in collection):
            raise DuplicateKeyError("duplicate key", code=11000)
        doc = self.insert(collection_name, data)
        return {"status": 200, "data": self.serializer(copy.deepcopy(doc)), "message": "Document added successfully"}

    async def find_many(self, collection_name, query=None, projection=None, sort=None, limit=None):
        docs = [d for d in self._collection(collection_name) if _matches(d, query)]
        for field, direction in reversed(sort or []):
            docs.sort(key=lambda d: (_get(d, field) is None, _get(d, field) or ""), reverse=direction < 0)
        if limit:
            docs = docs[:limit]
        return {"status": 200, "data": [self.serializer(copy.deepcopy(d)) for d in docs], "message": "Documents retrieved successfully"}

    async def find_one(self, collection_name, query):
        for doc in self._collection(collection_name):
            if _matches(doc, query):
                return self.serializer(copy.deepcopy(doc))
        return None

    async def count(self, collection_name, query=None):
        return sum(1 for d in self._collection(collection_name) if _matches(d, query))

    def _apply(self, doc, update):
        for field, value in update.get("$set", {}).items():
            doc[field] = value
        for field, value in update.get("$inc", {}).items():
            doc[field] = (doc.get(field) or 0) + value
        for field, value in update.get("$push", {}).items():
            doc.setdefault(field, []).append(value)

    async def update(self, collection_name, query, update_string):
        for doc in self._collection(collection_name):
            if _matches(doc, query):
                self._apply(doc, update_string)
                return {"status": 200, "matched_count": 1, "modified_count": 1, "message": "Document updated successfully"}
        return {"status": 404, "matched_count": 0, "modified_count": 0, "message": "Document not found or no changes made"}

    async def update_many(self, collection_name, query, update_string):
        matched = [d for d in self._collection(collection_name) if _matches(d, query)]
        for doc in matched:
            self._apply(doc, update_string)
        return {"status": 200, "matched_count": len(matched), "modified_count": len(matched), "message": f"Updated {len(matched)} documents"}


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def client(fake_db):
    """Create a test client backed by the in-memory database"""
    app.dependency_overrides[get_db] = lambda: fake_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Sign a user into every following request: login(user_dict)"""
    def _login(user):
        session_user = {key: user[key] for key in ("id", "email", "full_name", "role")}
        app.dependency_overrides[get_current_user] = lambda: session_user
        return session_user
    return _login


@pytest.fixture
def seed(fake_db):
    """Builders for the documents most tests need"""
    class Seed:
        def user(self, role="volunteer", **extra):
            uid = str(uuid.uuid4())
            return fake_db.insert("users", {
                "id": uid,
                "email": f"{uid[:8]}@example.org",
                "full_name": f"User {uid[:4]}",
                "role": role,
                "is_active": True,
                **extra,
            })

        def event(self, event_date="2099-01-01", **extra):
            return fake_db.insert("events", {
                "title": "Beach cleanup",
                "description": "Clean the beach",
                "location": "North beach",
                "event_date": event_date,
                "start_time": "09:00",
                "end_time": "12:00",
                "status": "published",
                "category": "environment",
                "max_volunteers": 10,
                "current_volunteers": 0,
                **extra,
            })

        def team(self, event, captain, **extra):
            team = fake_db.insert("teams", {
                "name": "Blue team",
                "event_id": event["id"],
                "captain_id": captain["id"],
                "max_volunteers": 5,
                "current_volunteers": 1,
                **extra,
            })
            self.member(team, captain, role_in_team="captain")
            return team

        def member(self, team, user, role_in_team="volunteer", status="active"):
            return fake_db.insert("team_members", {
                "team_id": team["id"],
                "user_id": user["id"],
                "role_in_team": role_in_team,
                "status": status,
                "joined_at": "2025-01-01T00:00:00",
                "left_at": None,
            })

        def registration(self, event, user, status="confirmed"):
            return fake_db.insert("event_registrations", {
                "event_id": event["id"],
                "user_id": user["id"],
                "status": status,
                "registered_at": "2025-01-01T00:00:00",
            })

    return Seed()
