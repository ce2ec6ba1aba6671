# tests/conftest.py

from __future__ import annotations

from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from app.core.events import get_event_hub
from app.core.limiter import limiter
from app.database.supabase_client import get_supabase
from app.main import app
from app.modules.auth.security import create_access_token, hash_password

from .fakes import FakeSupabase, RecordingHub

API = "/api/v1"


@pytest.fixture()
def store() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture()
def events() -> RecordingHub:
    return RecordingHub()


@pytest.fixture()
def client(store: FakeSupabase, events: RecordingHub):
    """
    App wired to the in-memory store and a recording event hub.
    """
    app.dependency_overrides[get_supabase] = lambda: store
    app.dependency_overrides[get_event_hub] = lambda: events
    limiter.enabled = False
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
        limiter.enabled = True


@pytest.fixture()
def make_user(store: FakeSupabase) -> Callable[..., dict[str, Any]]:
    """
    Seed a user directly in the store. Returned dict carries ready-made auth headers.
    """

    def _make(username: str, name: str | None = None, password: str = "secret") -> dict[str, Any]:
        row = store.add(
            "users",
            username=username,
            password_hash=hash_password(password),
            name=name or username.title(),
            avatar_url="",
        )
        row["headers"] = {"Authorization": f"Bearer {create_access_token(row['id'])}"}
        return row

    return _make


@pytest.fixture()
def alice(make_user) -> dict[str, Any]:
    return make_user("alice", "Alice")


@pytest.fixture()
def group(store: FakeSupabase, alice: dict[str, Any]) -> dict[str, Any]:
    return store.add("groups", name="Eng", created_by=alice["id"])


@pytest.fixture()
def live_client(store: FakeSupabase):
    """
    App wired to the in-memory store but the real process-wide event hub.
    """
    app.dependency_overrides[get_supabase] = lambda: store
    limiter.enabled = False
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
        limiter.enabled = True
