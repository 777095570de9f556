from datetime import datetime, timezone
from itertools import count

import pytest
from fastapi.testclient import TestClient

from admin import SharedSecretAuthorizer
from database import MemoryStore, get_store
from main import app, get_authorizer, get_safety_check, get_upload_dir
from models import User
from uploads import UploadedFile

TEST_ADMIN_KEY = "test-admin-key"

_ids = count(1)


@pytest.fixture
def make_user():
    def _make(**overrides) -> User:
        n = next(_ids)
        fields = dict(
            id=n,
            name=f"User {n}",
            email=f"user{n}@example.com",
            age=25,
            gender="Secret",
            interested_in="Everyone",
            looking_for="Connection",
            interests=[],
            social_qr=f"/uploads/qr-{n}.png",
            registered_at=datetime(2026, 2, 1, tzinfo=timezone.utc),
        )
        fields.update(overrides)
        return User(**fields)
    return _make


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def make_upload(tmp_path):
    def _make(name: str) -> UploadedFile:
        path = tmp_path / name
        path.write_bytes(b"\x89PNG fake image")
        return UploadedFile(path=str(path), url=f"/uploads/{name}")
    return _make


@pytest.fixture
def safety_verdicts():
    """Paths seen by the safety check; add a path to `blocked` to reject it."""
    return {"seen": [], "blocked": set()}


@pytest.fixture
def client(store, tmp_path, safety_verdicts):
    async def fake_safety_check(path: str) -> bool:
        safety_verdicts["seen"].append(path)
        return path not in safety_verdicts["blocked"]

    upload_dir = tmp_path / "uploads"
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_authorizer] = lambda: SharedSecretAuthorizer(TEST_ADMIN_KEY)
    app.dependency_overrides[get_safety_check] = lambda: fake_safety_check
    app.dependency_overrides[get_upload_dir] = lambda: str(upload_dir)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
