"""
Pytest configuration and fixtures for the collage tests
"""

import io
import os
import tempfile

# Test-friendly environment, set before the app is imported
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="collage-storage-"))
os.environ.setdefault("GEMINI_API_KEY", "")

import httpx
import pytest
from PIL import Image as PILImage

from collage.db import init_db, close_db
from collage.main import app
from collage.models.user import User
from collage.services.security import hash_password
from collage.services.storage import storage

PASSWORD = "TestPassword123"


@pytest.fixture
async def db(tmp_path):
    """Fresh SQLite database file per test."""
    await init_db(f"sqlite://{tmp_path}/test.sqlite3")
    try:
        yield
    finally:
        await close_db()


@pytest.fixture(autouse=True)
def media_dir(tmp_path, monkeypatch):
    media = tmp_path / "media"
    media.mkdir()
    monkeypatch.setattr(storage, "base", media)
    return media


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    PILImage.new("RGB", (8, 8), (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def make_user(db):
    async def _make(name="Alice", email=None):
        email = email or f"{name.lower()}@example.com"
        return await User.create(name=name, email=email, password_hash=hash_password(PASSWORD))
    return _make


@pytest.fixture
async def client(db):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def signup(client):
    """Register a user over HTTP and return bearer headers plus the user id."""
    async def _signup(name="Alice", email=None):
        email = email or f"{name.lower()}@example.com"
        resp = await client.post("/api/auth/register", json={"name": name, "email": email, "password": PASSWORD})
        assert resp.status_code == 201, resp.text
        user_id = resp.json()["user"]["id"]
        resp = await client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 200, resp.text
        client.cookies.clear()
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}, user_id
    return _signup
