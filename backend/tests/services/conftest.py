"""Service test fixtures — async DB, FastAPI test client, seeded users and session cookies.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB sessions
    - get_settings overridden with a fixed test configuration (owner, secret)
    - Tag generation replaced by FakeTagGenerator (no network)
    - db_manager patched so the readiness probe hits the test DB

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
    - Session cookies minted with the real sign_session: auth runs end to end
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import get_storage, get_tag_generator
from app.config import Settings, get_settings
from app.db.base import Base
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.infrastructure.file_storage import LocalFileStorage
from app.infrastructure.session_tokens import SessionPayload, sign_session
from app.models.case_study import CaseStudy
from app.models.user import User
import app.infrastructure.database as db_module
from app.main import app

OWNER_OPEN_ID = "owner-open-id"
JWT_SECRET = "test-secret"


class FakeTagGenerator:
    """Records calls and returns deterministic tags."""

    def __init__(self):
        self.calls = []

    async def generate(self, title, description, tools, category, user_id=None):
        self.calls.append({"title": title, "tools": tools, "category": category})
        return ["AI", category]


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret=JWT_SECRET,
        owner_open_id=OWNER_OPEN_ID,
        google_client_id="test-client-id",
        google_client_secret="test-client-secret",
        public_base_url="https://cai.example",
        tag_generation_enabled=False,
        upload_dir=str(tmp_path / "uploads"),
        upload_max_bytes=1024,
    )


@pytest.fixture
def tag_generator():
    return FakeTagGenerator()


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory, test_settings, tag_generator):
    """FastAPI test client with DB, settings and collaborators overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_tag_generator] = lambda: tag_generator
    app.dependency_overrides[get_storage] = lambda: LocalFileStorage(
        test_settings.upload_dir, test_settings.upload_url_prefix,
    )

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


# ─── Seed helpers ────────────────────────────────────────────────

async def _add_user(db, open_id, name, role="user", login_method="google", email=None):
    user = User(
        open_id=open_id, name=name, role=role,
        login_method=login_method, email=email or f"{open_id}@example.com",
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def owner(test_db):
    return await _add_user(test_db, OWNER_OPEN_ID, "Owner", role="admin")


@pytest.fixture
async def admin(test_db):
    return await _add_user(test_db, "admin-open-id", "Admin", role="admin")


@pytest.fixture
async def member(test_db):
    return await _add_user(test_db, "member-open-id", "Member")


@pytest.fixture
async def other_member(test_db):
    return await _add_user(test_db, "other-open-id", "Other")


@pytest.fixture
async def guest(test_db):
    """Signed-in user without a Google login (cannot post)."""
    return await _add_user(test_db, "guest-open-id", "Guest", login_method=None)


@pytest.fixture
def auth_headers():
    """Build a Cookie header carrying a valid session for user."""
    def _headers(user: User) -> dict:
        token = sign_session(
            SessionPayload(open_id=user.open_id, app_id="test-app", name=user.name or "x"),
            JWT_SECRET, 3600,
        )
        return {"Cookie": f"app_session_id={token}"}
    return _headers


@pytest.fixture
def make_case(test_db):
    """Insert a case study directly (explicit timestamps for ordering tests)."""
    async def _make(user: User, title="事例", created_at=None, **fields):
        created = created_at or datetime.now(timezone.utc)
        case = CaseStudy(
            user_id=user.id,
            title=title,
            description=fields.pop("description", "説明"),
            category=fields.pop("category", "prompt"),
            tools=fields.pop("tools", ["ChatGPT"]),
            challenge=fields.pop("challenge", "課題"),
            solution=fields.pop("solution", "解決策"),
            steps=fields.pop("steps", ["手順1"]),
            tags=fields.pop("tags", ["AI"]),
            created_at=created,
            updated_at=fields.pop("updated_at", created),
            **fields,
        )
        test_db.add(case)
        await test_db.commit()
        await test_db.refresh(case)
        return case
    return _make


@pytest.fixture
def case_payload():
    """Valid create/update body; keyword overrides replace fields."""
    def _payload(**overrides) -> dict:
        payload = {
            "title": "議事録の自動要約",
            "description": "会議の録音から要約を作成",
            "category": "automation",
            "tools": ["ChatGPT", "Zoom", "Slack"],
            "challenge": "議事録作成に時間がかかる",
            "solution": "文字起こしをLLMで要約",
            "steps": ["録音", "文字起こし", "要約"],
            "impact": "",
        }
        payload.update(overrides)
        return payload
    return _payload
