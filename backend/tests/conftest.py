"""
Pytest configuration and shared fixtures for backend tests.
"""

import os
import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# No pauses between model calls or batch posts, and no external pings
os.environ.setdefault("ENHANCEMENT_DELAY_SECONDS", "0")
os.environ.setdefault("BATCH_DELAY_SECONDS", "0")
os.environ.setdefault("SEARCH_PING_ENABLED", "false")
os.environ.setdefault("AUTO_GENERATION_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import json
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Import after path is set
from core.interfaces.services import CompletionClient, ModelTier, SearchEngineNotifier
from core.security import TokenService
from infrastructure.config import get_settings
from infrastructure.database.connection import get_db
from infrastructure.database.models import Base, User

settings = get_settings()
token_service = TokenService(secret_key=settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


# Database URL for testing (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ============================================================================
# Fakes
# ============================================================================


class FakeCompletionClient(CompletionClient):
    """
    Scripted completion client.

    Replies are taken per tier from queues set with ``script``; when a tier's
    queue is empty the tier default is used. A reply that is an Exception
    instance is raised instead of returned. Every call is recorded.
    """

    def __init__(self):
        self.calls: list[dict] = []
        self._queues: dict[ModelTier, list] = {tier: [] for tier in ModelTier}
        self.defaults: dict[ModelTier, object] = {
            ModelTier.STRUCTURAL: json.dumps(
                {
                    "content": "<h2>Intro</h2><p>Hello</p>",
                    "metaDescription": "A short description",
                    "faqSection": [],
                    "relatedKeywords": [],
                }
            ),
            ModelTier.ENHANCEMENT: None,  # None echoes the original section back
            ModelTier.SUGGESTION: json.dumps({"topics": []}),
        }

    def script(self, tier: ModelTier, *replies) -> "FakeCompletionClient":
        self._queues[tier].extend(replies)
        return self

    def calls_for(self, tier: ModelTier) -> list[dict]:
        return [c for c in self.calls if c["tier"] == tier]

    async def complete(
        self,
        prompt: str,
        tier: ModelTier,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        self.calls.append(
            {"prompt": prompt, "tier": tier, "max_tokens": max_tokens, "temperature": temperature}
        )
        queue = self._queues[tier]
        reply = queue.pop(0) if queue else self.defaults[tier]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(prompt)
        if reply is None:
            return _original_section(prompt)
        return reply


def _original_section(prompt: str) -> str:
    """Pull the 'Original Content' block back out of an enhancement prompt."""
    marker = "Original Content:\n"
    start = prompt.find(marker)
    if start == -1:
        return ""
    start += len(marker)
    end = prompt.find("\n\nPlease expand this section", start)
    return prompt[start:end] if end != -1 else prompt[start:]


class FakeNotifier(SearchEngineNotifier):
    """Records notification calls. Optionally raises."""

    def __init__(self, error: Optional[Exception] = None):
        self.sitemap_pings = 0
        self.submitted: list[str] = []
        self._error = error

    async def ping_sitemap(self) -> dict[str, bool]:
        self.sitemap_pings += 1
        if self._error:
            raise self._error
        return {"google": True, "bing": True}

    async def submit_url(self, url: str) -> dict[str, bool]:
        self.submitted.append(url)
        if self._error:
            raise self._error
        return {"indexnow": True}


async def no_sleep(_seconds: float) -> None:
    return None


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session
        await session.rollback()


# ============================================================================
# Users and auth
# ============================================================================


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an admin user."""
    user = User(
        id=str(uuid4()),
        email="admin@myerasediting.com",
        name="Admin User",
        role="admin",
        status="active",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def regular_user(db_session: AsyncSession) -> User:
    """Create a non-admin user."""
    user = User(
        id=str(uuid4()),
        email="student@example.com",
        name="Regular User",
        role="user",
        status="active",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    """Authentication headers for the admin user."""
    access_token = token_service.create_access_token(user_id=admin_user.id, role=admin_user.role)
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def user_headers(regular_user: User) -> dict:
    """Authentication headers for the non-admin user."""
    access_token = token_service.create_access_token(user_id=regular_user.id)
    return {"Authorization": f"Bearer {access_token}"}


# ============================================================================
# Collaborators
# ============================================================================


@pytest.fixture
def fake_completion() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def fake_notifier() -> FakeNotifier:
    return FakeNotifier()


# ============================================================================
# HTTP client
# ============================================================================


@pytest.fixture
async def async_client(
    db_session: AsyncSession,
    fake_completion: FakeCompletionClient,
    fake_notifier: FakeNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here to avoid circular imports
    from api.deps_blog import get_completion_client, get_search_notifier, get_session_factory
    from main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    @asynccontextmanager
    async def shared_session():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_completion_client] = lambda: fake_completion
    app.dependency_overrides[get_search_notifier] = lambda: fake_notifier
    app.dependency_overrides[get_session_factory] = lambda: shared_session

    # Reset rate limiter state between tests to prevent cross-test 429s
    if hasattr(app.state, "limiter"):
        app.state.limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

