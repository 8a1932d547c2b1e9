"""Shared pytest fixtures."""

from collections.abc import AsyncGenerator, Callable
from typing import Any
from uuid import UUID

import pytest

from sessionmanager.config import Config
from sessionmanager.core.core import Core
from sessionmanager.core.modules.login_session.models import LoginSession, RequestContext
from sessionmanager.core.modules.user.models import SECURITY_ADMIN, User

FIREFOX_UBUNTU = "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:120.0) Gecko/20100101 Firefox/120.0"
CHROME_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def config():
    """Configuration backed by the in-memory store."""
    return Config(
        database_url="memory://",
        host="127.0.0.1",
        port=8000,
        debug=True,
        session_secret_key="test-secret",
        admin_password="admin-pass",
    )


@pytest.fixture
async def core(anyio_backend, config) -> AsyncGenerator[Core]:
    """Started core with the bootstrap admin user."""
    core = Core(config)
    async with core.lifespan():
        yield core


@pytest.fixture
def make_context() -> Callable[..., RequestContext]:
    """Factory for request contexts with a fresh transport session."""

    def _make(
        source_ip: str = "10.0.0.1",
        user_agent: str = FIREFOX_UBUNTU,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        session: dict[str, Any] | None = None,
    ) -> RequestContext:
        return RequestContext(
            source_ip=source_ip,
            user_agent=user_agent,
            headers=headers or {},
            params=params or {},
            session=session if session is not None else {},
        )

    return _make


@pytest.fixture
def alice():
    """A regular user."""
    return User(
        id=UUID("87654321-4321-8765-4321-876543218765"),
        username="alice",
        password_hash="$2b$12$hashed_password_here",
    )


@pytest.fixture
def bob():
    """Another regular user."""
    return User(
        id=UUID("12345678-1234-5678-1234-567812345678"),
        username="bob",
        password_hash="$2b$12$hashed_password_here",
    )


@pytest.fixture
def security_admin():
    """A user holding SECURITY_ADMIN."""
    return User(
        id=UUID("11111111-2222-3333-4444-555555555555"),
        username="carol",
        password_hash="$2b$12$hashed_password_here",
        permissions=[SECURITY_ADMIN],
    )


@pytest.fixture
def alice_session(alice):
    """A login session owned by alice."""
    return LoginSession(user_id=alice.id, ip_address="10.0.0.1", user_agent=FIREFOX_UBUNTU)
