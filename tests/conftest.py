"""Shared fixtures: a fresh SQLite database per test, seeded seats and users."""

import os

# Settings are read once, on first import of the package
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_reservations.db")
os.environ["ENABLE_CACHE"] = "false"
os.environ["SEED_SEATS_ON_STARTUP"] = "true"
os.environ["RUN_CONSISTENCY_AUDIT_ON_STARTUP"] = "true"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from typing import Dict  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from train_reservation_platform.database import close_database, get_db_session, init_database  # noqa: E402
from train_reservation_platform.main import app  # noqa: E402
from train_reservation_platform.models import User  # noqa: E402
from train_reservation_platform.services.user_service import UserService  # noqa: E402
from train_reservation_platform.utils.auth import generate_totp_secret  # noqa: E402

from helpers import PASSWORD  # noqa: E402


@pytest_asyncio.fixture(scope="function")
async def db(tmp_path):
    """Initialize a seeded database file private to the test.

    SQLite transactions take the write lock at BEGIN, so a test holding a
    read transaction open on one session blocks every other session.
    """
    await init_database(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'reservations.db'}",
        seed_seats=True,
        run_consistency_audit=True,
        use_cache=False
    )
    yield
    await close_database()


@pytest_asyncio.fixture(scope="function")
async def session(db):
    """A session on the test database, committed on exit."""
    async with get_db_session() as s:
        yield s


@pytest_asyncio.fixture(scope="function")
async def users(db) -> Dict[str, User]:
    """alice has no second factor, bob has TOTP, carol is an admin."""
    async with get_db_session() as s:
        service = UserService(s)
        created = {
            "alice": await service.create_user("alice", "Alice", PASSWORD),
            "bob": await service.create_user(
                "bob", "Bob", PASSWORD, otp_secret=generate_totp_secret()
            ),
            "carol": await service.create_user("carol", "Carol", PASSWORD, is_admin=True),
        }
    return created


@pytest_asyncio.fixture(scope="function")
async def client(db):
    """Async HTTP client talking to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
