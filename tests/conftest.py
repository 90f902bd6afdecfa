"""Shared fixtures: a throwaway SQLite database, seeded users and fake sockets."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "vakans_api_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"

from vakans.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from vakans.application.use_cases.users import create_user  # noqa: E402
from vakans.domain.entities import User, UserRole  # noqa: E402
from vakans.infrastructure.database import (  # noqa: E402
    Base,
    SessionLocal,
    engine,
    initialize_database,
)


class FakeConnection:
    """Stand-in for a websocket that records what was sent to it."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.accepted = False
        self.sent: list[dict[str, Any]] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: Any, mode: str = "text") -> None:
        if self.fail:
            raise RuntimeError("socket is closed")
        self.sent.append(data)

    def events(self) -> list[str]:
        return [frame["type"] for frame in self.sent]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_database() -> None:
    """Ensure the test database starts from a clean state for each test."""

    Base.metadata.drop_all(bind=engine)
    initialize_database()
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session():
    with SessionLocal() as db:
        yield db


@pytest.fixture
def default_password() -> str:
    return "secret123"


@pytest.fixture
def make_user(session, default_password):
    """Return a factory inserting users that share ``default_password``."""

    counter = {"value": 0}

    def _make_user(
        *,
        role: UserRole = UserRole.CANDIDATE,
        first_name: str = "Aziz",
        last_name: str = "Karimov",
        company_name: str | None = None,
        email: str | None = None,
        is_blocked: bool = False,
    ) -> User:
        counter["value"] += 1
        if role is UserRole.EMPLOYER and company_name is None:
            company_name = "Texnopark MChJ"
        user = create_user(
            session,
            email=email or f"user{counter['value']}@vakans.uz",
            password=default_password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            company_name=company_name,
        )
        if is_blocked:
            from vakans.infrastructure.models import UserModel

            session.get(UserModel, user.id).is_blocked = True
            session.commit()
            user.is_blocked = True
        return user

    return _make_user


@pytest.fixture
def connection_factory():
    return FakeConnection
