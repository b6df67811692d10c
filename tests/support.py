"""Shared fixtures: isolated in-memory database, injectable clock and an API test case."""

import unittest
from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_token_service
from app.core.database import get_db
from app.core.security import TokenConfig, TokenService
from app.main import app
from app.models import Base, User

TEST_SECRET = "unit-test-secret-0123456789-abcdefghij"
API = "/api"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 3, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


def make_token_service(
    clock: FakeClock | None = None,
    secret: str = TEST_SECRET,
    ttl: timedelta = timedelta(days=7),
) -> TokenService:
    return TokenService(TokenConfig(secret=secret, ttl=ttl), clock=clock or FakeClock())


def make_database() -> tuple[Engine, sessionmaker]:
    """One shared in-memory SQLite connection so every request sees the same tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine, sessionmaker(bind=engine, autocommit=False, autoflush=False)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class ApiTestCase(unittest.TestCase):
    """TestClient against the real app with the database and token service swapped out."""

    def setUp(self) -> None:
        self.engine, self.SessionTesting = make_database()
        self.clock = FakeClock()
        self.tokens = make_token_service(self.clock)

        def override_get_db() -> Generator[Session, None, None]:
            db = self.SessionTesting()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_token_service] = lambda: self.tokens
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.engine.dispose()

    def register(self, name: str = "Ann", email: str = "ann@x.com", password: str = "secret1") -> Any:
        return self.client.post(
            f"{API}/auth/register",
            json={"name": name, "email": email, "password": password},
        )

    def register_token(self, name: str = "Ann", email: str = "ann@x.com", password: str = "secret1") -> tuple[str, int]:
        resp = self.register(name, email, password)
        self.assertEqual(resp.status_code, 201, resp.text)
        body = resp.json()
        return body["token"], body["user"]["id"]

    def set_role(self, user_id: int, role: str) -> None:
        db = self.SessionTesting()
        try:
            db.query(User).filter(User.id == user_id).update({"role": role})
            db.commit()
        finally:
            db.close()

    def delete_user(self, user_id: int) -> None:
        db = self.SessionTesting()
        try:
            db.query(User).filter(User.id == user_id).delete()
            db.commit()
        finally:
            db.close()

    def create_post(self, token: str, **fields: Any) -> dict[str, Any]:
        body = {
            "title": "Hello world",
            "content": "A post body long enough to pass validation.",
            "category": "Technology",
        }
        body.update(fields)
        resp = self.client.post(f"{API}/posts", json=body, headers=bearer(token))
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()["post"]
