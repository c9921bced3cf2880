"""Pytest fixtures: in-memory database, fake WhatsApp transport and a fake clock."""
from __future__ import annotations

import os
from typing import Callable, Dict, Iterator, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_API_TOKEN"] = "test-admin-token"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["WHATSAPP_PROVIDER"] = "none"
os.environ["LOG_DIR"] = ""
os.environ["TIMEZONE"] = "Asia/Jakarta"

from app.api import deps
from app.core.phone import WHATSAPP_JID_SUFFIX, strip_suffix
from app.db.session import get_db
from app.main import app
from app.models import Base
from app.services.dispatch_service import NotificationDispatcher
from app.services.transport import Transport, get_transport


class FakeClock:
    """Virtual time: sleeping advances `now` instantly and records the delay."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeTransport(Transport):
    name = "fake"
    address_suffix = WHATSAPP_JID_SUFFIX

    def __init__(
        self,
        *,
        clock: FakeClock | None = None,
        available: bool = True,
        script: List[object] | None = None,
        fail_for: Dict[str, BaseException] | None = None,
        lookup_results: List[object] | None = None,
    ) -> None:
        self.clock = clock
        self.available = available
        self.script = list(script or [])
        self.fail_for = dict(fail_for or {})
        self.lookup_results = list(lookup_results or [])
        self.calls: List[dict] = []
        self.lookups: List[str] = []

    def is_available(self) -> bool:
        return self.available

    async def send(self, address: str, body: str) -> str | None:
        self.calls.append(
            {
                "address": address,
                "body": body,
                "at": self.clock.now if self.clock else None,
            }
        )
        if self.script:
            outcome = self.script.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            if callable(outcome):
                return await outcome(address, body)
            return "fake-id"
        error = self.fail_for.get(strip_suffix(address))
        if error is not None:
            raise error
        return "fake-id"

    def supports_lookup(self) -> bool:
        return bool(self.lookup_results)

    async def lookup(self, address: str) -> bool:
        self.lookups.append(address)
        outcome = self.lookup_results.pop(0) if self.lookup_results else True
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return await outcome(address)
        return bool(outcome)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def transport(clock: FakeClock) -> FakeTransport:
    return FakeTransport(clock=clock)


@pytest.fixture()
def make_transport(clock: FakeClock) -> Callable[..., FakeTransport]:
    def _factory(**kwargs) -> FakeTransport:
        kwargs.setdefault("clock", clock)
        return FakeTransport(**kwargs)

    return _factory


@pytest.fixture()
def dispatcher(transport: FakeTransport, clock: FakeClock) -> NotificationDispatcher:
    return NotificationDispatcher(transport, sleep=clock.sleep)


@pytest.fixture()
def session_factory() -> sessionmaker:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture()
def db_session(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def test_client(
    db_session: Session,
    transport: FakeTransport,
    clock: FakeClock,
) -> Iterator[TestClient]:
    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_transport] = lambda: transport
    app.dependency_overrides[deps.get_dispatcher] = lambda: NotificationDispatcher(
        transport, sleep=clock.sleep
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
