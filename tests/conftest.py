from __future__ import annotations

from datetime import datetime, timezone
from typing import Generator

import pytest
from flask import Flask
from flask.testing import FlaskClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from pastelite import create_app
from pastelite.clock import ManualClock
from pastelite.db import Base
from pastelite.domain import models as _models  # noqa: F401
from pastelite.repositories.paste_repository import PasteRepository
from pastelite.services.paste_service import PasteService


START = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


# ---------------------------------------------------------------------------
# Database-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="function")
def engine() -> Generator:
    """
    Create a fresh in-memory SQLite engine for each test function.

    A single shared connection lets several sessions see the same data.
    """

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture(scope="function")
def session(session_factory) -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session
        session.rollback()


@pytest.fixture
def paste_repo(session: Session) -> PasteRepository:
    return PasteRepository(session=session)


@pytest.fixture
def paste_service(session_factory, clock: ManualClock) -> PasteService:
    """Service with its own session factory; each call gets a new session from the test engine."""
    return PasteService(session_factory=session_factory, clock=clock)


# ---------------------------------------------------------------------------
# Application fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app(clock: ManualClock) -> Flask:
    return create_app(
        "testing",
        clock=clock,
        config_overrides={
            "SQLALCHEMY_DATABASE_URI": "sqlite+pysqlite:///:memory:",
            "TEST_MODE": False,
        },
    )


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture
def create_paste(client: FlaskClient):
    """Create a paste through the API and return its id."""

    def _create(**payload) -> str:
        response = client.post("/api/pastes", json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()["id"]

    return _create
