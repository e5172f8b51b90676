"""
Referral API: shared pytest fixtures

Provides:
- an isolated in-memory SQLite engine per test
- a RegistrationService bound to that engine
- a FastAPI TestClient whose get_db dependency points at the same engine
"""

from __future__ import annotations

import os

# Settings are read at import time; tests never touch a real database.
os.environ["DATABASE_URL"] = "sqlite://"

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from referral_api.core.config import Settings
from referral_api.database import get_db, init_db
from referral_api.main import app
from referral_api.services.registration import RegistrationService


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        REFERRAL_BASE_URL="https://refer.example/",
        ID_GENERATION_ATTEMPTS=3,
        _env_file=None,
    )


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database; StaticPool keeps every session on one connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def service(db_session: Session, test_settings: Settings) -> RegistrationService:
    return RegistrationService(db_session, settings=test_settings)


@pytest.fixture
def client(session_factory: sessionmaker) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
