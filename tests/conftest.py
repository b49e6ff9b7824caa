"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# In-memory database so importing the session module never touches the disk.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

# Ensure the package is importable when tests run from the repo root.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from vocab_srs.api.v1.dependencies import session_registry
from vocab_srs.db.base import Base
from vocab_srs.services.persistence import InMemorySnapshotGateway
from vocab_srs.services.review_service import LearnerLockRegistry


@pytest.fixture()
def engine():
    engine = create_engine("sqlite:///:memory:", future=True)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine) -> Session:
    SessionLocal = sessionmaker(bind=engine, future=True)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def gateway() -> InMemorySnapshotGateway:
    return InMemorySnapshotGateway()


@pytest.fixture()
def locks() -> LearnerLockRegistry:
    return LearnerLockRegistry()


@pytest.fixture()
def now() -> datetime:
    return datetime(2024, 3, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _reset_sessions():
    session_registry.clear()
    yield
    session_registry.clear()
