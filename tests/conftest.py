"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

import random
from datetime import datetime, timezone
from typing import Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.db.schema import Base
from src.db.sql_repository import (
    SQLGameRepository,
    SQLMatchmakingRepository,
    SQLPresenceRepository,
)

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

# A fixed moment in time, so timers and expiry dates are predictable
NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def rng() -> random.Random:
    """Seeded random generator: same bag order and starting player on every run."""
    return random.Random(1234)


@pytest.fixture
def db_session_repo() -> Generator[Session]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def second_session(db_session_repo: Session) -> Generator[Session]:
    """Another connection to the same tables. Mock a second server process handling the other player."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def game_repo(db_session_repo: Session) -> SQLGameRepository:
    return SQLGameRepository(db_session_repo)


@pytest.fixture
def matchmaking_repo(db_session_repo: Session) -> SQLMatchmakingRepository:
    return SQLMatchmakingRepository(db_session_repo)


@pytest.fixture
def presence_repo(db_session_repo: Session) -> SQLPresenceRepository:
    return SQLPresenceRepository(db_session_repo)
