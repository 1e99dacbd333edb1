"""Shared fixtures for crud unit tests"""

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from memocards.crud.models import CardStateRecord


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="record")
def record_fixture(session):
    """A single collapsed card state persisted to the session."""
    r = CardStateRecord(path="notes/a.md", position=2, collapsed=True)
    session.add(r)
    session.flush()
    return r
