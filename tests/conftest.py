import os

# Must be set before touchbase.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TIMEZONE"] = "UTC"
os.environ["DIGEST_ENABLED"] = "false"
os.environ["PER_EMAIL_DELAY_SECONDS"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from touchbase import models  # noqa: F401  (registers tables)
from touchbase.db import Base, get_db


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine, monkeypatch):
    factory = sessionmaker(bind=engine, autoflush=False)
    monkeypatch.setattr("touchbase.scheduler.SessionLocal", factory)
    monkeypatch.setattr("touchbase.csv_import.SessionLocal", factory)
    monkeypatch.setattr("touchbase.csv_import.engine", engine)
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    from touchbase.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app, headers={"X-User-Id": "user-1"})
    app.dependency_overrides.clear()
