"""Test configuration and fixtures.

Points the app at a file-based SQLite database and redirects both catalog
snapshots into a per-test tmp directory, so tests never touch a developer's
Postgres or the real comic.json files.
"""

import json
import os
from typing import Generator

# Set env flags BEFORE importing application modules
os.environ.setdefault("DEBUG", "1")
os.environ.setdefault("TESTING", "1")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test_catalog.sqlite")
os.environ.setdefault("WATCH_SNAPSHOTS", "0")
os.environ.setdefault("SYNC_ON_STARTUP", "0")
os.environ.setdefault("LOG_FILE", "logs/test.log")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import database
from database import Base, get_db
from main import app  # imports routers & models
from services.catalogs import build_catalogs
from services.sync import build_syncs, get_catalog_syncs

TEST_DATABASE_URL = os.environ["TEST_DATABASE_URL"]

engine = create_engine(
    TEST_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingHub:
    """Stands in for the websocket hub; keeps every broadcast event."""

    def __init__(self):
        self.events = []

    async def broadcast(self, event):
        self.events.append(event)

    @property
    def kinds(self):
        return [e.kind.value for e in self.events]


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def fresh_tables() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db_session() -> Generator:  # type: ignore
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def snapshot_paths(tmp_path):
    return {"comics": tmp_path / "comic.json", "upcoming": tmp_path / "upcomingcomics.json"}


@pytest.fixture()
def catalogs(snapshot_paths):
    return build_catalogs(snapshot_paths["comics"], snapshot_paths["upcoming"])


@pytest.fixture()
def hub():
    return RecordingHub()


@pytest.fixture()
def syncs(catalogs, hub):
    return build_syncs(catalogs, session_factory=TestingSessionLocal, hub=hub, write_back=True)


@pytest.fixture(autouse=True)
def override_dependencies(syncs):  # type: ignore
    """Route FastAPI dependencies to the SQLite database and tmp snapshots."""
    def _get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_catalog_syncs] = lambda: syncs

    # Also redirect direct imports of SessionLocal within modules
    database.SessionLocal = TestingSessionLocal  # type: ignore
    yield
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_catalog_syncs, None)


@pytest.fixture(scope="session")
def client() -> TestClient:  # type: ignore
    return TestClient(app)
