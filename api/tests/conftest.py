"""
Pytest configuration for the CreditSea API tests.

Adds the api directory to the import path and points the app at a throwaway
SQLite database before anything under ``app`` is imported.
"""

import os
import sys
import tempfile
from pathlib import Path

import pytest

API_DIR = Path(__file__).resolve().parents[1]
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

_DB_DIR = tempfile.mkdtemp(prefix="creditsea-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ.setdefault("LOG_FORMAT", "text")

FIXTURES = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def experian_xml() -> str:
    return (FIXTURES / "experian_report.xml").read_text(encoding="utf-8")


@pytest.fixture
def generic_xml() -> str:
    return (FIXTURES / "generic_report.xml").read_text(encoding="utf-8")


@pytest.fixture
def db_session():
    from app.db import Base, SessionLocal, engine

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        with engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(table.delete())


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client
