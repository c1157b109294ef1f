"""
Shared fixtures.

Environment is set before any ``orgstruct`` import so the settings and the
module-level engine point at an in-memory SQLite database.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CREATE_SCHEMA_ON_STARTUP", "false")
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("ENV", "local")

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def schema():
    """Fresh tables for every test."""
    from orgstruct.db import Base, create_schema, engine

    create_schema()
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session(schema):
    from orgstruct.db import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def sql_repo(db_session):
    from orgstruct.repositories.sql import SqlRepository

    return SqlRepository(db_session)


@pytest.fixture()
def memory_repo():
    from orgstruct.repositories.memory import InMemoryRepository

    return InMemoryRepository()


@pytest.fixture()
def client(schema):
    from orgstruct.main import app

    return TestClient(app)
