import os
import sys
import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/99")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("CONTENT_DIR", os.path.join(PROJECT_ROOT, "content"))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import academy.infrastructure.db
from academy.infrastructure.db import get_db
from academy.infrastructure.content import ContentRepository, get_content
from academy.infrastructure.models import Base
from academy.infrastructure.security import create_access_token

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

academy.infrastructure.db.engine = test_engine
academy.infrastructure.db.SessionLocal = TestingSessionLocal

import academy.main
academy.main.engine = test_engine
from academy.main import app

CONTENT_DIR = os.path.join(PROJECT_ROOT, "content")


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db():
    """Session on a fresh in-memory schema"""
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def content():
    return ContentRepository(CONTENT_DIR)


@pytest.fixture
def client(content):
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_content] = lambda: content
    yield TestClient(app)
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=test_engine)


def bearer(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(sub=user_id)}"}


@pytest.fixture
def auth_headers():
    return bearer("user-42")
