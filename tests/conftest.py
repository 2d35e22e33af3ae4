"""
Pytest configuration and fixtures for all tests.
"""

import os
import tempfile

# settings are read at import time, so point them at sqlite first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="learnhub-logs-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from learnhub import models
from learnhub.database import Base, get_db
from learnhub.main import app
from learnhub.utils.auth import create_access_token
from learnhub.utils.principal import Principal


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _fk_on(dbapi_conn, _):
        dbapi_conn.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine):
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        session = Session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ============================================================================
# Data builders
# ============================================================================

@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role="student", name=None):
        counter["n"] += 1
        user = models.User(
            name=name or f"{role}-{counter['n']}",
            email=f"{role}{counter['n']}@example.com",
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_course(db):
    def _make(title="Python 101", materials=2, mentors=()):
        course = models.Course(title=title, description=f"{title} description")
        db.add(course)
        db.flush()
        for i in range(materials):
            db.add(models.CourseMaterial(course_id=course.id, title=f"Lesson {i + 1}", content="..."))
        for mentor in mentors:
            db.add(models.CourseMentor(course_id=course.id, mentor_id=mentor.id))
        db.commit()
        db.refresh(course)
        return course

    return _make


def principal_of(user) -> Principal:
    return Principal(id=user.id, role=user.role)


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}
