"""
pytest Fixtures for Campus Resources API Tests

This file contains shared fixtures used across all test files.

FIXTURE SCOPES:
- function (default): New instance per test function
- session: Single instance for entire test session

Every test gets its own in-memory database. The rating service commits and
rolls back on its own (see app.services.ratings.run_locked), so wrapping a
test in an outer transaction and rolling it back afterwards would not
isolate anything; a fresh database per test does.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
# This disables rate limiting, sets a test secret key and keeps the
# application engine off PostgreSQL
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import Resource, User
from app.services.security import create_access_token, hash_password

# bcrypt is slow on purpose; hash once for every fixture user
TEST_PASSWORD = "SecurePass123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """
    SQLite in-memory engine, fresh for each test.

    StaticPool keeps the single connection alive for the whole test.
    Without it, the in-memory database would disappear between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path) -> Generator[Engine, None, None]:
    """
    File-backed SQLite engine for tests that need several real connections,
    e.g. two threads or two sessions writing the same resource.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ratings.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    engine.dispose()


@pytest.fixture
def db_session(engine: Engine) -> Generator[Session, None, None]:
    """Database session for one test."""
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )
    session = TestSessionLocal()

    yield session

    session.close()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database.

    We override the get_db dependency to use our test session.
    """

    def override_get_db():
        """Provide test database session instead of real one."""
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# HELPERS
# =============================================================================


def get_auth_header(user: User) -> dict:
    """Create authorization header for a user."""
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


def add_user(db: Session, username: str, **extra) -> User:
    """Insert and return a user with the shared test password."""
    user = User(
        email=f"{username}@college.edu",
        username=username,
        hashed_password=TEST_PASSWORD_HASH,
        full_name=username.title(),
        is_active=True,
        **extra,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def author(db_session: Session) -> User:
    """The user who uploads sample_resource."""
    return add_user(db_session, "author", department="Mathematics")


@pytest.fixture
def sample_user(db_session: Session) -> User:
    """A user who rates other people's resources."""
    return add_user(db_session, "student")


@pytest.fixture
def second_user(db_session: Session) -> User:
    return add_user(db_session, "second")


@pytest.fixture
def superuser(db_session: Session) -> User:
    """A moderator."""
    return add_user(db_session, "moderator", is_superuser=True)


@pytest.fixture
def make_users(db_session: Session) -> Callable[[int], list[User]]:
    """Factory for N extra users (raters, reporters)."""

    def _make(count: int, prefix: str = "rater") -> list[User]:
        return [add_user(db_session, f"{prefix}{i}") for i in range(count)]

    return _make


@pytest.fixture
def sample_resource(db_session: Session, author: User) -> Resource:
    """An active resource with no ratings yet."""
    resource = Resource(
        title="Linear Algebra Midterm Notes",
        description="Eigenvalues, eigenvectors and diagonalization.",
        subject="Mathematics",
        semester="3",
        resource_type="Notes",
        author_id=author.id,
    )
    db_session.add(resource)
    db_session.commit()
    db_session.refresh(resource)
    return resource
