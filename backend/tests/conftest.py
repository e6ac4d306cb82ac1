from pathlib import Path
import os
import shutil
import tempfile
import uuid
import pytest

# Point the app at a throwaway SQLite file before `app.config` is imported.
_DB_DIR = Path(tempfile.mkdtemp(prefix="innovatux-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"


@pytest.fixture(scope="session", autouse=True)
def reset_db():
    """Remove the temporary SQLite database after the run."""
    yield
    shutil.rmtree(_DB_DIR, ignore_errors=True)


@pytest.fixture
def session():
    from sqlmodel import Session
    from app.database import engine, create_db_and_tables
    create_db_and_tables()
    with Session(engine) as s:
        yield s


@pytest.fixture
def make_community(session):
    from app import models, repositories

    def _make(name=None, **kwargs):
        community = models.Community(name=name or f"community-{uuid.uuid4().hex[:8]}", **kwargs)
        return repositories.CommunityRepository(session).create(community)
    return _make


@pytest.fixture
def signup_payload():
    """Factory for a valid, unique signup body."""
    def _payload(**overrides):
        suffix = uuid.uuid4().hex[:8]
        payload = {
            'first_name': 'Ada',
            'last_name': 'Lovelace',
            'email': f'ada{suffix}@example.com',
            'username': f'ada.{suffix}',
            'age': '28',
            'gender': 'Female',
            'password': 'engine42',
        }
        payload.update(overrides)
        return payload
    return _payload


@pytest.fixture
def membership_count(session):
    """Count `community_user` rows for a (user, community) pair."""
    from sqlmodel import select
    from app import models

    def _count(user_id, community_id):
        stmt = select(models.CommunityUser).where(
            models.CommunityUser.user_id == user_id,
            models.CommunityUser.community_id == community_id,
        )
        return len(session.exec(stmt).all())
    return _count
