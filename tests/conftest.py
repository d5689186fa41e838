from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models import Room, UserProfile, UserRole, Vote

NOW = datetime(2024, 5, 10, 9, 0, 0)


@pytest.fixture()
def engine():
    """每個測試一個全新的 in-memory SQLite。"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def add_profile(db: Session, user_id: str, role: UserRole = UserRole.ADMIN, count: int = 0,
                last=None) -> UserProfile:
    profile = UserProfile(
        id=user_id,
        username=user_id,
        role=role,
        daily_vote_count=count,
        last_quota_timestamp=last,
    )
    db.add(profile)
    db.commit()
    return profile


def add_room(db: Session, owner_id: str, code: str = "ABC123", is_voting_open: bool = True) -> Room:
    room = Room(code=code, owner_id=owner_id, is_voting_open=is_voting_open, created_at=NOW)
    db.add(room)
    db.commit()
    return room


def add_vote(db: Session, room_id: str, voter_id: str, option: str, timestamp=NOW) -> Vote:
    vote = Vote(room_id=room_id, voter_id=voter_id, vote_option=option, timestamp=timestamp)
    db.add(vote)
    db.commit()
    return vote


@pytest.fixture()
def admin(db) -> UserProfile:
    return add_profile(db, "admin-1")


@pytest.fixture()
def room(db, admin) -> Room:
    return add_room(db, admin.id)
