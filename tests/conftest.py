"""Pytest fixtures for API tests."""

import os
import uuid
from collections.abc import Generator

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fluencyjet.api.deps import get_db
from fluencyjet.db import models  # noqa: F401  # Imported for side effects
from fluencyjet.db.base import Base
from fluencyjet.db.models import PracticeDay, PracticeExercise, User
from fluencyjet.main import create_app


@pytest.fixture()
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine, expire_on_commit=False
    )
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


def signup(
    client: TestClient,
    email: str,
    password: str = "verysecure",
    *,
    name: str = "Learner",
    track: str | None = None,
) -> dict:
    payload = {"name": name, "email": email, "password": password}
    if track:
        payload["track"] = track
    response = client.post("/api/auth/signup", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_user(client: TestClient, db_session: Session):
    """Sign up a user and optionally change their plan fields directly."""

    def _make(email: str, **fields) -> tuple[User, dict[str, str]]:
        data = signup(client, email, track=fields.pop("signup_track", None))
        user = db_session.get(User, uuid.UUID(data["user"]["id"]))
        for key, value in fields.items():
            setattr(user, key, value)
        db_session.commit()
        return user, auth_headers(data["access_token"])

    return _make


@pytest.fixture()
def seed_lessons(db_session: Session):
    """Create numbered practice days with a few ordered exercises each."""

    def _seed(level: str, numbers, *, per_day: int = 3, kind: str = "TYPING") -> list[PracticeDay]:
        days = []
        for number in numbers:
            day = PracticeDay(level=level, day_number=number, title_en=f"Day {number}", is_active=True)
            # Stored out of order so tests observe the order_index sort.
            for index in reversed(range(per_day)):
                sentence = f"I am learning lesson {number} part {index}"
                day.exercises.append(
                    PracticeExercise(
                        type=kind,
                        prompt_ta=f"பாடம் {number} - {index}",
                        expected={"answer": sentence, "sentence": sentence},
                        xp=150,
                        order_index=index,
                    )
                )
            db_session.add(day)
            days.append(day)
        db_session.commit()
        return days

    return _seed
