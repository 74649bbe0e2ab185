"""Tests for admin content import and user management."""
from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fluencyjet.db.models import PracticeDay, PracticeExercise
from fluencyjet.services.exercise_import import parse_text_rows


def test_bulk_import_requires_admin(client: TestClient, make_user) -> None:
    _, headers = make_user("learner@example.com")

    response = client.post(
        "/api/admin/exercises/bulk",
        json={"lessonId": 1, "mode": "typing", "text": "வணக்கம் | Hello"},
        headers=headers,
    )

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_bulk_import_is_idempotent(client: TestClient, make_user, db_session: Session) -> None:
    _, headers = make_user("admin@example.com", is_admin=True)
    payload = {
        "lessonId": 2,
        "mode": "reorder",
        "difficulty": "beginner",
        "text": "நான் பள்ளிக்கு போகிறேன் | I am going to school\n\nbad line\nஅவள் படிக்கிறாள் | She is reading",
    }

    first = client.post("/api/admin/exercises/bulk", json=payload, headers=headers)
    second = client.post("/api/admin/exercises/bulk", json=payload, headers=headers)

    assert first.status_code == 200
    assert first.json()["inserted"] == 2
    assert first.json()["updated"] == 0
    assert second.json()["inserted"] == 0
    assert second.json()["updated"] == 2
    assert db_session.scalar(select(func.count(PracticeExercise.id))) == 2
    assert db_session.scalar(select(func.count(PracticeDay.id))) == 1
    exercise = db_session.scalars(
        select(PracticeExercise).where(PracticeExercise.order_index == 0)
    ).one()
    assert exercise.type == "REORDER"
    assert exercise.expected["words"] == ["I", "am", "going", "to", "school"]


def test_bulk_import_structured_rows_update_in_place(
    client: TestClient, make_user, db_session: Session
) -> None:
    _, headers = make_user("editor@example.com", is_admin=True)
    base = {"lessonId": "14", "mode": "typing", "difficulty": "intermediate"}

    client.post(
        "/api/admin/exercises/bulk",
        json={**base, "exercises": [{"tamil": "ஒன்று", "english": "One", "order_index": 5}]},
        headers=headers,
    )
    response = client.post(
        "/api/admin/exercises/bulk",
        json={**base, "exercises": [{"tamil": "ஒன்று", "english": "Number one", "order_index": 5, "xp": 90}]},
        headers=headers,
    )

    assert response.json()["updated"] == 1
    assert response.json()["difficulty"] == "intermediate"
    exercise = db_session.scalars(select(PracticeExercise)).one()
    assert exercise.expected["answer"] == "Number one"
    assert exercise.xp == 90


def test_bulk_import_validation(client: TestClient, make_user) -> None:
    _, headers = make_user("strict@example.com", is_admin=True)

    empty = client.post(
        "/api/admin/exercises/bulk", json={"lessonId": 1, "mode": "typing"}, headers=headers
    )
    bad_mode = client.post(
        "/api/admin/exercises/bulk",
        json={"lessonId": 1, "mode": "essay", "text": "a | b"},
        headers=headers,
    )
    bad_lesson = client.post(
        "/api/admin/exercises/bulk",
        json={"lessonId": "x", "mode": "typing", "text": "a | b"},
        headers=headers,
    )

    assert empty.status_code == 400
    assert bad_mode.status_code == 400
    assert bad_lesson.status_code == 400


def test_parse_text_rows_keeps_extra_pipes() -> None:
    rows = parse_text_rows("a | b | c\n | missing\nonly\nd|e", start_index=3)

    assert [(r.tamil, r.english, r.order_index) for r in rows] == [("a", "b | c", 3), ("d", "e", 4)]


def test_admin_grants_access(client: TestClient, make_user) -> None:
    _, admin_headers = make_user("boss@example.com", is_admin=True)
    learner, learner_headers = make_user("upgrade@example.com")

    response = client.patch(
        f"/api/admin/users/{learner.id}/access",
        json={"plan": "pro", "tier_level": "PRO", "has_access": True},
        headers=admin_headers,
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["plan"] == "PRO"
    assert user["tier_level"] == "pro"
    assert user["has_access"] is True
    assert client.get("/api/admin/users", headers=admin_headers).json()["users"]
    assert client.get(f"/api/admin/users/{learner.id}", headers=learner_headers).status_code == 403


def test_admin_access_update_validation(client: TestClient, make_user) -> None:
    _, headers = make_user("validator@example.com", is_admin=True)
    learner, _ = make_user("target@example.com")

    empty = client.patch(f"/api/admin/users/{learner.id}/access", json={}, headers=headers)
    missing = client.patch(
        "/api/admin/users/00000000-0000-0000-0000-000000000000/access",
        json={"has_access": True},
        headers=headers,
    )

    assert empty.status_code == 400
    assert missing.status_code == 404


def test_admin_xp_adjustment(client: TestClient, make_user) -> None:
    _, admin_headers = make_user("adjuster@example.com", is_admin=True)
    learner, learner_headers = make_user("adjusted@example.com")

    response = client.post(
        f"/api/admin/users/{learner.id}/xp",
        json={"amount": -40, "reason": "duplicate credit"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    event = response.json()["event"]
    assert event["event_type"] == "ADMIN_ADJUST"
    assert event["meta"]["reason"] == "duplicate credit"
    assert client.get("/api/xp/balance", headers=learner_headers).json()["lifetime_xp"] == -40


def test_plan_downgrade_resets_tier_level(client: TestClient, make_user, seed_lessons) -> None:
    seed_lessons("BEGINNER", [9], per_day=1)
    _, admin_headers = make_user("downgrader@example.com", is_admin=True)
    learner, learner_headers = make_user("lapsed@example.com", plan="PRO", tier_level="pro")
    assert client.get("/api/quizzes/by-lesson/9", headers=learner_headers).status_code == 200

    response = client.patch(
        f"/api/admin/users/{learner.id}/access", json={"plan": "free"}, headers=admin_headers
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["plan"] == "FREE"
    assert user["tier_level"] == "free"
    assert client.get("/api/quizzes/by-lesson/9", headers=learner_headers).status_code == 403
