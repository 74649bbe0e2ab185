"""Tests for the XP ledger service and endpoints."""
from __future__ import annotations

import threading
import warnings
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import OperationalError, SADeprecationWarning
from sqlalchemy.orm import Session, sessionmaker

from fluencyjet.db.base import Base
from fluencyjet.db.models import PracticeAttempt, User, UserProgress, XpEvent
from fluencyjet.services.xp_ledger import XpLedgerService
from fluencyjet.utils.exceptions import (
    InvalidAmountError,
    InvalidEventTypeError,
    StorageUnavailableError,
)


def _user(db: Session, email: str) -> User:
    user = User(email=email, hashed_password="x", name=email.split("@")[0])
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def learner(db_session: Session) -> User:
    return _user(db_session, "ledger@example.com")


def test_new_user_balance_is_zero(client: TestClient, make_user) -> None:
    _, headers = make_user("fresh@example.com")

    response = client.get("/api/xp/balance", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["week_xp"] == 0
    assert data["month_xp"] == 0
    assert data["lifetime_xp"] == 0
    assert data["total_xp"] == 0
    assert data["badges"] == []


def test_award_increases_lifetime_by_amount(client: TestClient, make_user) -> None:
    _, headers = make_user("award@example.com")
    before = client.get("/api/xp/balance", headers=headers).json()["lifetime_xp"]

    response = client.post(
        "/api/xp/award", json={"amount": 150, "event": "QUESTION_CORRECT"}, headers=headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["event"]["event_type"] == "QUESTION_CORRECT"
    assert body["event"]["xp_delta"] == 150
    after = client.get("/api/xp/balance", headers=headers).json()
    assert after["lifetime_xp"] == before + 150
    assert after["week_xp"] == 150
    assert after["month_xp"] == 150
    assert after["total_xp"] == 150


@pytest.mark.parametrize("amount", [0, "abc", None, True, "nan"])
def test_award_rejects_invalid_amount(client: TestClient, make_user, amount) -> None:
    _, headers = make_user("invalid@example.com")

    response = client.post("/api/xp/award", json={"amount": amount}, headers=headers)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_INPUT"
    events = client.get("/api/xp/events", headers=headers).json()["events"]
    assert events == []


def test_award_requires_auth(client: TestClient) -> None:
    assert client.post("/api/xp/award", json={"amount": 10}).status_code == 401


def test_legacy_log_endpoint(client: TestClient, make_user) -> None:
    _, headers = make_user("legacy@example.com")

    response = client.post(
        "/api/xp/log", json={"xp_delta": "25.9", "event_type": "lesson completed"}, headers=headers
    )

    assert response.status_code == 200
    event = response.json()["event"]
    assert event["xp_delta"] == 25
    assert event["event_type"] == "LESSON_COMPLETED"


def test_awards_are_additive(db_session: Session, learner: User) -> None:
    ledger = XpLedgerService(db_session)

    for amount in (10, 20, -5, 40):
        ledger.award(learner.id, amount, "generic")

    balance = ledger.balance(learner.id)
    assert balance.lifetime_xp == 65
    assert balance.total_xp == 65
    ledger_sum = db_session.scalar(
        select(func.sum(XpEvent.xp_delta)).where(XpEvent.user_id == learner.id)
    )
    assert ledger_sum == balance.lifetime_xp


def test_amount_is_truncated_and_clamped(db_session: Session, learner: User) -> None:
    ledger = XpLedgerService(db_session)

    assert ledger.award(learner.id, 12.9).event.xp_delta == 12
    assert ledger.award(learner.id, "-3.7").event.xp_delta == -3
    assert ledger.award(learner.id, 10**9).event.xp_delta == 100_000


def test_unknown_event_type_is_generic_by_default(db_session: Session, learner: User) -> None:
    result = XpLedgerService(db_session).award(learner.id, 5, "mystery_bonus")

    assert result.event.event_type == "GENERIC"


def test_strict_mode_rejects_unknown_event_type(db_session: Session, learner: User) -> None:
    ledger = XpLedgerService(db_session, strict_event_types=True)

    with pytest.raises(InvalidEventTypeError):
        ledger.award(learner.id, 5, "mystery_bonus")
    assert ledger.award(learner.id, 5, "quiz completed").event.event_type == "QUIZ_COMPLETED"


def test_zero_amount_writes_nothing(db_session: Session, learner: User) -> None:
    with pytest.raises(InvalidAmountError):
        XpLedgerService(db_session).award(learner.id, 0)

    assert db_session.scalar(select(func.count(XpEvent.id))) == 0
    assert db_session.get(UserProgress, learner.id) is None


def test_idempotency_key_prevents_double_award(client: TestClient, make_user) -> None:
    _, headers = make_user("retry@example.com")
    payload = {"amount": 150, "event": "QUESTION_CORRECT", "idempotency_key": "attempt-42"}

    first = client.post("/api/xp/award", json=payload, headers=headers).json()
    second = client.post("/api/xp/award", json=payload, headers=headers).json()

    assert first["idempotent"] is False
    assert second["idempotent"] is True
    assert second["event"]["id"] == first["event"]["id"]
    assert client.get("/api/xp/balance", headers=headers).json()["lifetime_xp"] == 150
    assert len(client.get("/api/xp/events", headers=headers).json()["events"]) == 1


def test_idempotency_keys_are_scoped_per_user(db_session: Session, learner: User) -> None:
    other = _user(db_session, "other@example.com")
    ledger = XpLedgerService(db_session)

    ledger.award(learner.id, 10, idempotency_key="same-key")
    result = ledger.award(other.id, 10, idempotency_key="same-key")

    assert result.idempotent is False
    assert ledger.balance(other.id).lifetime_xp == 10


def test_recent_events_newest_first_and_limited(client: TestClient, make_user) -> None:
    _, headers = make_user("history@example.com")
    for amount in (1, 2, 3):
        client.post("/api/xp/award", json={"amount": amount}, headers=headers)

    events = client.get("/api/xp/events", params={"limit": 2}, headers=headers).json()["events"]

    assert [e["xp_delta"] for e in events] == [3, 2]
    clamped = client.get("/api/xp/events", params={"limit": 0}, headers=headers).json()["events"]
    assert len(clamped) == 1


def test_week_rollover_reads_zero_until_next_award(db_session: Session, learner: User) -> None:
    ledger = XpLedgerService(db_session)
    monday = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)
    next_monday = monday + timedelta(days=7)

    ledger.award(learner.id, 150, now=monday)
    stale = ledger.balance(learner.id, now=next_monday)
    assert stale.week_xp == 0
    assert stale.month_xp == 150
    assert stale.lifetime_xp == 150
    assert stale.week_key == date(2026, 1, 12)

    fresh = ledger.award(learner.id, 50, now=next_monday).balance
    assert fresh.week_xp == 50
    assert fresh.month_xp == 200
    assert fresh.lifetime_xp == 200


def test_month_rollover(db_session: Session, learner: User) -> None:
    ledger = XpLedgerService(db_session)

    ledger.award(learner.id, 30, now=datetime(2026, 1, 31, 12, 0, tzinfo=timezone.utc))
    balance = ledger.award(
        learner.id, 20, now=datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)
    ).balance

    assert balance.month_xp == 20
    assert balance.month_key == date(2026, 2, 1)
    assert balance.lifetime_xp == 50


def test_badges_unlock_once(db_session: Session, learner: User) -> None:
    ledger = XpLedgerService(db_session)

    first = ledger.award(learner.id, 999)
    assert first.new_badges == []
    unlocked = ledger.award(learner.id, 1)
    assert [b.code for b in unlocked.new_badges] == ["BRONZE_1K"]
    again = ledger.award(learner.id, 10)
    assert again.new_badges == []
    assert [b.badge.code for b in again.balance.badges] == ["BRONZE_1K"]


def test_commit_attempt_rewards_by_attempt_number(db_session: Session, learner: User) -> None:
    ledger = XpLedgerService(db_session)
    now = datetime(2026, 3, 10, 6, 0, tzinfo=timezone.utc)

    first = ledger.commit_attempt(
        learner.id, attempt_id="a-1", is_correct=True, attempt_no=1, now=now
    )
    second = ledger.commit_attempt(
        learner.id, attempt_id="a-2", is_correct=True, attempt_no=2, now=now
    )
    wrong = ledger.commit_attempt(
        learner.id, attempt_id="a-3", is_correct=False, attempt_no=1, now=now
    )

    assert first.xp_awarded == 150
    assert second.xp_awarded == 100
    assert wrong.xp_awarded == 0
    assert wrong.event is None
    assert wrong.total_xp == 250
    assert wrong.today_xp == 250
    assert wrong.weekly_xp == 250
    assert wrong.monthly_xp == 250


def test_commit_attempt_is_idempotent(db_session: Session, learner: User) -> None:
    ledger = XpLedgerService(db_session)
    now = datetime(2026, 3, 10, 6, 0, tzinfo=timezone.utc)

    first = ledger.commit_attempt(learner.id, attempt_id="dup", is_correct=True, attempt_no=1, now=now)
    replay = ledger.commit_attempt(learner.id, attempt_id="dup", is_correct=True, attempt_no=1, now=now)

    assert replay.idempotent is True
    assert replay.xp_awarded == first.xp_awarded == 150
    assert replay.total_xp == 150


def test_commit_attempt_replays_unrewarded_attempts(db_session: Session, learner: User) -> None:
    ledger = XpLedgerService(db_session)
    day_one = datetime(2026, 3, 10, 6, 0, tzinfo=timezone.utc)

    first = ledger.commit_attempt(learner.id, attempt_id="w1", is_correct=False, now=day_one)
    replay = ledger.commit_attempt(
        learner.id, attempt_id="w1", is_correct=False, now=day_one + timedelta(days=1)
    )

    assert first.idempotent is False
    assert replay.idempotent is True
    assert replay.xp_awarded == 0
    assert replay.event is None
    # The replay does not count as activity on the second day.
    assert replay.streak == 1
    assert db_session.scalar(select(func.count(PracticeAttempt.id))) == 1
    assert db_session.scalar(select(func.count(XpEvent.id))) == 0


def test_commit_endpoint_replays_wrong_answer(client: TestClient, make_user) -> None:
    _, headers = make_user("wrong@example.com")
    payload = {"attemptId": "w1", "isCorrect": False}

    first = client.post("/api/xp/commit", json=payload, headers=headers).json()
    second = client.post("/api/xp/commit", json=payload, headers=headers).json()

    assert first["idempotent"] is False
    assert second["idempotent"] is True
    assert second["xpAwarded"] == 0


def test_commit_attempt_id_reused_from_award_is_conflict(client: TestClient, make_user) -> None:
    _, headers = make_user("shared-key@example.com")
    client.post("/api/xp/award", json={"amount": 5, "idempotency_key": "shared"}, headers=headers)

    response = client.post(
        "/api/xp/commit",
        json={"attemptId": "shared", "isCorrect": True, "attemptNo": 1},
        headers=headers,
    )

    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT"
    assert client.get("/api/xp/balance", headers=headers).json()["lifetime_xp"] == 5


def _locked_database_error() -> OperationalError:
    return OperationalError("INSERT INTO xp_events", {}, Exception("database is locked"))


def test_storage_failure_is_retryable_and_writes_nothing(
    client: TestClient, make_user, db_session: Session, monkeypatch
) -> None:
    _, headers = make_user("outage@example.com")
    client.post("/api/xp/award", json={"amount": 10}, headers=headers)
    real_flush = db_session.flush
    failures: list[int] = []

    def flush_once_failing(*args, **kwargs):
        if not failures:
            failures.append(1)
            raise _locked_database_error()
        return real_flush(*args, **kwargs)

    monkeypatch.setattr(db_session, "flush", flush_once_failing)

    response = client.post("/api/xp/award", json={"amount": 25}, headers=headers)

    assert response.status_code == 500
    body = response.json()
    assert body["ok"] is False
    assert body["code"] == "STORAGE_UNAVAILABLE"
    assert body["retryable"] is True
    balance = client.get("/api/xp/balance", headers=headers).json()
    assert balance["lifetime_xp"] == 10
    assert balance["week_xp"] == 10
    assert len(client.get("/api/xp/events", headers=headers).json()["events"]) == 1


def test_commit_attempt_storage_failure_leaves_no_attempt(
    db_session: Session, learner: User, monkeypatch
) -> None:
    ledger = XpLedgerService(db_session)
    real_flush = db_session.flush

    def failing_flush(*args, **kwargs):
        raise _locked_database_error()

    monkeypatch.setattr(db_session, "flush", failing_flush)
    with pytest.raises(StorageUnavailableError):
        ledger.commit_attempt(learner.id, attempt_id="lost", is_correct=True, attempt_no=1)
    monkeypatch.setattr(db_session, "flush", real_flush)

    assert db_session.scalar(select(func.count(PracticeAttempt.id))) == 0
    assert db_session.scalar(select(func.count()).select_from(UserProgress)) == 0
    retry = ledger.commit_attempt(learner.id, attempt_id="lost", is_correct=True, attempt_no=1)
    assert retry.idempotent is False
    assert retry.xp_awarded == 150


def test_dashboard_windows(db_session: Session, learner: User) -> None:
    ledger = XpLedgerService(db_session)
    now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
    for days_ago, amount in ((8, 5), (6, 7), (1, 20), (0, 30)):
        ledger.award(learner.id, amount, now=now - timedelta(days=days_ago))

    summary = ledger.dashboard(learner.id, now=now)

    assert summary.today_xp == 30
    assert summary.yesterday_xp == 20
    assert summary.weekly_xp == 57
    assert summary.total_xp == 62
    assert summary.next_badge.code == "BRONZE_1K"
    assert [e.xp_delta for e in summary.recent_activity] == [30, 20, 7, 5]


def test_commit_attempt_tracks_streak(db_session: Session, learner: User) -> None:
    ledger = XpLedgerService(db_session)
    day_one = datetime(2026, 3, 10, 6, 0, tzinfo=timezone.utc)

    assert ledger.commit_attempt(learner.id, attempt_id="s1", now=day_one).streak == 1
    assert ledger.commit_attempt(learner.id, attempt_id="s2", now=day_one).streak == 1
    day_two = day_one + timedelta(days=1)
    assert ledger.commit_attempt(learner.id, attempt_id="s3", now=day_two).streak == 2
    gap = day_two + timedelta(days=3)
    assert ledger.commit_attempt(learner.id, attempt_id="s4", now=gap).streak == 1
    assert ledger.balance(learner.id).longest_streak == 2


def test_commit_endpoint(client: TestClient, make_user) -> None:
    _, headers = make_user("commit@example.com")
    payload = {"attemptId": "q-7-try-1", "isCorrect": True, "attemptNo": 1, "lessonId": 2}

    first = client.post("/api/xp/commit", json=payload, headers=headers)
    second = client.post("/api/xp/commit", json=payload, headers=headers)

    assert first.status_code == 200
    assert first.json()["xpAwarded"] == 150
    assert first.json()["totalXP"] == 150
    assert first.json()["streak"] == 1
    assert first.json()["event"]["event_type"] == "QUESTION_CORRECT"
    assert second.json()["idempotent"] is True
    assert second.json()["totalXP"] == 150

    missing = client.post("/api/xp/commit", json={"isCorrect": True}, headers=headers)
    assert missing.status_code == 400


def test_concurrent_awards_do_not_lose_updates(tmp_path) -> None:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    with SessionLocal() as setup:
        user_id = _user(setup, "racer@example.com").id
        XpLedgerService(setup).balance(user_id)

    workers, awards_each = 8, 5
    errors: list[BaseException] = []

    def worker() -> None:
        with SessionLocal() as db:
            ledger = XpLedgerService(db)
            for _ in range(awards_each):
                try:
                    ledger.award(user_id, 10, "QUESTION_CORRECT")
                except BaseException as exc:  # surfaced by the assertion below
                    errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    try:
        assert errors == []
        with SessionLocal() as db:
            balance = XpLedgerService(db).balance(user_id)
            assert balance.lifetime_xp == 10 * workers * awards_each
            assert balance.week_xp == balance.lifetime_xp
            assert db.scalar(select(func.count(XpEvent.id))) == workers * awards_each
    finally:
        engine.dispose()


def test_award_emits_no_sqlalchemy_deprecation_warnings(db_session: Session, learner: User) -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error", SADeprecationWarning)
        result = XpLedgerService(db_session).award(learner.id, 10, "QUIZ_COMPLETED")

    assert result.event.event_type == "QUIZ_COMPLETED"
