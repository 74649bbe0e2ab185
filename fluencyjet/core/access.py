"""Tier-based lesson access decisions.

The resolver is a pure function over the user's stored plan fields and the
configured free-tier rules. It runs on every content request, so it performs
no I/O and keeps no state.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Protocol
from urllib.parse import urlencode


class Track(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"


FULL_ACCESS_TIERS = frozenset({"pro", "all", "paid", "lifetime"})
TRACK_SCOPED_PLANS = {"beginner": Track.BEGINNER, "intermediate": Track.INTERMEDIATE}


class AccessSubject(Protocol):
    """The user fields the resolver reads."""

    plan: str | None
    tier_level: str | None
    has_access: bool | None
    track: str | None


@dataclass(frozen=True)
class FreeTierRules:
    """Lessons open to users without a paid plan."""

    beginner_max: int = 3
    intermediate_lessons: frozenset[int] = frozenset({13, 14, 15})
    paywall_url: str = "/paywall"

    @classmethod
    def from_settings(cls, settings: Any) -> "FreeTierRules":
        return cls(
            beginner_max=settings.FREE_BEGINNER_MAX,
            intermediate_lessons=frozenset(settings.FREE_INTERMEDIATE_LESSONS),
            paywall_url=settings.PAYWALL_URL,
        )

    def free_lessons(self, track: Track) -> int | list[int]:
        if track is Track.BEGINNER:
            return self.beginner_max
        return sorted(self.intermediate_lessons)

    def is_free(self, track: Track, lesson_number: int) -> bool:
        if track is Track.BEGINNER:
            return lesson_number <= self.beginner_max
        return lesson_number in self.intermediate_lessons


@dataclass(frozen=True)
class NextAction:
    type: str
    url: str
    source: str

    def as_dict(self) -> dict[str, str]:
        return {"type": self.type, "url": self.url, "from": self.source}


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    track: Track
    reason: str
    message: str = ""
    free_lessons: int | list[int] | None = None
    next_action: NextAction | None = None
    details: dict[str, Any] = field(default_factory=dict)


def parse_track(value: Any) -> Track | None:
    """Map a difficulty or placement string to a track.

    ``advanced`` content is gated with the intermediate track.
    """

    if isinstance(value, Track):
        return value
    key = str(value or "").strip().lower()
    if key == "beginner":
        return Track.BEGINNER
    if key in {"intermediate", "advanced"}:
        return Track.INTERMEDIATE
    return None


def parse_lesson_number(value: Any) -> int | None:
    """Return a positive lesson number or ``None`` when it cannot be verified."""

    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        return None
    return number if number > 0 else None


def _lowered(*values: str | None) -> set[str]:
    return {str(v).strip().lower() for v in values if v}


def has_full_access(user: AccessSubject) -> bool:
    if user.has_access:
        return True
    return bool(_lowered(user.plan, user.tier_level) & FULL_ACCESS_TIERS)


def scoped_plan_track(user: AccessSubject) -> Track | None:
    for value in (user.plan, user.tier_level):
        track = TRACK_SCOPED_PLANS.get(str(value or "").strip().lower())
        if track is not None:
            return track
    return None


def _deny(
    *,
    track: Track,
    reason: str,
    message: str,
    rules: FreeTierRules,
    lesson_number: int | None,
    suggested_plan: str,
) -> AccessDecision:
    source = f"{track.value.lower()}-lesson-{lesson_number}" if lesson_number else track.value.lower()
    query = urlencode({"plan": suggested_plan, "from": source})
    return AccessDecision(
        allowed=False,
        track=track,
        reason=reason,
        message=message,
        free_lessons=rules.free_lessons(track),
        next_action=NextAction(type="upgrade", url=f"{rules.paywall_url}?{query}", source=source),
    )


def resolve_access(
    user: AccessSubject,
    *,
    lesson_number: int | None,
    difficulty: str | None,
    rules: FreeTierRules,
) -> AccessDecision:
    """Decide whether ``user`` may open ``lesson_number`` on the requested track."""

    requested = parse_track(difficulty)
    user_track = parse_track(user.track) or requested or Track.BEGINNER

    if has_full_access(user):
        return AccessDecision(allowed=True, track=requested or user_track, reason="full_access")

    plan_track = scoped_plan_track(user)
    if plan_track is not None:
        target = requested or user_track
        if target is plan_track:
            return AccessDecision(allowed=True, track=target, reason="plan_track")
        return _deny(
            track=target,
            reason="cross_track",
            message=f"Your {plan_track.value.title()} plan does not include {target.value.title()} lessons.",
            rules=rules,
            lesson_number=lesson_number,
            suggested_plan="PRO",
        )

    if lesson_number is None:
        return AccessDecision(allowed=True, track=user_track, reason="unverified_lesson")

    if rules.is_free(user_track, lesson_number):
        return AccessDecision(allowed=True, track=user_track, reason="free_lesson")

    return _deny(
        track=user_track,
        reason="free_limit",
        message=f"Lesson {lesson_number} is part of the paid {user_track.value.title()} course.",
        rules=rules,
        lesson_number=lesson_number,
        suggested_plan=user_track.value,
    )


def lock_map(
    user: AccessSubject, lesson_numbers: Iterable[int], *, difficulty: str | None, rules: FreeTierRules
) -> dict[int, bool]:
    """Return ``{lesson_number: is_locked}`` for a lesson listing."""

    return {
        number: not resolve_access(
            user, lesson_number=number, difficulty=difficulty, rules=rules
        ).allowed
        for number in lesson_numbers
    }


@dataclass(frozen=True)
class Entitlements:
    """What the user's plan unlocks, for clients choosing which upgrade to offer."""

    plan: str
    tier_level: str
    pro_active: bool
    tracks: tuple[Track, ...]
    free_lessons: dict[str, int | list[int]]


def entitlements(user: AccessSubject, rules: FreeTierRules) -> Entitlements:
    pro_active = has_full_access(user)
    if pro_active:
        tracks: tuple[Track, ...] = tuple(Track)
    else:
        scoped = scoped_plan_track(user)
        tracks = (scoped,) if scoped is not None else ()
    return Entitlements(
        plan=user.plan or "FREE",
        tier_level=user.tier_level or "free",
        pro_active=pro_active,
        tracks=tracks,
        free_lessons={track.value: rules.free_lessons(track) for track in Track},
    )
