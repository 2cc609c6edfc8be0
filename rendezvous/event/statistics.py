"""Attendance statistics shown to the owner of an event."""

from __future__ import annotations

import datetime
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

UNDER_18 = "<18"
AGE_18_22 = "18-22"
AGE_23_25 = "23-25"
AGE_26_30 = "26-30"
AGE_30_PLUS = "30+"
UNKNOWN = "Unknown"

AGE_GROUPS = [UNDER_18, AGE_18_22, AGE_23_25, AGE_26_30, AGE_30_PLUS]

BIRTHDAY_FORMAT = "%d/%m/%Y"


def calculate_age(
    birthday: Optional[str], today: Optional[datetime.date] = None
) -> Optional[int]:
    """Return the age for a ``dd/mm/yyyy`` birthday, or None if unusable."""
    if not birthday or not birthday.strip():
        return None
    try:
        born = datetime.datetime.strptime(birthday.strip(), BIRTHDAY_FORMAT).date()
    except ValueError:
        return None
    today = today or datetime.date.today()
    age = today.year - born.year - ((today.month, today.day) < (born.month, born.day))
    if age < 0:
        return None
    return age


def age_group(age: Optional[int]) -> str:
    """Map an age to the label of its bucket."""
    if age is None:
        return UNKNOWN
    if age < 18:
        return UNDER_18
    if age <= 22:
        return AGE_18_22
    if age <= 25:
        return AGE_23_25
    if age <= 30:
        return AGE_26_30
    return AGE_30_PLUS


def _percentage(count: int, total: int) -> float:
    return (count / total) * 100 if total > 0 else 0.0


def _distribution(counts: Counter, total: int) -> list[dict[str, Any]]:
    """Non-empty buckets, largest first; ties keep first-seen order."""
    return [
        {"label": label, "count": count, "percentage": _percentage(count, total)}
        for label, count in counts.most_common()
        if count > 0
    ]


def join_rate_over_time(joined_at: Iterable[Any]) -> list[dict[str, Any]]:
    """Count joins per calendar day, with the running total.

    Values that are not datetimes (such as unresolved server timestamps)
    are skipped.
    """
    per_day = Counter(
        value.date() for value in joined_at if isinstance(value, datetime.datetime)
    )
    points = []
    cumulative = 0
    for day in sorted(per_day):
        cumulative += per_day[day]
        points.append(
            {"date": day.isoformat(), "count": per_day[day], "cumulative": cumulative}
        )
    return points


@dataclass
class EventStatistics:
    """Aggregated view of who attends an event."""

    event_id: str
    total_attendees: int = 0
    age_distribution: list[dict[str, Any]] = field(default_factory=list)
    campus_distribution: list[dict[str, Any]] = field(default_factory=list)
    join_rate_over_time: list[dict[str, Any]] = field(default_factory=list)
    follower_count: int = 0
    attendees_followers_rate: float = 0.0

    def to_map(self) -> dict[str, Any]:
        """Serialize for the JSON API."""
        return {
            "eventId": self.event_id,
            "totalAttendees": self.total_attendees,
            "ageDistribution": self.age_distribution,
            "campusDistribution": self.campus_distribution,
            "joinRateOverTime": self.join_rate_over_time,
            "followerCount": self.follower_count,
            "attendeesFollowersRate": self.attendees_followers_rate,
        }


def build_statistics(
    event_id: str,
    joined_at: dict[str, Any],
    profiles: dict[str, dict[str, Any]],
    follower_count: int = 0,
    today: Optional[datetime.date] = None,
) -> EventStatistics:
    """Aggregate participant join times and profiles into statistics.

    ``joined_at`` maps each participant uid to its join time and
    ``profiles`` maps uids to their user documents. Participants without a
    profile still count towards the total.
    """
    total = len(joined_at)
    ages: Counter = Counter()
    campuses: Counter = Counter()
    for uid in joined_at:
        profile = profiles.get(uid)
        if profile is None:
            continue
        ages[age_group(calculate_age(profile.get("birthday"), today))] += 1
        campuses[profile.get("university") or UNKNOWN] += 1

    return EventStatistics(
        event_id=event_id,
        total_attendees=total,
        age_distribution=_distribution(ages, total),
        campus_distribution=_distribution(campuses, total),
        join_rate_over_time=join_rate_over_time(joined_at.values()),
        follower_count=follower_count,
        attendees_followers_rate=_percentage(total, follower_count),
    )
