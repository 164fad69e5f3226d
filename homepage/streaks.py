"""Consecutive-day activity streaks.

A streak is the number of consecutive local calendar days with at least one
activity, counted back from the most recent active day. A streak only counts
while that most recent day is today or yesterday; anything older means the
streak is broken and every counter is zero.

"Local" time is derived best-effort: either a configured UTC offset, or the
difference between an activity's UTC start and its local start (which the feed
reports as if it were UTC). That heuristic knows nothing about daylight-saving
changes inside the window.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime, timedelta

from homepage.api.models import Activity, ActivityCategory, StreakReport


# Raw feed types -> streak categories. Anything missing here is "Other".
CATEGORY_BY_TYPE: Mapping[str, ActivityCategory] = {
    "Run": ActivityCategory.run,
    "TrailRun": ActivityCategory.run,
    "VirtualRun": ActivityCategory.run,
    "WeightTraining": ActivityCategory.gym,
    "Workout": ActivityCategory.gym,
    "Crossfit": ActivityCategory.gym,
}

# How far the most recent active day may lag "today" before the streak breaks.
MAX_LAG = timedelta(days=1)


def categorize(activity_type: str) -> ActivityCategory:
    return CATEGORY_BY_TYPE.get(activity_type, ActivityCategory.other)


def _parse_timestamp(raw: str | None) -> datetime | None:
    """Parse an ISO timestamp as UTC. Naive values are taken to be UTC already."""

    if not raw:
        return None
    try:
        ts = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def _local_date(raw: str | None) -> date | None:
    # The local timestamp's date portion is the calendar day; no conversion.
    if not raw or len(raw) < 10:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def derive_utc_offset(activity: Activity) -> timedelta:
    """Local minus UTC start of one activity; zero if either can't be parsed."""

    utc = _parse_timestamp(activity.start_time_utc)
    local = _parse_timestamp(activity.start_time_local)
    if utc is None or local is None:
        return timedelta(0)
    return local - utc


def resolve_utc_offset(activities: Sequence[Activity], *, utc_offset_minutes: int | None = None) -> timedelta:
    if utc_offset_minutes is not None:
        return timedelta(minutes=utc_offset_minutes)
    if not activities:
        return timedelta(0)
    return derive_utc_offset(activities[0])


def _consecutive_days(days_desc: Sequence[date], *, today: date) -> list[date]:
    """Days forming the run that starts at the most recent day.

    Empty when there are no days or the most recent one is older than
    yesterday.
    """

    if not days_desc or today - days_desc[0] > MAX_LAG:
        return []

    run: list[date] = []
    expected = days_desc[0]
    for day in days_desc:
        if day != expected:
            break
        run.append(day)
        expected = day - timedelta(days=1)
    return run


def compute_streak(
    activities: Sequence[Activity],
    *,
    now: datetime,
    utc_offset_minutes: int | None = None,
) -> StreakReport:
    """Build a StreakReport for `activities` as of `now`.

    `activities` is expected most-recent-first, as the feed returns it; only
    the offset derivation depends on that order.
    """

    offset = resolve_utc_offset(activities, utc_offset_minutes=utc_offset_minutes)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    today = (now.astimezone(UTC) + offset).date()

    by_day: dict[date, set[ActivityCategory]] = defaultdict(set)
    dated: list[tuple[date, Activity]] = []
    for activity in activities:
        day = _local_date(activity.start_time_local)
        if day is None:
            continue
        by_day[day].add(categorize(activity.type))
        dated.append((day, activity))

    days_desc = sorted(by_day, reverse=True)
    streak_days = _consecutive_days(days_desc, today=today)

    per_category: dict[ActivityCategory, int] = {}
    for category in ActivityCategory:
        cat_days = [d for d in days_desc if category in by_day[d]]
        per_category[category] = len(_consecutive_days(cat_days, today=today))

    window = set(streak_days)
    in_streak = [a for d, a in dated if d in window]

    return StreakReport(
        total_streak_days=len(streak_days),
        per_category_streak_days=per_category,
        has_activity_today=bool(by_day.get(today)),
        total_distance_in_streak=sum(a.distance_meters for a in in_streak),
        total_time_in_streak=sum(a.duration_seconds for a in in_streak),
        today=today.isoformat(),
    )
