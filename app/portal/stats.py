"""
Chart data: group-by/count over fetched feedback rows.
"""
from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Callable, Iterable

from app.portal.constants import ROLE_ADMIN, ROLE_MODERATOR, VALID_STATUSES

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

TREND_DAYS = 14
TOP_N = 5


def count_by(items: Iterable, key: Callable[[object], str | None], empty_label: str | None = None) -> Counter:
    counts: Counter = Counter()
    for item in items:
        value = key(item)
        if not value:
            if empty_label is None:
                continue
            value = empty_label
        counts[value] += 1
    return counts


def ranked(counts: Counter, limit: int | None = None) -> list[dict]:
    """[{"name", "count"}] by count desc, then name; optionally truncated."""
    rows = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    if limit is not None:
        rows = rows[:limit]
    return [{"name": name, "count": count} for name, count in rows]


def status_counts(items: Iterable) -> dict[str, int]:
    """Counts per status; every known status is present, zero when unused."""
    counts = {status: 0 for status in VALID_STATUSES}
    for item in items:
        if item.status in counts:
            counts[item.status] += 1
    return counts


def _day(value: datetime | date) -> date:
    return value.date() if isinstance(value, datetime) else value


def daily_trend(items: Iterable, days: int = TREND_DAYS, today: date | None = None) -> list[dict]:
    """Submissions per day for the last `days` days (oldest first, zero-filled)."""
    today = today or datetime.utcnow().date()
    start = today - timedelta(days=days - 1)
    buckets = {start + timedelta(days=i): 0 for i in range(days)}
    for item in items:
        d = _day(item.created_at)
        if d in buckets:
            buckets[d] += 1
    return [{"date": d.isoformat(), "count": n} for d, n in buckets.items()]


def daily_status_trend(items: Iterable, days: int = TREND_DAYS, today: date | None = None) -> list[dict]:
    """Per-status submissions per day for the last `days` days (oldest first)."""
    today = today or datetime.utcnow().date()
    start = today - timedelta(days=days - 1)
    buckets = {start + timedelta(days=i): {status: 0 for status in VALID_STATUSES} for i in range(days)}
    for item in items:
        d = _day(item.created_at)
        if d in buckets and item.status in buckets[d]:
            buckets[d][item.status] += 1
    return [{"date": d.isoformat(), **counts} for d, counts in buckets.items()]


def role_distribution(total_users: int, moderators: int, admins: int) -> dict[str, int]:
    return {
        "regular": max(total_users - moderators - admins, 0),
        "moderators": moderators,
        "admins": admins,
    }


def moderator_stats(items: list, category_names: dict[str, str] | None = None, today: date | None = None) -> dict:
    category_names = category_names or {}
    categories = count_by(items, lambda fb: category_names.get(fb.category, fb.category), empty_label="Unknown")
    return {
        "total": len(items),
        "by_status": status_counts(items),
        "top_categories": ranked(categories, TOP_N),
        "top_districts": ranked(count_by(items, lambda fb: fb.district, empty_label="Unknown"), TOP_N),
        "trend": daily_status_trend(items, today=today),
    }


def admin_stats(s: "Session", today: date | None = None) -> dict:
    from app.portal.models import Role, User, UserRole
    from app.portal.modules.feedback.models import Feedback, FeedbackCategory

    items = s.query(Feedback).all()
    category_names = {c.id: c.name for c in s.query(FeedbackCategory).all()}

    total_users = s.query(User).count()

    def _role_count(key: str) -> int:
        return s.query(UserRole).join(Role, Role.id == UserRole.role_id).filter(Role.key == key).count()

    regions = count_by(items, lambda fb: fb.region)
    return {
        "total_feedback": len(items),
        "total_users": total_users,
        "categories_count": s.query(FeedbackCategory).count(),
        "regions_with_feedback": len(regions),
        "by_category": ranked(count_by(items, lambda fb: category_names.get(fb.category, fb.category))),
        "by_status": status_counts(items),
        "top_regions": ranked(regions, TOP_N),
        "trend": daily_trend(items, today=today),
        "roles": role_distribution(total_users, _role_count(ROLE_MODERATOR), _role_count(ROLE_ADMIN)),
    }
