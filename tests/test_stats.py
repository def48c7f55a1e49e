"""Unit tests for chart group-by/count helpers."""
from collections import Counter
from datetime import date, datetime
from types import SimpleNamespace

from app.portal.stats import (
    count_by,
    daily_status_trend,
    daily_trend,
    moderator_stats,
    ranked,
    role_distribution,
    status_counts,
)

TODAY = date(2024, 6, 15)


def _fb(status="pending", category="water", district=None, created=datetime(2024, 6, 15, 10)):
    return SimpleNamespace(status=status, category=category, district=district, created_at=created)


class TestCounting:
    def test_count_by_skips_empty(self):
        items = [_fb(district="Ilala"), _fb(district=None), _fb(district="Ilala")]
        assert count_by(items, lambda fb: fb.district) == Counter({"Ilala": 2})

    def test_count_by_empty_label(self):
        items = [_fb(district="Ilala"), _fb(district="")]
        assert count_by(items, lambda fb: fb.district, empty_label="Unknown") == Counter({"Ilala": 1, "Unknown": 1})

    def test_ranked_orders_by_count_then_name(self):
        counts = Counter({"b": 2, "a": 2, "c": 5, "d": 1})
        assert ranked(counts) == [
            {"name": "c", "count": 5},
            {"name": "a", "count": 2},
            {"name": "b", "count": 2},
            {"name": "d", "count": 1},
        ]
        assert len(ranked(counts, limit=2)) == 2

    def test_status_counts_include_all_statuses(self):
        counts = status_counts([_fb("pending"), _fb("pending"), _fb("resolved"), _fb("bogus")])
        assert counts == {"pending": 2, "reviewing": 0, "resolved": 1, "rejected": 0}


class TestTrends:
    def test_daily_trend_zero_filled(self):
        items = [
            _fb(created=datetime(2024, 6, 15, 8)),
            _fb(created=datetime(2024, 6, 15, 20)),
            _fb(created=datetime(2024, 6, 10, 12)),
            _fb(created=datetime(2024, 5, 1, 12)),  # outside the window
        ]
        trend = daily_trend(items, today=TODAY)
        assert len(trend) == 14
        assert trend[0] == {"date": "2024-06-02", "count": 0}
        assert trend[-1] == {"date": "2024-06-15", "count": 2}
        assert {"date": "2024-06-10", "count": 1} in trend
        assert sum(row["count"] for row in trend) == 3

    def test_daily_status_trend(self):
        items = [_fb("pending"), _fb("resolved"), _fb("resolved", created=datetime(2024, 6, 14, 9))]
        trend = daily_status_trend(items, days=2, today=TODAY)
        assert trend == [
            {"date": "2024-06-14", "pending": 0, "reviewing": 0, "resolved": 1, "rejected": 0},
            {"date": "2024-06-15", "pending": 1, "reviewing": 0, "resolved": 1, "rejected": 0},
        ]


class TestSummaries:
    def test_role_distribution(self):
        assert role_distribution(10, 2, 1) == {"regular": 7, "moderators": 2, "admins": 1}
        assert role_distribution(1, 1, 1) == {"regular": 0, "moderators": 1, "admins": 1}

    def test_moderator_stats(self):
        items = [
            _fb("pending", "water", "Ilala"),
            _fb("resolved", "water", "Ilala"),
            _fb("pending", "healthcare", None),
        ]
        stats = moderator_stats(items, {"water": "Water & Irrigation", "healthcare": "Health"}, today=TODAY)
        assert stats["total"] == 3
        assert stats["by_status"]["pending"] == 2
        assert stats["top_categories"] == [
            {"name": "Water & Irrigation", "count": 2},
            {"name": "Health", "count": 1},
        ]
        assert stats["top_districts"] == [{"name": "Ilala", "count": 2}, {"name": "Unknown", "count": 1}]
        assert len(stats["trend"]) == 14

    def test_moderator_stats_empty(self):
        stats = moderator_stats([], today=TODAY)
        assert stats["total"] == 0
        assert stats["top_categories"] == []
        assert all(row["pending"] == 0 for row in stats["trend"])
