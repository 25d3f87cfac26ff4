from datetime import date, datetime, timedelta, timezone

import pytest

from app.normalizer.dates import months_ago, parse_or_now, parse_recall_date, yyyymmdd

UTC = timezone.utc


@pytest.mark.parametrize(
    "value, expected",
    [
        ("20250315", datetime(2025, 3, 15, tzinfo=UTC)),
        (20250315, datetime(2025, 3, 15, tzinfo=UTC)),
        ("03/15/2025", datetime(2025, 3, 15, tzinfo=UTC)),
        ("3/5/2025", datetime(2025, 3, 5, tzinfo=UTC)),
        ("2025-03-15", datetime(2025, 3, 15, tzinfo=UTC)),
        ("2025-03-15T10:30:00Z", datetime(2025, 3, 15, 10, 30, tzinfo=UTC)),
        (date(2025, 3, 15), datetime(2025, 3, 15, tzinfo=UTC)),
        (datetime(2025, 3, 15, 8, 0), datetime(2025, 3, 15, 8, 0, tzinfo=UTC)),
    ],
)
def test_parse_recall_date(value, expected):
    assert parse_recall_date(value) == expected


@pytest.mark.parametrize(
    "value",
    [None, "", "   ", "not a date", "20251399", True, "13/45/2025", float("nan"), float("inf"), float("-inf"), 1e400],
)
def test_parse_recall_date_unreadable(value):
    assert parse_recall_date(value) is None


def test_parse_recall_date_keeps_offset():
    parsed = parse_recall_date("2025-03-15T10:30:00+02:00")
    assert parsed == datetime(2025, 3, 15, 8, 30, tzinfo=UTC)


def test_parse_or_now_defaults_to_current_time():
    before = datetime.now(UTC)
    parsed = parse_or_now("garbage")
    assert before <= parsed <= datetime.now(UTC)


def test_months_ago():
    now = datetime(2025, 7, 1, tzinfo=UTC)
    assert months_ago(6, now) == now - timedelta(days=180)
    assert months_ago(-3, now) == now


def test_yyyymmdd():
    assert yyyymmdd(datetime(2025, 1, 9, tzinfo=UTC)) == "20250109"
