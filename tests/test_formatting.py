from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from repo_dashboard.formatting import format_date, format_number, relative_time

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_format_number_groups_thousands():
    assert format_number(0) == "0"
    assert format_number(1234567) == "1,234,567"


def test_format_date():
    assert format_date(datetime(2024, 1, 5, tzinfo=timezone.utc)) == "Jan 5, 2024"


@pytest.mark.parametrize(
    ("delta", "expected"),
    [
        (timedelta(seconds=30), "just now"),
        (timedelta(minutes=1), "1 minute ago"),
        (timedelta(hours=5), "5 hours ago"),
        (timedelta(days=2), "2 days ago"),
        (timedelta(days=14), "2 weeks ago"),
        (timedelta(days=65), "2 months ago"),
        (timedelta(days=400), "1 year ago"),
    ],
)
def test_relative_time(delta, expected):
    assert relative_time(NOW - delta, now=NOW) == expected
