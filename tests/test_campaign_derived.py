"""
Derived campaign fields computed at read time.
- progress: 0 before start, 100 after end, round-half-up in between, monotonic in now.
- days_remaining: ceil of days to end_date, 0 once past.
- effective_status: active past end_date reads as completed; stored status untouched.
"""
from datetime import datetime, timedelta, timezone

from truck_social.models import Campaign, SocialPost
from truck_social.services.campaign_service import days_remaining, effective_status, progress
from truck_social.services.post_service import engagement_rate


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _campaign(status: str = "active") -> Campaign:
    return Campaign(status=status, start_date=_utc(2024, 6, 1), end_date=_utc(2024, 6, 11))


def test_midpoint_progress_and_days_remaining() -> None:
    """10-day campaign observed on day 5: 50% and 5 days left."""
    c = _campaign()
    now = _utc(2024, 6, 6)
    assert progress(c, now) == 50
    assert days_remaining(c, now) == 5


def test_progress_clamped_outside_window() -> None:
    c = _campaign()
    assert progress(c, _utc(2024, 5, 20)) == 0
    assert progress(c, _utc(2024, 7, 1)) == 100
    assert progress(c, _utc(2024, 6, 1)) == 0
    assert progress(c, _utc(2024, 6, 11)) == 100


def test_progress_rounds_half_up() -> None:
    """30h of a 240h window is exactly 12.5% -> 13."""
    c = _campaign()
    assert progress(c, _utc(2024, 6, 2, 6)) == 13


def test_progress_monotonic_in_now() -> None:
    c = _campaign()
    now = _utc(2024, 5, 30)
    previous = progress(c, now)
    while now < _utc(2024, 6, 13):
        now += timedelta(hours=7)
        current = progress(c, now)
        assert 0 <= current <= 100
        assert current >= previous
        previous = current


def test_days_remaining_partial_day_counts_as_one() -> None:
    c = _campaign()
    assert days_remaining(c, _utc(2024, 6, 10, 23, 0)) == 1
    assert days_remaining(c, _utc(2024, 6, 11)) == 0
    assert days_remaining(c, _utc(2024, 6, 12)) == 0
    assert days_remaining(c, _utc(2024, 5, 31)) == 11


def test_zero_length_window() -> None:
    c = Campaign(status="active", start_date=_utc(2024, 6, 1), end_date=_utc(2024, 6, 1))
    assert progress(c, _utc(2024, 6, 1)) == 100
    assert days_remaining(c, _utc(2024, 6, 1)) == 0


def test_naive_datetimes_are_treated_as_utc() -> None:
    """SQLite hands back naive timestamps."""
    c = Campaign(status="active", start_date=datetime(2024, 6, 1), end_date=datetime(2024, 6, 11))
    assert progress(c, _utc(2024, 6, 6)) == 50


def test_effective_status_completes_active_past_end() -> None:
    c = _campaign("active")
    assert effective_status(c, _utc(2024, 6, 5)) == "active"
    assert effective_status(c, _utc(2024, 6, 12)) == "completed"
    assert c.status == "active"


def test_effective_status_keeps_non_active_statuses() -> None:
    for status in ("draft", "paused", "cancelled", "completed"):
        assert effective_status(_campaign(status), _utc(2024, 7, 1)) == status


def test_engagement_rate() -> None:
    assert engagement_rate(SocialPost(reach=0, engagement=50)) == 0.0
    assert engagement_rate(SocialPost(reach=200, engagement=25)) == 12.5
    assert engagement_rate(SocialPost(reach=3, engagement=1)) == 33.33
