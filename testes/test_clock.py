from datetime import datetime, timedelta, timezone

from app.core.clock import elapsed_seconds, normalize_utc_naive, period_starts


def test_period_starts_use_local_calendar():
    # 2025-03-12 03:00 UTC = quarta 10:00 em Asia/Ho_Chi_Minh (UTC+7)
    starts = period_starts(datetime(2025, 3, 12, 3, 0), "Asia/Ho_Chi_Minh")

    assert starts.day == datetime(2025, 3, 11, 17, 0)
    # semana começa no domingo (09/03 local)
    assert starts.week == datetime(2025, 3, 8, 17, 0)
    assert starts.month == datetime(2025, 2, 28, 17, 0)


def test_period_starts_after_local_midnight():
    # 18:00 UTC já é o dia seguinte no horário local
    starts = period_starts(datetime(2025, 3, 12, 18, 0), "Asia/Ho_Chi_Minh")
    assert starts.day == datetime(2025, 3, 12, 17, 0)


def test_sunday_is_first_day_of_week():
    # domingo 16/03 08:00 local
    starts = period_starts(datetime(2025, 3, 16, 1, 0), "Asia/Ho_Chi_Minh")
    assert starts.week == starts.day == datetime(2025, 3, 15, 17, 0)


def test_normalize_utc_naive():
    aware = datetime(2025, 3, 12, 10, 0, tzinfo=timezone(timedelta(hours=7)))
    assert normalize_utc_naive(aware) == datetime(2025, 3, 12, 3, 0)
    assert normalize_utc_naive(datetime(2025, 1, 1)) == datetime(2025, 1, 1)
    assert normalize_utc_naive(None) is None


def test_elapsed_seconds_never_negative():
    t = datetime(2025, 1, 1, 12, 0)
    assert elapsed_seconds(t, t + timedelta(seconds=90.7)) == 90
    assert elapsed_seconds(t, t - timedelta(seconds=5)) == 0
