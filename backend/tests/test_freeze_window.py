from datetime import date, datetime, timedelta, timezone

from effort_tracker.services.freeze_window import (
    editable_range,
    get_not_yet_frozen_dates,
    is_client_current_date_valid,
)


def _days(start: date, end: date) -> list[date]:
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def test_before_freeze_day_previous_month_is_still_open():
    candidates = [date(2020, 11, 30), date(2020, 12, 1), date(2020, 12, 31), date(2021, 1, 2)]
    result = get_not_yet_frozen_dates(candidates, date(2021, 1, 2), 12)
    assert result == [date(2020, 12, 1), date(2020, 12, 31), date(2021, 1, 2)]


def test_on_or_after_freeze_day_only_current_month_is_open():
    candidates = [date(2020, 12, 31), date(2021, 1, 1), date(2021, 1, 15), date(2021, 1, 31)]
    result = get_not_yet_frozen_dates(candidates, date(2021, 1, 15), 12)
    assert result == [date(2021, 1, 1), date(2021, 1, 15), date(2021, 1, 31)]


def test_freeze_day_itself_already_freezes_previous_month():
    assert get_not_yet_frozen_dates([date(2020, 12, 31)], date(2021, 1, 12), 12) == []
    assert get_not_yet_frozen_dates([date(2020, 12, 31)], date(2021, 1, 11), 12) == [date(2020, 12, 31)]


def test_freeze_day_one_never_leaves_previous_month_open():
    for day in _days(date(2021, 3, 1), date(2021, 3, 31)):
        assert get_not_yet_frozen_dates([date(2021, 2, 28)], day, 1) == []


def test_freeze_day_is_clamped_to_month_length():
    # February 2021 has 28 days; a freeze day of 31 behaves like 28.
    assert editable_range(date(2021, 2, 28), 31) == (date(2021, 2, 1), date(2021, 2, 28))
    assert editable_range(date(2021, 2, 27), 31) == (date(2021, 1, 1), date(2021, 2, 28))


def test_dates_before_previous_month_are_never_open():
    for current in _days(date(2021, 3, 1), date(2021, 3, 31)):
        for freeze_day in (1, 12, 31):
            result = get_not_yet_frozen_dates(_days(date(2021, 1, 1), date(2021, 1, 31)), current, freeze_day)
            assert result == []


def test_dates_after_current_month_are_not_open():
    assert get_not_yet_frozen_dates([date(2021, 2, 1)], date(2021, 1, 20), 12) == []


def test_previous_month_across_year_boundary():
    start, end = editable_range(date(2021, 1, 5), 10)
    assert start == date(2020, 12, 1)
    assert end == date(2021, 1, 31)


def test_client_date_valid_within_time_zone_spread():
    now = datetime(2021, 1, 24, 6, 0, tzinfo=timezone.utc)
    assert is_client_current_date_valid(date(2021, 1, 24), now)
    # UTC-12 is still on the 23rd at 06:00 UTC.
    assert is_client_current_date_valid(date(2021, 1, 23), now)
    # UTC+14 is only at 20:00 on the 24th.
    assert not is_client_current_date_valid(date(2021, 1, 25), now)
    assert not is_client_current_date_valid(date(2021, 1, 22), now)


def test_client_date_valid_late_in_utc_day():
    now = datetime(2021, 1, 24, 20, 0, tzinfo=timezone.utc)
    assert is_client_current_date_valid(date(2021, 1, 25), now)
    assert not is_client_current_date_valid(date(2021, 1, 23), now)
