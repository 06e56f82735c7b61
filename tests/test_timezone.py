from datetime import date, datetime, timezone

import pytest

from orgguard.core.exceptions import ValidationError
from orgguard.services import timezone as tz


EVENING_UTC = datetime(2024, 1, 1, 19, 0, tzinfo=timezone.utc)


def test_calendar_day_follows_the_org_zone():
    # 19:00 UTC is 00:30 IST the next day
    assert tz.today('Asia/Kolkata', EVENING_UTC) == '2024-01-02'
    assert tz.yesterday('Asia/Kolkata', EVENING_UTC) == '2024-01-01'
    assert tz.tomorrow('Asia/Kolkata', EVENING_UTC) == '2024-01-03'
    assert tz.today('America/New_York', EVENING_UTC) == '2024-01-01'


def test_missing_zone_uses_default():
    assert tz.today(None, EVENING_UTC) == '2024-01-02'
    assert tz.today('', EVENING_UTC) == '2024-01-02'
    assert tz.resolve_timezone(None).zone == tz.DEFAULT_TIMEZONE


def test_unknown_zone_is_rejected():
    with pytest.raises(ValidationError):
        tz.resolve_timezone('Mars/Olympus_Mons')


def test_start_and_end_of_day_in_utc():
    start = tz.start_of_day('Asia/Kolkata', EVENING_UTC)
    end = tz.end_of_day('Asia/Kolkata', EVENING_UTC)
    assert start == datetime(2024, 1, 1, 18, 30, tzinfo=timezone.utc)
    assert end == datetime(2024, 1, 2, 18, 29, 59, 999999, tzinfo=timezone.utc)
    assert start <= EVENING_UTC <= end


def test_start_of_month():
    now = datetime(2024, 1, 31, 19, 0, tzinfo=timezone.utc)  # Feb 1 in IST
    assert tz.start_of_month('Asia/Kolkata', now) == datetime(2024, 1, 31, 18, 30, tzinfo=timezone.utc)
    assert tz.start_of_month('UTC', now) == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_local_round_trip():
    instant = datetime(2024, 7, 4, 12, 15, tzinfo=timezone.utc)
    for zone in ('Asia/Kolkata', 'America/New_York', 'Australia/Sydney'):
        local = tz.to_org_local(instant, zone)
        assert tz.to_utc(local.replace(tzinfo=None), zone) == instant


def test_naive_instants_are_utc():
    local = tz.to_org_local(datetime(2024, 1, 1, 19, 0), 'Asia/Kolkata')
    assert local.date() == date(2024, 1, 2)
    assert local.hour == 0 and local.minute == 30


def test_dst_gap_and_fold_resolution():
    # 02:30 does not exist in New York on 2024-03-10
    assert tz.to_utc(datetime(2024, 3, 10, 2, 30), 'America/New_York', is_dst=False) == datetime(
        2024, 3, 10, 7, 30, tzinfo=timezone.utc
    )
    # 01:30 happens twice on 2024-11-03
    fold = datetime(2024, 11, 3, 1, 30)
    assert tz.to_utc(fold, 'America/New_York', is_dst=True) == datetime(2024, 11, 3, 5, 30, tzinfo=timezone.utc)
    assert tz.to_utc(fold, 'America/New_York', is_dst=False) == datetime(2024, 11, 3, 6, 30, tzinfo=timezone.utc)


def test_is_same_org_day():
    now = datetime(2024, 1, 2, 3, 0, tzinfo=timezone.utc)  # 08:30 IST Jan 2
    assert tz.is_same_org_day(EVENING_UTC, 'Asia/Kolkata', now) is True
    assert tz.is_same_org_day(EVENING_UTC, 'UTC', now) is False


def test_format_and_labels():
    assert tz.format_in_org_time(EVENING_UTC, 'Asia/Kolkata', '%H:%M') == '00:30'
    assert tz.timezone_label('Asia/Kolkata') == 'India (IST) - UTC+5:30'
    assert tz.timezone_label('Africa/Nairobi') == 'Africa/Nairobi'
    assert tz.timezone_abbreviation('America/New_York') == 'ET'
