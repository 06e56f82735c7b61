"""
Organization-timezone calendar helpers.

Every "today / this day / this month" decision is made on the organization's local
calendar, then converted back to UTC for range queries against UTC timestamps.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Optional

import pytz

from orgguard.core.exceptions import ValidationError

DEFAULT_TIMEZONE = "Asia/Kolkata"
DAY_FORMAT = "%Y-%m-%d"

COMMON_TIMEZONES: list[dict[str, str]] = [
    {"value": "Asia/Kolkata", "label": "India (IST) - UTC+5:30"},
    {"value": "Asia/Dubai", "label": "Dubai (GST) - UTC+4"},
    {"value": "America/New_York", "label": "New York (EST/EDT)"},
    {"value": "America/Los_Angeles", "label": "Los Angeles (PST/PDT)"},
    {"value": "Europe/London", "label": "London (GMT/BST)"},
    {"value": "Asia/Singapore", "label": "Singapore (SGT) - UTC+8"},
    {"value": "Australia/Sydney", "label": "Sydney (AEST/AEDT)"},
    {"value": "Europe/Paris", "label": "Paris (CET/CEST)"},
    {"value": "Asia/Tokyo", "label": "Tokyo (JST) - UTC+9"},
    {"value": "America/Chicago", "label": "Chicago (CST/CDT)"},
]

TIMEZONE_ABBREVIATIONS = {
    "Asia/Kolkata": "IST",
    "Asia/Dubai": "GST",
    "America/New_York": "ET",
    "America/Los_Angeles": "PT",
    "Europe/London": "GMT",
    "Asia/Singapore": "SGT",
    "Australia/Sydney": "AEST",
    "Europe/Paris": "CET",
    "Asia/Tokyo": "JST",
    "America/Chicago": "CT",
}


def utc_now() -> datetime:
    return datetime.now(dt_timezone.utc)


def as_utc(instant: datetime) -> datetime:
    """Treat naive datetimes as UTC and return an aware UTC datetime."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=pytz.utc)
    return instant.astimezone(pytz.utc)


def resolve_timezone(tz: Optional[str]) -> pytz.BaseTzInfo:
    """Return the pytz zone for ``tz``, falling back to the default when unset."""
    name = (tz or "").strip() or DEFAULT_TIMEZONE
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        raise ValidationError(f"Unknown timezone: {name}")


def to_org_local(instant: datetime, tz: Optional[str]) -> datetime:
    """Convert an instant to an aware datetime on the organization's wall clock."""
    zone = resolve_timezone(tz)
    return as_utc(instant).astimezone(zone)


def to_utc(local_dt: datetime, tz: Optional[str], is_dst: Optional[bool] = False) -> datetime:
    """
    Convert an organization wall-clock datetime to UTC.

    Aware datetimes already pin an instant and are converted directly. Naive ones are
    interpreted in ``tz``; inside a DST fold or gap ``is_dst`` picks the side
    (``None`` raises pytz's AmbiguousTimeError / NonExistentTimeError instead).
    """
    if local_dt.tzinfo is not None:
        return local_dt.astimezone(pytz.utc)
    zone = resolve_timezone(tz)
    localized = zone.localize(local_dt, is_dst=is_dst)
    return zone.normalize(localized).astimezone(pytz.utc)


def format_in_org_time(instant: datetime, tz: Optional[str], fmt: str) -> str:
    return to_org_local(instant, tz).strftime(fmt)


def org_date(tz: Optional[str], now: Optional[datetime] = None) -> date:
    return to_org_local(now or utc_now(), tz).date()


def today(tz: Optional[str], now: Optional[datetime] = None) -> str:
    return org_date(tz, now).strftime(DAY_FORMAT)


def yesterday(tz: Optional[str], now: Optional[datetime] = None) -> str:
    return (org_date(tz, now) - timedelta(days=1)).strftime(DAY_FORMAT)


def tomorrow(tz: Optional[str], now: Optional[datetime] = None) -> str:
    return (org_date(tz, now) + timedelta(days=1)).strftime(DAY_FORMAT)


def start_of_day(tz: Optional[str], now: Optional[datetime] = None) -> datetime:
    """UTC instant of local midnight at the start of the organization's current day."""
    local_day = org_date(tz, now)
    return to_utc(datetime.combine(local_day, time.min), tz)


def end_of_day(tz: Optional[str], now: Optional[datetime] = None) -> datetime:
    """UTC instant of the last microsecond of the organization's current day."""
    local_day = org_date(tz, now)
    return to_utc(datetime.combine(local_day, time.max), tz)


def start_of_month(tz: Optional[str], now: Optional[datetime] = None) -> datetime:
    """UTC instant of local midnight on the first day of the organization's current month."""
    local_day = org_date(tz, now)
    return to_utc(datetime.combine(local_day.replace(day=1), time.min), tz)


def is_same_org_day(instant: datetime, tz: Optional[str], now: Optional[datetime] = None) -> bool:
    """True when ``instant`` falls on the organization's current local calendar day."""
    return format_in_org_time(instant, tz, DAY_FORMAT) == today(tz, now)


def timezone_label(tz: str) -> str:
    for entry in COMMON_TIMEZONES:
        if entry["value"] == tz:
            return entry["label"]
    return tz


def timezone_abbreviation(tz: str) -> str:
    return TIMEZONE_ABBREVIATIONS.get(tz, tz)
