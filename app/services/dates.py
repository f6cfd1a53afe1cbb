from __future__ import annotations

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterator, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import dateparser

logger = logging.getLogger(__name__)

# Graph serializes seven fractional digits; datetime accepts at most six.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")

ONE_DAY = timedelta(days=1)


def _resolve_zone(name: Optional[str]) -> timezone | ZoneInfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.debug("Unknown time zone %r, assuming UTC", name)
        return timezone.utc


def _parse_text(text: str, zone: timezone | ZoneInfo) -> Optional[datetime]:
    cleaned = _FRACTION_RE.sub(r"\1", text.strip())
    if cleaned.endswith(("Z", "z")):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(cleaned)
    except ValueError:
        pass

    parsed = dateparser.parse(
        text,
        settings={
            "TIMEZONE": getattr(zone, "key", "UTC"),
            "RETURN_AS_TIMEZONE_AWARE": True,
            "STRICT_PARSING": True,
        },
        languages=["en"],
    )
    return parsed


def parse_timestamp(value: Any, time_zone: Optional[str] = None) -> Optional[datetime]:
    """Parse a provider timestamp into an aware UTC datetime.

    Accepts ISO 8601 text, a Graph ``dateTimeTimeZone`` mapping, a
    ``datetime`` or a ``date``. Naive values are read in ``time_zone``
    (UTC when missing or unknown). Returns ``None`` when nothing usable
    can be parsed.
    """

    if isinstance(value, Mapping):
        time_zone = value.get("timeZone") or time_zone
        value = value.get("dateTime")

    zone = _resolve_zone(time_zone if isinstance(time_zone, str) else None)

    if isinstance(value, datetime):
        parsed: Optional[datetime] = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = _parse_text(value, zone)
        except (ValueError, TypeError, OverflowError):
            parsed = None
    else:
        parsed = None

    if parsed is None:
        return None
    try:
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=zone)
        return parsed.astimezone(timezone.utc)
    except (ValueError, TypeError, OverflowError):
        return None


def to_utc_date(value: Any, time_zone: Optional[str] = None) -> Optional[date]:
    parsed = parse_timestamp(value, time_zone)
    return parsed.date() if parsed else None


def utc_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def add_months(day: date, months: int) -> date:
    """Shift ``day`` by whole months, clamping to the last day of the target month."""

    index = day.month - 1 + months
    year, month = day.year + index // 12, index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


@dataclass(frozen=True)
class DateRange:
    """Half-open span of calendar days, ``[start, end)``.

    The end day is the checkout day, so a range ending on the 13th does not
    overlap one starting on the 13th.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end > self.start:
            return
        if self.start == date.max:
            object.__setattr__(self, "start", date.max - ONE_DAY)
            object.__setattr__(self, "end", date.max)
        else:
            object.__setattr__(self, "end", self.start + ONE_DAY)

    @classmethod
    def from_nights(cls, check_in: date, nights: int) -> "DateRange":
        try:
            return cls(check_in, check_in + timedelta(days=max(1, nights)))
        except OverflowError:
            return cls(check_in, date.max)

    def overlaps(self, other: "DateRange") -> bool:
        return self.start < other.end and other.start < self.end

    def clip(self, other: "DateRange") -> Optional["DateRange"]:
        """Return the part of this range inside ``other``, or ``None`` when they do not overlap."""

        if not self.overlaps(other):
            return None
        return DateRange(max(self.start, other.start), min(self.end, other.end))

    def days(self) -> Iterator[date]:
        current = self.start
        while current < self.end:
            yield current
            current += ONE_DAY


def appointment_dates(appointment: Mapping[str, Any]) -> Optional[Tuple[date, date]]:
    """Return the raw UTC start and checkout dates of a Graph appointment, or ``None`` if unreadable."""

    start = to_utc_date(appointment.get("startDateTime"))
    end = to_utc_date(appointment.get("endDateTime"))
    if start is None or end is None:
        return None
    return start, end


def appointment_range(appointment: Mapping[str, Any]) -> Optional[DateRange]:
    """Return the stay covered by a Graph appointment, widened to at least one night."""

    dates = appointment_dates(appointment)
    if dates is None:
        return None
    return DateRange(*dates)
