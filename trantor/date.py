"""A microsecond-resolution point in time with UTC and local formatting."""

from __future__ import annotations

import functools
import re
import time
from dataclasses import dataclass
from typing import ClassVar

_STRFTIME_LIMIT = 256
_LEADING_INT = re.compile(r"\s*[+-]?\d+")


def _c_div(value: int, divisor: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(value) // abs(divisor)
    return quotient if (value >= 0) == (divisor > 0) else -quotient


def _c_mod(value: int, divisor: int) -> int:
    """Remainder whose sign follows the dividend."""
    return value - _c_div(value, divisor) * divisor


def _split(text: str, separator: str) -> list[str]:
    return [part for part in text.split(separator) if part]


def _parse_leading_int(text: str) -> int:
    """Read an integer from the start of ``text``, ignoring what follows."""
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"no number in {text!r}")
    return int(match.group())


def _strftime(fmt: str, moment: time.struct_time) -> str:
    result = time.strftime(fmt, moment)
    if len(result.encode("utf-8")) >= _STRFTIME_LIMIT:
        return ""
    return result


def _mktime(year: int, month: int, day: int, hour: int, minute: int,
            second: int, isdst: int = -1) -> int:
    try:
        return int(time.mktime(
            (year, month, day, hour, minute, second, 0, 0, isdst)))
    except (OverflowError, OSError) as exc:
        raise ValueError("date out of range") from exc


@functools.lru_cache(maxsize=None)
def _timezone_offset() -> int:
    local = Date.from_db_string_local("1970-01-03 00:00:00")
    return -(local.seconds_since_epoch() - 2 * 3600 * 24)


@dataclass(frozen=True, order=True)
class Date:
    """A time point, counted in microseconds since 1970-01-01 00:00:00 UTC."""

    micro_seconds_since_epoch: int = 0

    MICRO_SECONDS_PER_SEC: ClassVar[int] = 1_000_000

    @classmethod
    def from_components(cls, year, month, day, hour=0, minute=0, second=0,
                        micro_second=0) -> Date:
        """Build a date from local-time calendar fields."""
        epoch = _mktime(year, month, day, hour, minute, second)
        return cls(epoch * cls.MICRO_SECONDS_PER_SEC + micro_second)

    @classmethod
    def date(cls) -> Date:
        """Return the current time."""
        return cls(time.time_ns() // 1000)

    @classmethod
    def now(cls) -> Date:
        """Return the current time."""
        return cls.date()

    @staticmethod
    def timezone_offset() -> int:
        """Seconds the local time zone is ahead of UTC."""
        return _timezone_offset()

    def after(self, second) -> Date:
        """Return the date ``second`` seconds later (may be negative)."""
        return Date(int(self.micro_seconds_since_epoch
                        + second * self.MICRO_SECONDS_PER_SEC))

    def round_second(self) -> Date:
        """Return this date with the microseconds dropped."""
        us = self.micro_seconds_since_epoch
        return Date(us - _c_mod(us, self.MICRO_SECONDS_PER_SEC))

    def round_day(self) -> Date:
        """Return local midnight of this date's day."""
        t = time.localtime(self._seconds())
        epoch = _mktime(t.tm_year, t.tm_mon, t.tm_mday, 0, 0, 0, t.tm_isdst)
        return Date(epoch * self.MICRO_SECONDS_PER_SEC)

    def seconds_since_epoch(self) -> int:
        """Whole seconds since the epoch."""
        return self._seconds()

    def is_same_second(self, other: Date) -> bool:
        """True if both dates fall within the same second."""
        return self._seconds() == other._seconds()

    def tm_struct(self) -> time.struct_time:
        """Broken-down UTC time of this date."""
        return time.gmtime(self._seconds())

    def to_formatted_string(self, show_microseconds) -> str:
        """UTC time as ``YYYYMMDD HH:MM:SS[.UUUUUU]``."""
        return self._compact(time.gmtime(self._seconds()), show_microseconds)

    def to_custom_formatted_string(self, fmt, show_microseconds=False) -> str:
        """UTC time formatted with a strftime pattern."""
        return self._custom(fmt, time.gmtime(self._seconds()),
                            show_microseconds)

    def to_formatted_string_local(self, show_microseconds) -> str:
        """Local time as ``YYYYMMDD HH:MM:SS[.UUUUUU]``."""
        return self._compact(time.localtime(self._seconds()),
                             show_microseconds)

    def to_custom_formatted_string_local(self, fmt,
                                         show_microseconds=False) -> str:
        """Local time formatted with a strftime pattern."""
        return self._custom(fmt, time.localtime(self._seconds()),
                            show_microseconds)

    def to_db_string_local(self) -> str:
        """Local time for a database: date only, with seconds, or with microseconds."""
        t = time.localtime(self._seconds())
        micro = self._micros()
        day = f"{t.tm_year:4d}-{t.tm_mon:02d}-{t.tm_mday:02d}"
        clock = f"{t.tm_hour:02d}:{t.tm_min:02d}:{t.tm_sec:02d}"
        if micro != 0:
            return f"{day} {clock}.{micro:06d}"
        if self == self.round_day():
            return day
        return f"{day} {clock}"

    def to_db_string(self) -> str:
        """UTC time for a database, in the format of ``to_db_string_local``."""
        return self.after(-self.timezone_offset()).to_db_string_local()

    @classmethod
    def from_db_string_local(cls, datetime_str) -> Date:
        """Parse ``YYYY-MM-DD[ HH:MM:SS[.UUUUUU]]`` as local time."""
        error = ValueError(f"Invalid date string: {datetime_str}")
        parts = _split(datetime_str, " ")
        if not parts:
            raise error
        date_parts = _split(parts[0], "-")
        if len(date_parts) != 3 or len(parts) > 2:
            raise error
        hour = minute = second = micro = 0
        try:
            year, month, day = (_parse_leading_int(p) for p in date_parts)
            if len(parts) == 2:
                clock = _split(parts[1], ":")
                if len(clock) > 2:
                    hour = _parse_leading_int(clock[0])
                    minute = _parse_leading_int(clock[1])
                    seconds = _split(clock[2], ".")
                    second = _parse_leading_int(seconds[0])
                    if len(seconds) > 1:
                        fraction = seconds[1][:6].ljust(6, "0")
                        micro = _parse_leading_int(fraction)
        except (ValueError, IndexError) as exc:
            raise error from exc
        return cls.from_components(year, month, day, hour, minute, second,
                                   micro)

    @classmethod
    def from_db_string(cls, datetime_str) -> Date:
        """Parse a UTC database string; inverse of ``to_db_string``."""
        return cls.from_db_string_local(datetime_str).after(
            cls.timezone_offset())

    def _seconds(self) -> int:
        return _c_div(self.micro_seconds_since_epoch,
                      self.MICRO_SECONDS_PER_SEC)

    def _micros(self) -> int:
        return _c_mod(self.micro_seconds_since_epoch,
                      self.MICRO_SECONDS_PER_SEC)

    def _compact(self, t: time.struct_time, show_microseconds: bool) -> str:
        text = (f"{t.tm_year:4d}{t.tm_mon:02d}{t.tm_mday:02d} "
                f"{t.tm_hour:02d}:{t.tm_min:02d}:{t.tm_sec:02d}")
        if show_microseconds:
            text += f".{self._micros():06d}"
        return text

    def _custom(self, fmt: str, t: time.struct_time,
                show_microseconds: bool) -> str:
        text = _strftime(fmt, t)
        if show_microseconds:
            text += f".{self._micros():06d}"
        return text