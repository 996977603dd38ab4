"""Typed lookups of annotation values."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Mapping

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

_INTEGER = re.compile(r"[+-]?[0-9]+", re.ASCII)
_RFC3339 = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})T([0-9]{2}):([0-9]{2}):([0-9]{2})"
    r"(?:\.([0-9]+))?(Z|[+-][0-9]{2}:[0-9]{2})",
    re.ASCII,
)

_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def _valid_first_digit(text: str) -> bool:
    if not text:
        return False
    first = text[0]
    return first == "-" or text == "0" or "1" <= first <= "9"


def get_number_from_annotations(annotations: Mapping[str, str], key: str) -> int:
    """Return the 32-bit integer stored under ``key``, or 0 if it is absent.

    Values with a plus sign or leading zeros are rejected with ValueError.
    """
    if key not in annotations:
        return 0
    value = annotations[key]
    if not _valid_first_digit(value):
        raise ValueError(f"invalid value {value!r}")
    if not _INTEGER.fullmatch(value):
        raise ValueError(f"invalid syntax {value!r}")
    number = int(value)
    if not _INT32_MIN <= number <= _INT32_MAX:
        raise ValueError(f"value out of range {value!r}")
    return number


def get_bool_from_annotations(annotations: Mapping[str, str], key: str) -> bool:
    """Return the boolean stored under ``key``, or False if it is absent."""
    if key not in annotations:
        return False
    value = annotations[key]
    if value in _TRUE_WORDS:
        return True
    if value in _FALSE_WORDS:
        return False
    raise ValueError(f"invalid boolean {value!r}")


def get_time_from_annotations(annotations: Mapping[str, str], key: str) -> datetime | None:
    """Return the RFC 3339 time stored under ``key``, or None if it is absent."""
    if key not in annotations:
        return None
    value = annotations[key]
    match = _RFC3339.fullmatch(value)
    if match is None:
        raise ValueError(f"invalid RFC 3339 time {value!r}")
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    micros = int((fraction or "").ljust(6, "0")[:6])
    if zone == "Z":
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        if hours >= 24 or minutes >= 60:
            raise ValueError(f"time zone offset out of range in {value!r}")
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), micros, tzinfo=tz
    )