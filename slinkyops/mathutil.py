"""Small numeric helpers."""

from __future__ import annotations

import math
from typing import TypeVar

T = TypeVar("T")


def clamp(val: T, a: T, b: T) -> T:
    """Return ``val`` limited to the range spanned by ``a`` and ``b``."""
    lower, upper = min(a, b), max(a, b)
    return min(max(val, lower), upper)


def _scaled_value(int_or_percent: int | str | None, total: int, round_up: bool) -> int:
    if int_or_percent is None:
        raise ValueError("nil value for int or percent")
    if isinstance(int_or_percent, bool):
        raise ValueError("invalid type: bool")
    if isinstance(int_or_percent, int):
        return int_or_percent
    if isinstance(int_or_percent, str):
        if not int_or_percent.endswith("%"):
            raise ValueError(f"invalid value {int_or_percent!r}: not a percentage")
        percent = int(int_or_percent[:-1].strip() and int_or_percent[:-1])
        scaled = percent * total / 100
        return math.ceil(scaled) if round_up else math.floor(scaled)
    raise ValueError(f"invalid type: {type(int_or_percent).__name__}")


def get_scaled_value_from_int_or_percent(
    int_or_percent: int | str | None, total: int, round_up: bool, default_value: int
) -> int:
    """Scale an integer or "N%" string against ``total``.

    Returns ``default_value`` when the input is missing or malformed.
    """
    try:
        return _scaled_value(int_or_percent, total, round_up)
    except ValueError:
        return default_value