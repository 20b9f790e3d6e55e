# =============================================================================
# core/normalize.py  —  Shared Response Normalization Helpers
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Small, pure helpers used by both adapters to turn remote JSON into the
#   stable shapes in core/models.py.
#
# TWO SPELLINGS, TEXT NUMBERS:
#   The Google Ads client serializes int64 metrics as TEXT ("12500"), and
#   depending on the serializer a field can show up as cost_micros or
#   costMicros.  Every numeric field therefore goes through to_int /
#   to_float, and every lookup tries both naming conventions.
# =============================================================================

import math
from datetime import date
from typing import Any, Mapping, Optional

MICROS_PER_UNIT = 1_000_000

ISO_WEEK_TOKEN = "{ISO Week}"


def to_float(value: Any, default: float = 0.0) -> float:
    """Parse a number that may arrive as int, float, text, or None."""
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def to_int(value: Any, default: int = 0) -> int:
    """Parse an integer that may arrive as text ("12") or a float ("12.0")."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    parsed = to_float(value, float("nan"))
    if math.isnan(parsed):
        return default
    return int(parsed)


def micros_to_units(value: Any) -> float:
    """Convert micro-currency (millionths) to major units: 1_250_500_000 -> 1250.5."""
    return to_float(value) / MICROS_PER_UNIT


def camel_case(name: str) -> str:
    """cost_micros -> costMicros"""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def lookup(row: Optional[Mapping], path: str, default: Any = None) -> Any:
    """Read a dotted path from a row, accepting snake_case or camelCase keys.

    >>> lookup({"metrics": {"costMicros": "5"}}, "metrics.cost_micros")
    '5'
    """
    current: Any = row
    for segment in path.split("."):
        if not isinstance(current, Mapping):
            return default
        if segment in current:
            current = current[segment]
            continue
        alt = camel_case(segment)
        if alt in current:
            current = current[alt]
            continue
        return default
    return default if current is None else current


def iso_week(today: Optional[date] = None) -> str:
    """Week label used in task titles: ``YYYY-Www``.

    Week number is ceil(day-of-year / 7), so 1 Jan is W01 and 31 Dec of a
    leap year is W53.
    """
    today = today or date.today()
    day_of_year = today.timetuple().tm_yday
    week = math.ceil(day_of_year / 7)
    return f"{today.year}-W{week:02d}"


def fill_iso_week(title: str, today: Optional[date] = None) -> str:
    """Replace the first ``{ISO Week}`` token in a title, if present."""
    if ISO_WEEK_TOKEN not in title:
        return title
    return title.replace(ISO_WEEK_TOKEN, iso_week(today), 1)
