# dates.py
from datetime import date, datetime

from errors import DateParseError, InvalidRangeError


def parse_date(value) -> date:
    """Normalize a date, datetime or ISO-8601 string to a calendar date.

    Time of day is dropped, so ``2024-06-05T14:00`` and ``2024-06-05``
    compare equal.
    """
    # datetime first: it is a subclass of date
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
    raise DateParseError(f"Invalid date: {value!r}", {"value": str(value)})


def parse_range(check_in, check_out):
    ci, co = parse_date(check_in), parse_date(check_out)
    if co <= ci:
        raise InvalidRangeError(
            "Check-out date must be after check-in date",
            {"check_in": ci.isoformat(), "check_out": co.isoformat()},
        )
    return ci, co


def nights_between(check_in, check_out) -> int:
    return (parse_date(check_out) - parse_date(check_in)).days
