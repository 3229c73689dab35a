"""
Date helpers for birthday and age rules.
"""
from datetime import date, datetime
from typing import Optional, Union

DateLike = Union[date, str, None]


def parse_birth_date(value: DateLike) -> Optional[date]:
    """
    Parse a birth date coming from the backend or a form.

    Accepts ``date`` objects and ISO strings (``YYYY-MM-DD``, optionally with a
    time part). Anything unparseable returns None, which every rule treats as
    "no birth date on file".
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def compute_age(birth_date: DateLike, today: Optional[date] = None) -> Optional[int]:
    """Completed years between birth_date and today; None when unknown or in the future."""
    born = parse_birth_date(birth_date)
    if born is None:
        return None
    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    if age < 0:
        return None
    return age


def is_birthday_today(birth_date: DateLike, today: Optional[date] = None) -> bool:
    """True when today's month/day equals the birth month/day."""
    born = parse_birth_date(birth_date)
    if born is None:
        return False
    today = today or date.today()
    return (today.month, today.day) == (born.month, born.day)
