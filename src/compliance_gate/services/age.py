"""Age-from-birthdate computation with a minimum-age gate."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

from ..errors import InvalidDate

DateLike = Union[date, datetime, str]


@dataclass(frozen=True, slots=True)
class AgeResult:
    age: int
    eligible: bool


def coerce_date(value: DateLike, *, field_name: str = "date") -> date:
    """Normalise a date, datetime or ISO-8601 string to a calendar date."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if "T" in text or " " in text:
                return datetime.fromisoformat(text).date()
            return date.fromisoformat(text)
        except ValueError as exc:
            raise InvalidDate(f"{field_name} '{value}' is not an ISO-8601 date") from exc
    raise InvalidDate(f"{field_name} must be a date or ISO-8601 string, got {type(value).__name__}")


def evaluate_age(date_of_birth: DateLike, as_of: DateLike, minimum_age: int) -> AgeResult:
    """Compute completed years at ``as_of`` and compare with ``minimum_age``.

    A birthday counts once ``(month, day)`` of ``as_of`` reaches that of the
    birth date. Feb 29 birthdays therefore roll over on Mar 1 in non-leap years.
    """

    dob = coerce_date(date_of_birth, field_name="date_of_birth")
    today = coerce_date(as_of, field_name="as_of")
    if isinstance(minimum_age, bool) or not isinstance(minimum_age, int) or minimum_age < 0:
        raise InvalidDate(f"minimum_age must be a non-negative integer, got {minimum_age!r}")
    if dob > today:
        raise InvalidDate(f"date_of_birth {dob.isoformat()} is after {today.isoformat()}")

    age = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        age -= 1
    return AgeResult(age=age, eligible=age >= minimum_age)
