from datetime import date, datetime, timezone

import pytest

from compliance_gate.errors import InvalidDate
from compliance_gate.services.age import evaluate_age


def test_eligible_on_exact_birthday() -> None:
    result = evaluate_age(date(2000, 6, 15), date(2021, 6, 15), 21)
    assert result.age == 21
    assert result.eligible is True


def test_not_eligible_one_day_before_birthday() -> None:
    result = evaluate_age(date(2000, 6, 15), date(2021, 6, 14), 21)
    assert result.age == 20
    assert result.eligible is False


@pytest.mark.parametrize(
    "as_of, expected_age",
    [
        (date(2025, 2, 28), 20),
        (date(2025, 3, 1), 21),
        (date(2024, 2, 29), 20),
        (date(2024, 2, 28), 19),
    ],
)
def test_leap_day_birthday_rolls_over_on_march_first(as_of: date, expected_age: int) -> None:
    assert evaluate_age(date(2004, 2, 29), as_of, 21).age == expected_age


def test_accepts_iso_strings_and_datetimes() -> None:
    result = evaluate_age("1990-01-31", datetime(2026, 1, 30, 23, 0, tzinfo=timezone.utc), 21)
    assert result.age == 35
    assert result.eligible is True


@pytest.mark.parametrize("dob", ["2000-13-40", "yesterday", 20000101])
def test_malformed_birth_date_raises(dob) -> None:
    with pytest.raises(InvalidDate):
        evaluate_age(dob, date(2026, 1, 1), 21)


def test_birth_date_after_reference_date_raises() -> None:
    with pytest.raises(InvalidDate):
        evaluate_age(date(2030, 1, 1), date(2026, 1, 1), 21)


def test_negative_minimum_age_raises() -> None:
    with pytest.raises(InvalidDate):
        evaluate_age(date(2000, 1, 1), date(2026, 1, 1), -1)
