"""Applicant age check."""

from datetime import date
from typing import Optional

from app.config import settings


def age_on(birth_date: date, today: date) -> int:
    """Completed years between ``birth_date`` and ``today``."""
    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years


def is_of_age(birth_date: date, today: Optional[date] = None, minimum_age: Optional[int] = None) -> bool:
    """True on and after the birthday that reaches ``minimum_age``.

    A 29 February birthday is reached on 1 March in non-leap years.
    """
    today = today or date.today()
    minimum_age = settings.MINIMUM_APPLICANT_AGE if minimum_age is None else minimum_age
    return age_on(birth_date, today) >= minimum_age
