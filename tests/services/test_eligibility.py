"""
Tests for the applicant age check.
"""
from datetime import date

from app.services.eligibility import age_on, is_of_age


class TestAgeOn:
    def test_day_before_birthday(self):
        assert age_on(date(2000, 6, 15), date(2018, 6, 14)) == 17

    def test_on_birthday(self):
        assert age_on(date(2000, 6, 15), date(2018, 6, 15)) == 18


class TestIsOfAge:
    def test_exactly_eighteen_today(self):
        assert is_of_age(date(2008, 10, 19), today=date(2026, 10, 19)) is True

    def test_one_day_short(self):
        assert is_of_age(date(2008, 10, 20), today=date(2026, 10, 19)) is False

    def test_leap_day_birthday_in_common_year(self):
        # Reached on 1 March when there is no 29 February
        assert is_of_age(date(2008, 2, 29), today=date(2026, 2, 28)) is False
        assert is_of_age(date(2008, 2, 29), today=date(2026, 3, 1)) is True

    def test_custom_minimum(self):
        assert is_of_age(date(2010, 1, 1), today=date(2026, 1, 1), minimum_age=16) is True
