"""
Profile test factory.

Generates realistic operator and admin profiles for auth and rating tests.
"""

import factory
from faker import Faker

fake = Faker()


class ProfileFactory(factory.Factory):
    """
    Factory for generating Profile keyword arguments.

    Usage:
        profile = Profile(**ProfileFactory())
        profile = Profile(**ProfileFactory(role="admin"))
    """

    class Meta:
        model = dict

    email = factory.LazyFunction(lambda: fake.unique.email().lower())
    full_name = factory.LazyFunction(fake.name)
    role = "operator"
    hashed_password = "$2b$12$test.hash.for.testing.only"  # noqa: S105
    phone = factory.LazyFunction(fake.phone_number)
    position = "Operator"
    active = True
    cleanliness_rating_avg = 0.0
    cleanliness_rating_count = 0
    communication_rating_avg = 0.0
    communication_rating_count = 0
    overall_rating_avg = 0.0
    overall_rating_count = 0
    total_ratings_received = 0


class AdminProfileFactory(ProfileFactory):
    """Factory for admin profiles."""

    role = "admin"
    position = "Office Manager"
