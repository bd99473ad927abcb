"""
Test factories for generating realistic test data.

Uses factory_boy for declarative test data generation.
"""

from .profile import ProfileFactory, AdminProfileFactory
from .job_order import JobOrderFactory, InProgressJobOrderFactory, CompletedJobOrderFactory

__all__ = [
    "ProfileFactory",
    "AdminProfileFactory",
    "JobOrderFactory",
    "InProgressJobOrderFactory",
    "CompletedJobOrderFactory",
]
