"""
Services package for the Member Search API.

Contains operations that don't fit cleanly into the repository pattern
(which is for data access), such as sample data seeding.
"""

from app.services.sample_data import seed_sample_members

__all__ = ["seed_sample_members"]
