"""
Repository pattern for data access.
"""

from extauth.repositories.base import ChangesetRepository

__all__ = ["ChangesetRepository"]
