"""
Database models.
"""

from .base import Base, TimestampMixin
from .user import User, UserMixin

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "UserMixin",
]
