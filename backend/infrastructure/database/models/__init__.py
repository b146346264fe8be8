"""
SQLAlchemy database models.
"""

from .base import Base, TimestampMixin
from .blog import BlogPost
from .user import User, UserRole, UserStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "BlogPost",
    "User",
    "UserRole",
    "UserStatus",
]
