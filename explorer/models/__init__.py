"""Database models package."""

from explorer.models.base import Base, TimestampMixin  # noqa: F401
from explorer.models.contract import Contract  # noqa: F401

__all__ = [
    "Base",
    "TimestampMixin",
    "Contract",
]
