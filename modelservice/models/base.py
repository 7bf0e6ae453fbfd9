"""
Base models and mixins for SQLAlchemy ORM.

Provides the declarative base, the integer id and timestamp mixins every
entity served by SQLAlchemyBackend uses, and a serialization helper.

Columns declared with ``info={"queryable": True}`` may be used in filters
and sort parameters.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.orm import declarative_base


# SQLAlchemy declarative base for all ORM models
Base = declarative_base()


def utc_now() -> datetime:
    """Current UTC time, used as column default."""
    return datetime.now(timezone.utc)


class IntegerIdMixin:
    """
    Mixin that adds an autoincrement integer primary key.

    Attributes:
        id: Positive integer primary key
    """

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Integer primary key"
    )


class TimestampMixin:
    """
    Mixin that adds created_at and updated_at timestamp columns.

    Attributes:
        created_at: Timestamp when record was created (immutable)
        updated_at: Timestamp when record was last updated (auto-updated)
    """

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        doc="UTC timestamp when record was created"
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        doc="UTC timestamp when record was last updated"
    )


class ModelMixin:
    """
    Mixin providing common model utilities.
    """

    def to_dict(self) -> dict[str, Any]:
        """
        Convert model instance to dictionary.

        Note:
            Only includes columns, not relationships.
        """
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }

    def __repr__(self) -> str:
        attrs = ", ".join(
            f"{key}={repr(value)}"
            for key, value in self.to_dict().items()
            if key in ["id", "title", "name"]
        )
        return f"{self.__class__.__name__}({attrs})"
