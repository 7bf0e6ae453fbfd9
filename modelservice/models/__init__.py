"""
SQLAlchemy ORM models.

Import models here so Base.metadata knows every table before init_models runs.
"""

from modelservice.models.base import Base, IntegerIdMixin, ModelMixin, TimestampMixin
from modelservice.models.picture import Picture

__all__ = [
    "Base",
    "IntegerIdMixin",
    "ModelMixin",
    "TimestampMixin",
    "Picture",
]
