"""
Picture model.

The sample entity exposed by the default application at /pictures.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, String, Text
from sqlalchemy.orm import validates

from modelservice.models.base import Base, IntegerIdMixin, ModelMixin, TimestampMixin


class Picture(Base, IntegerIdMixin, TimestampMixin, ModelMixin):
    """
    A published picture.

    Attributes:
        id: Integer primary key
        title: Picture title (queryable)
        author: Author name (queryable)
        description: Free text description
        width: Width in pixels, positive (queryable)
        height: Height in pixels, positive (queryable)
        views: View counter (queryable)
        published: Whether the picture is visible
        created_at: When the picture was created
        updated_at: When the picture was last modified
    """

    __tablename__ = "pictures"

    title = Column(
        String(255),
        nullable=False,
        info={"queryable": True},
        doc="Picture title"
    )

    author = Column(
        String(255),
        nullable=True,
        info={"queryable": True},
        doc="Author name"
    )

    description = Column(
        Text,
        nullable=True,
        doc="Free text description"
    )

    width = Column(
        Integer,
        nullable=False,
        info={"queryable": True},
        doc="Width in pixels"
    )

    height = Column(
        Integer,
        nullable=False,
        info={"queryable": True},
        doc="Height in pixels"
    )

    views = Column(
        Integer,
        nullable=False,
        default=0,
        info={"queryable": True},
        doc="View counter"
    )

    published = Column(
        Boolean,
        nullable=False,
        default=False,
        doc="Whether the picture is visible"
    )

    __table_args__ = (
        CheckConstraint("views >= 0", name="check_views_positive"),
    )

    @validates("width", "height")
    def validate_dimension(self, key: str, value):
        if value is None or isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"{key} must be a positive integer")
        return value

    @validates("views")
    def validate_views(self, key: str, value):
        if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
            raise ValueError("views must be a non negative integer")
        return value
