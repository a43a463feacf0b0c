"""
Resource Model

An academic file (notes, exam paper, study guide...) shared by a user.

Only metadata lives here; file storage and streaming are handled elsewhere.

Rating Summary
==============
average_rating and total_ratings are DERIVED fields. They are never edited
directly or patched incrementally: app.services.ratings.AggregationEngine
recomputes both from the active Rating rows whenever a rating is submitted
or hidden. Ratings point at the resource (many-to-one); the resource keeps
no copy of them.

The version column is SQLAlchemy's optimistic lock: every summary write bumps
it, and a flush from a session holding an older version fails with
StaleDataError instead of overwriting a newer summary.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.rating import Rating
    from app.models.user import User


class Resource(Base):
    """
    Resource model.

    Table: resources

    Indexes:
    - author_id: for "uploaded by" listings
    - average_rating: for sorting by rating
    """

    __tablename__ = "resources"

    id: Mapped[int] = mapped_column(primary_key=True)

    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(200),
        index=True,
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject: Mapped[str] = mapped_column(String(50), nullable=False, default="Other")
    semester: Mapped[str | None] = mapped_column(String(20), nullable=True)
    resource_type: Mapped[str] = mapped_column(String(50), nullable=False, default="Other")

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Inactive resources are hidden and cannot be rated"
    )

    # -------------------------------------------------------------------------
    # Derived rating summary
    # -------------------------------------------------------------------------
    # Numeric(2, 1): 0.0 - 5.0, one decimal as displayed to users
    average_rating: Mapped[Decimal] = mapped_column(
        Numeric(2, 1),
        default=Decimal("0.0"),
        server_default="0",
        nullable=False,
        index=True,
        comment="Mean of active ratings, 0 when there are none"
    )
    total_ratings: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
        comment="Number of active ratings"
    )
    # Set on every recompute so the UPDATE (and its version check) always runs
    summarized_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Optimistic lock counter for summary writes"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    author: Mapped["User"] = relationship("User", back_populates="resources")

    ratings: Mapped[list["Rating"]] = relationship(
        "Rating",
        back_populates="resource",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"Resource(id={self.id}, title='{self.title}', average_rating={self.average_rating})"
