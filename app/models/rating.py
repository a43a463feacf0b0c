"""
Rating Models

A user's score (1-5) and optional feedback for one resource, plus the
helpfulness votes and moderation reports other users attach to it.

Business Rules:
- One rating per user per resource (unique constraint); a second submission
  edits the existing row
- Value must be 1-5, feedback at most 500 characters
- One helpful vote and one report per user per rating
- helpful_count mirrors len(helpful_votes) and is re-derived on every change
- After REPORT_HIDE_THRESHOLD distinct reports the rating becomes HIDDEN.
  HIDDEN is terminal: hidden ratings are left out of every average and
  public listing, and nothing in the rating engine makes them active again.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.resource import Resource
    from app.models.user import User


FEEDBACK_MAX_LENGTH = 500
REPORT_REASON_MAX_LENGTH = 200


class RatingState(str, Enum):
    """
    Visibility state of a rating.

    - ACTIVE: counted in the resource summary and shown publicly
    - HIDDEN: auto-hidden after too many reports (terminal)
    """
    ACTIVE = "active"
    HIDDEN = "hidden"


class Rating(Base):
    """
    Rating model.

    Attributes:
        id: Primary key
        user_id: Who rated (immutable)
        resource_id: What was rated (immutable)
        value: 1-5 stars
        feedback: Optional comment
        helpful_count: Cached size of helpful_votes
        state: ACTIVE or HIDDEN
        hidden_at: When the rating was auto-hidden
    """

    __tablename__ = "ratings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    resource_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("resources.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    value: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Rating from 1-5 stars",
    )
    feedback: Mapped[str] = mapped_column(
        String(FEEDBACK_MAX_LENGTH),
        default="",
        nullable=False,
    )

    helpful_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Number of helpful votes, always len(helpful_votes)",
    )

    state: Mapped[str] = mapped_column(
        String(10),
        default=RatingState.ACTIVE.value,
        nullable=False,
        index=True,
    )
    hidden_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="ratings")
    resource: Mapped["Resource"] = relationship("Resource", back_populates="ratings")
    helpful_votes: Mapped[list["HelpfulVote"]] = relationship(
        "HelpfulVote",
        back_populates="rating",
        cascade="all, delete-orphan",
        order_by="HelpfulVote.id",
    )
    reports: Mapped[list["RatingReport"]] = relationship(
        "RatingReport",
        back_populates="rating",
        cascade="all, delete-orphan",
        order_by="RatingReport.id",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "resource_id", name="uq_rating_user_resource"),
        CheckConstraint("value >= 1 AND value <= 5", name="ck_rating_value_range"),
    )

    @property
    def is_active(self) -> bool:
        return self.state == RatingState.ACTIVE.value

    @property
    def report_count(self) -> int:
        return len(self.reports)

    def __repr__(self) -> str:
        return (
            f"<Rating(id={self.id}, resource_id={self.resource_id}, "
            f"user_id={self.user_id}, value={self.value}, state={self.state})>"
        )


class HelpfulVote(Base):
    """A user marking a rating as helpful. Unique per (rating, user)."""

    __tablename__ = "rating_helpful_votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    rating_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("ratings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    rating: Mapped["Rating"] = relationship("Rating", back_populates="helpful_votes")

    __table_args__ = (
        UniqueConstraint("rating_id", "user_id", name="uq_helpful_vote_rating_user"),
    )


class RatingReport(Base):
    """A moderation report against a rating. Unique per (rating, reporter)."""

    __tablename__ = "rating_reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    rating_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("ratings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    reason: Mapped[str] = mapped_column(
        String(REPORT_REASON_MAX_LENGTH),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    rating: Mapped["Rating"] = relationship("Rating", back_populates="reports")

    __table_args__ = (
        UniqueConstraint("rating_id", "user_id", name="uq_rating_report_rating_user"),
    )
