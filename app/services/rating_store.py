"""
Rating Store

Owns the individual Rating records, one per (user, resource), together with
their helpful votes and moderation reports.

The store works on a caller-provided Session and only ever flushes. Committing
(and rolling back) belongs to app.services.ratings, which wraps each operation
in a per-resource critical section so that the rating write and the summary
recompute land in the same transaction.

Reads that feed a write use populate_existing so a long-lived session never
decides anything from a stale identity-map copy.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.config import Settings, get_settings
from app.exceptions import ConcurrentModification, InvalidValue, NotFound, SelfRatingForbidden
from app.models.rating import (
    FEEDBACK_MAX_LENGTH,
    REPORT_REASON_MAX_LENGTH,
    HelpfulVote,
    Rating,
    RatingReport,
    RatingState,
)
from app.models.resource import Resource

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def validate_value(value: int) -> int:
    """
    Check a rating value is an integer in [1, 5].

    bool is rejected explicitly since True == 1 in Python.

    Raises:
        InvalidValue: If the value is out of range or not an integer
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidValue("Rating must be a whole number between 1 and 5")
    if not MIN_RATING <= value <= MAX_RATING:
        raise InvalidValue(
            "Rating must be between 1 and 5",
            details={"value": value},
        )
    return value


def normalize_feedback(feedback: str | None) -> str:
    """Strip feedback, treat None as empty, enforce the length limit."""
    feedback = (feedback or "").strip()
    if len(feedback) > FEEDBACK_MAX_LENGTH:
        raise InvalidValue(
            f"Feedback cannot exceed {FEEDBACK_MAX_LENGTH} characters",
            details={"length": len(feedback)},
        )
    return feedback


class RatingStore:
    """
    Durable collection of Rating records.

    Args:
        db: Database session (flushed, never committed here)
        settings: Optional settings override, mostly for tests
    """

    def __init__(self, db: Session, settings: Settings | None = None) -> None:
        self.db = db
        self.settings = settings or get_settings()

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------
    def get_resource(self, resource_id: int, *, refresh: bool = False) -> Resource:
        """
        Get an active resource or raise NotFound.

        Inactive (removed) resources are treated as missing: they can't be
        rated and aren't shown.
        """
        resource = self.db.get(Resource, resource_id, populate_existing=refresh)
        if resource is None or not resource.is_active:
            raise NotFound(f"Resource with id {resource_id} not found")
        return resource

    def get_rating(self, rating_id: int, *, refresh: bool = False) -> Rating:
        """Get a rating with its votes and reports loaded, or raise NotFound."""
        stmt = (
            select(Rating)
            .options(selectinload(Rating.helpful_votes), selectinload(Rating.reports))
            .where(Rating.id == rating_id)
        )
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)

        rating = self.db.execute(stmt).scalar_one_or_none()
        if rating is None:
            raise NotFound(f"Rating with id {rating_id} not found")
        return rating

    def find_by_resource(self, resource_id: int, include_hidden: bool = True) -> list[Rating]:
        """
        All ratings for a resource, newest first.

        Moderators get hidden ratings too (the default); anything public
        must pass include_hidden=False. The aggregation engine reads the full
        set and filters it itself.
        """
        stmt = (
            select(Rating)
            .where(Rating.resource_id == resource_id)
            .order_by(Rating.created_at.desc(), Rating.id.desc())
            .execution_options(populate_existing=True)
        )
        if not include_hidden:
            stmt = stmt.where(Rating.state == RatingState.ACTIVE.value)
        return list(self.db.execute(stmt).scalars().all())

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------
    def upsert_rating(
        self,
        user_id: int,
        resource: Resource,
        value: int,
        feedback: str | None = None,
    ) -> tuple[Rating, bool]:
        """
        Create the user's rating for a resource, or overwrite the existing one.

        On update only value and feedback change; votes, reports and state
        are left alone.

        Returns:
            (rating, created) where created is False for an update

        Raises:
            InvalidValue: Value outside 1-5 or feedback too long
            SelfRatingForbidden: The user is the resource author
            ConcurrentModification: Another writer inserted the same
                (user, resource) rating first
        """
        value = validate_value(value)
        feedback = normalize_feedback(feedback)

        if resource.author_id == user_id:
            raise SelfRatingForbidden()

        stmt = (
            select(Rating)
            .where(Rating.user_id == user_id, Rating.resource_id == resource.id)
            .execution_options(populate_existing=True)
        )
        rating = self.db.execute(stmt).scalar_one_or_none()

        created = rating is None
        if created:
            rating = Rating(
                user_id=user_id,
                resource_id=resource.id,
                value=value,
                feedback=feedback,
                helpful_count=0,
                state=RatingState.ACTIVE.value,
            )
            self.db.add(rating)
        else:
            rating.value = value
            rating.feedback = feedback

        try:
            self.db.flush()
        except IntegrityError as exc:
            raise ConcurrentModification(
                "A rating for this resource was submitted concurrently",
                details={"user_id": user_id, "resource_id": resource.id},
            ) from exc

        return rating, created

    def toggle_helpful(self, rating_id: int, user_id: int) -> Rating:
        """
        Add the user's helpful vote, or remove it if already present.

        Calling twice restores the original state. helpful_count is taken
        from the vote set after the change, never bumped on its own.

        Raises:
            NotFound: Unknown rating
        """
        rating = self.get_rating(rating_id, refresh=True)

        existing = next((v for v in rating.helpful_votes if v.user_id == user_id), None)
        if existing is not None:
            rating.helpful_votes.remove(existing)
        else:
            rating.helpful_votes.append(HelpfulVote(user_id=user_id))

        rating.helpful_count = len(rating.helpful_votes)

        try:
            self.db.flush()
        except IntegrityError as exc:
            raise ConcurrentModification(
                "Helpful vote was changed concurrently",
                details={"rating_id": rating_id, "user_id": user_id},
            ) from exc

        return rating

    def report_rating(
        self,
        rating_id: int,
        user_id: int,
        reason: str | None = None,
    ) -> tuple[Rating, bool]:
        """
        Record a report against a rating; auto-hide at the threshold.

        A repeat report from the same user changes nothing. Once the number
        of distinct reporters reaches report_hide_threshold the rating moves
        to HIDDEN, exactly once; later reports are stored but there is no
        way back to ACTIVE.

        Returns:
            (rating, became_hidden): became_hidden is True only for the
            report that crossed the threshold

        Raises:
            NotFound: Unknown rating
        """
        rating = self.get_rating(rating_id, refresh=True)

        if any(report.user_id == user_id for report in rating.reports):
            return rating, False

        reason = (reason or "").strip() or self.settings.default_report_reason
        rating.reports.append(
            RatingReport(user_id=user_id, reason=reason[:REPORT_REASON_MAX_LENGTH])
        )

        became_hidden = False
        if rating.is_active and len(rating.reports) >= self.settings.report_hide_threshold:
            rating.state = RatingState.HIDDEN.value
            rating.hidden_at = datetime.now(UTC)
            became_hidden = True

        try:
            self.db.flush()
        except IntegrityError as exc:
            raise ConcurrentModification(
                "Rating was reported concurrently",
                details={"rating_id": rating_id, "user_id": user_id},
            ) from exc

        return rating, became_hidden
