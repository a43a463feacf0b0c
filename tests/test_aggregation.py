"""
Tests for Rating Aggregation

The resource summary (average_rating, total_ratings) is derived from the
active ratings every time:
- Averages are rounded half-up to one decimal
- No active ratings means 0.0 / 0
- Hidden ratings drop out of the summary
- Recomputing is idempotent, and recalculate_all repairs drifted summaries
"""

from collections.abc import Callable
from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.exceptions import InvalidValue, NotFound, SelfRatingForbidden
from app.models import Rating, Resource, User
from app.services.rating_store import RatingStore
from app.services.ratings import (
    AggregationEngine,
    recalculate_all,
    recompute_resource,
    report_rating,
    submit_rating,
    summarize,
)


# =============================================================================
# summarize()
# =============================================================================


class TestSummarize:
    """Pure average/count computation."""

    @pytest.mark.parametrize(
        "values, average, total",
        [
            ([5, 3, 4], "4.0", 3),
            ([5, 4], "4.5", 2),
            ([1], "1.0", 1),
            ([4, 4, 5], "4.3", 3),
            ([5, 5, 4], "4.7", 3),
            ([3, 4, 3, 3], "3.3", 4),  # 3.25 rounds up
            ([2, 3, 3, 3], "2.8", 4),  # 2.75 rounds up
            ([1, 2], "1.5", 2),
        ],
    )
    def test_average_and_count(self, values: list[int], average: str, total: int):
        assert summarize(values) == (Decimal(average), total)

    def test_empty(self):
        assert summarize([]) == (Decimal("0.0"), 0)

    def test_accepts_generators(self):
        assert summarize(v for v in [2, 4]) == (Decimal("3.0"), 2)


# =============================================================================
# Recompute after submissions and reports
# =============================================================================


class TestSubmitRecomputes:
    """Tests for submit_rating keeping the summary current."""

    def test_new_resource_has_empty_summary(self, sample_resource: Resource):
        assert sample_resource.average_rating == Decimal("0.0")
        assert sample_resource.total_ratings == 0

    def test_summary_after_three_ratings(
        self,
        db_session: Session,
        sample_resource: Resource,
        make_users: Callable[..., list[User]],
    ):
        raters = make_users(3)

        for rater, value in zip(raters, [5, 3, 4]):
            submission = submit_rating(db_session, sample_resource.id, rater, value)

        assert submission.summary.average_rating == Decimal("4.0")
        assert submission.summary.total_ratings == 3

        db_session.refresh(sample_resource)
        assert sample_resource.average_rating == Decimal("4.0")
        assert sample_resource.total_ratings == 3

    def test_updated_value_replaces_old_one(
        self, db_session: Session, sample_user: User, sample_resource: Resource
    ):
        submit_rating(db_session, sample_resource.id, sample_user, 5)
        submission = submit_rating(db_session, sample_resource.id, sample_user, 1)

        assert submission.created is False
        assert submission.summary.average_rating == Decimal("1.0")
        assert submission.summary.total_ratings == 1

    def test_failed_submission_changes_nothing(
        self,
        db_session: Session,
        author: User,
        sample_user: User,
        sample_resource: Resource,
    ):
        submit_rating(db_session, sample_resource.id, sample_user, 4)

        with pytest.raises(SelfRatingForbidden):
            submit_rating(db_session, sample_resource.id, author, 1)
        with pytest.raises(InvalidValue):
            submit_rating(db_session, sample_resource.id, sample_user, 6)

        db_session.refresh(sample_resource)
        assert sample_resource.average_rating == Decimal("4.0")
        assert sample_resource.total_ratings == 1
        assert RatingStore(db_session).find_by_resource(sample_resource.id)[0].value == 4

    def test_missing_resource(self, db_session: Session, sample_user: User):
        with pytest.raises(NotFound):
            submit_rating(db_session, 99999, sample_user, 4)

    def test_hiding_a_rating_removes_it_from_summary(
        self,
        db_session: Session,
        sample_resource: Resource,
        make_users: Callable[..., list[User]],
    ):
        """[5, 3, 4] averages 4.0; hiding the 3 leaves [5, 4] = 4.5."""
        raters = make_users(3)
        ratings = [
            submit_rating(db_session, sample_resource.id, rater, value).rating
            for rater, value in zip(raters, [5, 3, 4])
        ]
        target_id = ratings[1].id

        reporters = make_users(3, prefix="reporter")
        for reporter in reporters[:2]:
            report_rating(db_session, target_id, reporter)

        db_session.refresh(sample_resource)
        assert sample_resource.average_rating == Decimal("4.0")
        assert sample_resource.total_ratings == 3

        hidden = report_rating(db_session, target_id, reporters[2])

        assert not hidden.is_active
        db_session.refresh(sample_resource)
        assert sample_resource.average_rating == Decimal("4.5")
        assert sample_resource.total_ratings == 2

    def test_hiding_only_rating_resets_summary(
        self,
        db_session: Session,
        sample_user: User,
        sample_resource: Resource,
        make_users: Callable[..., list[User]],
    ):
        rating = submit_rating(db_session, sample_resource.id, sample_user, 2).rating
        rating_id = rating.id

        for reporter in make_users(3, prefix="reporter"):
            report_rating(db_session, rating_id, reporter)

        db_session.refresh(sample_resource)
        assert sample_resource.average_rating == Decimal("0.0")
        assert sample_resource.total_ratings == 0

    def test_rerating_while_hidden_does_not_count(
        self,
        db_session: Session,
        sample_user: User,
        second_user: User,
        sample_resource: Resource,
        make_users: Callable[..., list[User]],
    ):
        rating_id = submit_rating(db_session, sample_resource.id, sample_user, 1).rating.id
        submit_rating(db_session, sample_resource.id, second_user, 4)
        for reporter in make_users(3, prefix="reporter"):
            report_rating(db_session, rating_id, reporter)

        submission = submit_rating(db_session, sample_resource.id, sample_user, 5)

        assert submission.summary.average_rating == Decimal("4.0")
        assert submission.summary.total_ratings == 1

    def test_report_below_threshold_keeps_summary(
        self,
        db_session: Session,
        sample_user: User,
        second_user: User,
        sample_resource: Resource,
    ):
        rating_id = submit_rating(db_session, sample_resource.id, sample_user, 3).rating.id

        rating = report_rating(db_session, rating_id, second_user, "Off topic")

        assert rating.is_active
        assert rating.report_count == 1
        db_session.refresh(sample_resource)
        assert sample_resource.total_ratings == 1


# =============================================================================
# AggregationEngine / recalculation
# =============================================================================


class TestRecompute:
    """Tests for AggregationEngine.recompute_summary and recalculate_all"""

    def test_unknown_resource(self, db_session: Session):
        engine = AggregationEngine(RatingStore(db_session))

        with pytest.raises(NotFound):
            engine.recompute_summary(99999)

    def test_idempotent(
        self,
        db_session: Session,
        sample_resource: Resource,
        make_users: Callable[..., list[User]],
    ):
        for rater, value in zip(make_users(2), [2, 5]):
            submit_rating(db_session, sample_resource.id, rater, value)

        first = recompute_resource(db_session, sample_resource.id)
        second = recompute_resource(db_session, sample_resource.id)

        assert first == second
        assert first.average_rating == Decimal("3.5")
        assert first.total_ratings == 2

    def test_recompute_bumps_version(
        self, db_session: Session, sample_resource: Resource
    ):
        before = sample_resource.version

        recompute_resource(db_session, sample_resource.id)

        db_session.refresh(sample_resource)
        assert sample_resource.version == before + 1
        assert sample_resource.summarized_at is not None

    def test_recalculate_all_repairs_drift(
        self,
        db_session: Session,
        author: User,
        sample_resource: Resource,
        make_users: Callable[..., list[User]],
    ):
        other = Resource(title="Organic Chemistry Past Paper", author_id=author.id)
        db_session.add(other)
        db_session.commit()

        for rater, value in zip(make_users(2), [4, 5]):
            submit_rating(db_session, sample_resource.id, rater, value)

        # Simulate a bad manual edit, bypassing the rating engine
        db_session.execute(
            update(Resource)
            .values(average_rating=Decimal("1.0"), total_ratings=42)
            .execution_options(synchronize_session=False)
        )
        db_session.commit()

        updated = recalculate_all(db_session)

        assert updated == 2
        db_session.refresh(sample_resource)
        db_session.refresh(other)
        assert sample_resource.average_rating == Decimal("4.5")
        assert sample_resource.total_ratings == 2
        assert other.average_rating == Decimal("0.0")
        assert other.total_ratings == 0

    def test_summary_only_counts_its_own_resource(
        self,
        db_session: Session,
        author: User,
        sample_resource: Resource,
        sample_user: User,
    ):
        other = Resource(title="Physics Lab Report", author_id=author.id)
        db_session.add(other)
        db_session.commit()

        submit_rating(db_session, sample_resource.id, sample_user, 5)
        submit_rating(db_session, other.id, sample_user, 1)

        db_session.refresh(sample_resource)
        db_session.refresh(other)
        assert sample_resource.average_rating == Decimal("5.0")
        assert other.average_rating == Decimal("1.0")
        assert db_session.query(Rating).count() == 2


# =============================================================================
# Reputation
# =============================================================================


class TestReputation:
    """Rating activity awards reputation to rater and author."""

    def test_first_rating_rewards_both(
        self,
        db_session: Session,
        author: User,
        sample_user: User,
        sample_resource: Resource,
    ):
        submit_rating(db_session, sample_resource.id, sample_user, 5)

        db_session.refresh(sample_user)
        db_session.refresh(author)
        assert sample_user.reputation == 2
        assert author.reputation == 3

    def test_low_rating_rewards_author_less(
        self,
        db_session: Session,
        author: User,
        sample_user: User,
        sample_resource: Resource,
    ):
        submit_rating(db_session, sample_resource.id, sample_user, 3)

        db_session.refresh(author)
        assert author.reputation == 1

    def test_update_does_not_reward_rater_again(
        self,
        db_session: Session,
        author: User,
        sample_user: User,
        sample_resource: Resource,
    ):
        submit_rating(db_session, sample_resource.id, sample_user, 5)
        submit_rating(db_session, sample_resource.id, sample_user, 2)

        db_session.refresh(sample_user)
        db_session.refresh(author)
        assert sample_user.reputation == 2
        assert author.reputation == 4

    def test_rejected_submission_awards_nothing(
        self, db_session: Session, author: User, sample_resource: Resource
    ):
        with pytest.raises(SelfRatingForbidden):
            submit_rating(db_session, sample_resource.id, author, 5)

        db_session.refresh(author)
        assert author.reputation == 0
