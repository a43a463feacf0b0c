"""create users, resources and rating tables

Revision ID: 3c1f0a9d2e47
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2e47'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('reputation', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_superuser', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    op.create_table(
        'resources',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('author_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('subject', sa.String(length=50), nullable=False),
        sa.Column('semester', sa.String(length=20), nullable=True),
        sa.Column('resource_type', sa.String(length=50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column(
            'average_rating',
            sa.Numeric(precision=2, scale=1),
            server_default='0',
            nullable=False,
            comment='Mean of active ratings, 0 when there are none'
        ),
        sa.Column(
            'total_ratings',
            sa.Integer(),
            server_default='0',
            nullable=False,
            comment='Number of active ratings'
        ),
        sa.Column('summarized_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f('ix_resources_author_id'), 'resources', ['author_id'], unique=False)
    op.create_index(op.f('ix_resources_title'), 'resources', ['title'], unique=False)
    op.create_index(op.f('ix_resources_average_rating'), 'resources', ['average_rating'], unique=False)

    op.create_table(
        'ratings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('resource_id', sa.Integer(), sa.ForeignKey('resources.id', ondelete='CASCADE'), nullable=False),
        sa.Column('value', sa.Integer(), nullable=False, comment='Rating from 1-5 stars'),
        sa.Column('feedback', sa.String(length=500), nullable=False),
        sa.Column('helpful_count', sa.Integer(), nullable=False),
        sa.Column('state', sa.String(length=10), nullable=False),
        sa.Column('hidden_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'resource_id', name='uq_rating_user_resource'),
        sa.CheckConstraint('value >= 1 AND value <= 5', name='ck_rating_value_range'),
    )
    op.create_index(op.f('ix_ratings_id'), 'ratings', ['id'], unique=False)
    op.create_index(op.f('ix_ratings_user_id'), 'ratings', ['user_id'], unique=False)
    op.create_index(op.f('ix_ratings_resource_id'), 'ratings', ['resource_id'], unique=False)
    op.create_index(op.f('ix_ratings_state'), 'ratings', ['state'], unique=False)

    op.create_table(
        'rating_helpful_votes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('rating_id', sa.Integer(), sa.ForeignKey('ratings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('rating_id', 'user_id', name='uq_helpful_vote_rating_user'),
    )
    op.create_index(op.f('ix_rating_helpful_votes_rating_id'), 'rating_helpful_votes', ['rating_id'], unique=False)

    op.create_table(
        'rating_reports',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('rating_id', sa.Integer(), sa.ForeignKey('ratings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reason', sa.String(length=200), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('rating_id', 'user_id', name='uq_rating_report_rating_user'),
    )
    op.create_index(op.f('ix_rating_reports_rating_id'), 'rating_reports', ['rating_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_rating_reports_rating_id'), table_name='rating_reports')
    op.drop_table('rating_reports')
    op.drop_index(op.f('ix_rating_helpful_votes_rating_id'), table_name='rating_helpful_votes')
    op.drop_table('rating_helpful_votes')
    op.drop_index(op.f('ix_ratings_state'), table_name='ratings')
    op.drop_index(op.f('ix_ratings_resource_id'), table_name='ratings')
    op.drop_index(op.f('ix_ratings_user_id'), table_name='ratings')
    op.drop_index(op.f('ix_ratings_id'), table_name='ratings')
    op.drop_table('ratings')
    op.drop_index(op.f('ix_resources_average_rating'), table_name='resources')
    op.drop_index(op.f('ix_resources_title'), table_name='resources')
    op.drop_index(op.f('ix_resources_author_id'), table_name='resources')
    op.drop_table('resources')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
