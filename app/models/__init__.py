"""
SQLAlchemy Models Package

This package contains all database models for the Campus Resources API.

Model Relationships:
- User -> Resource: One-to-Many (a user authors many resources)
- User -> Rating: One-to-Many (a user rates many resources, once each)
- Resource -> Rating: One-to-Many (ratings reference their resource by id)
- Rating -> HelpfulVote / RatingReport: One-to-Many

Import all models here to:
1. Make them available as: from app.models import Rating, Resource, User
2. Ensure Alembic discovers them for migrations
"""

# The order matters for SQLAlchemy to resolve relationships
from app.models.user import User
from app.models.resource import Resource
from app.models.rating import HelpfulVote, Rating, RatingReport, RatingState

__all__ = [
    "User",
    "Resource",
    "Rating",
    "RatingState",
    "HelpfulVote",
    "RatingReport",
]
