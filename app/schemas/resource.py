"""
Resource Pydantic Schemas

Schemas for shared academic resources. Only metadata is handled here;
the file itself is stored elsewhere.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.user import UserPublicResponse

Subject = Literal[
    "Mathematics",
    "Physics",
    "Computer Science",
    "Chemistry",
    "Biology",
    "Engineering",
    "Business",
    "Arts",
    "Other",
]

ResourceType = Literal[
    "Notes",
    "Exam Paper",
    "Study Guide",
    "Assignment",
    "Presentation",
    "Other",
]


def _clean_title(v: str) -> str:
    v = v.strip()
    if len(v) < 2:
        raise ValueError("Title must be between 2 and 200 characters")
    return v


class ResourceCreate(BaseModel):
    """
    Schema for registering a new resource.

    Example request body:
    {
        "title": "Linear Algebra Midterm Notes",
        "description": "Eigenvalues, eigenvectors and diagonalization.",
        "subject": "Mathematics",
        "semester": "3",
        "resource_type": "Notes"
    }
    """

    title: str = Field(..., min_length=2, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    subject: Subject = "Other"
    semester: str | None = Field(default=None, max_length=20)
    resource_type: ResourceType = "Other"

    @field_validator("title")
    @classmethod
    def title_must_not_be_blank(cls, v: str) -> str:
        return _clean_title(v)


class ResourceUpdate(BaseModel):
    """
    Schema for updating a resource.

    All fields are optional; only fields sent are changed.
    """

    title: str | None = Field(default=None, min_length=2, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    subject: Subject | None = None
    semester: str | None = Field(default=None, max_length=20)
    resource_type: ResourceType | None = None

    @field_validator("title")
    @classmethod
    def title_must_not_be_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _clean_title(v)


class ResourceResponse(BaseModel):
    """Resource metadata with its rating summary."""

    id: int
    title: str
    description: str | None = None
    subject: str
    semester: str | None = None
    resource_type: str
    author_id: int
    author: UserPublicResponse

    average_rating: float = Field(
        ...,
        ge=0,
        le=5,
        description="Average of active ratings (0 means no ratings)",
    )
    total_ratings: int = Field(..., ge=0, description="Number of active ratings")

    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
