#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample data for development.

USAGE:
    # Make sure you're in the project root with venv activated
    python scripts/seed_data.py

This script:
1. Connects to the database using app settings
2. Clears existing data (optional)
3. Creates sample users and resources
4. Rates the resources through the rating service, so summaries and
   reputation come out exactly as they would through the API
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.database import SessionLocal, create_tables
from app.models import Rating, Resource, User
from app.services.ratings import submit_rating
from app.services.security import hash_password

SEED_PASSWORD = "SeedPass123"


def clear_data(db: Session) -> None:
    """Clear all existing data from the database."""
    print("Clearing existing data...")
    db.execute(delete(Rating))
    db.execute(delete(Resource))
    db.execute(delete(User))
    db.commit()
    print("Data cleared.")


def create_users(db: Session) -> dict[str, User]:
    """Create sample users. The first one is a moderator."""
    print("Creating users...")
    users_data = [
        {"username": "moderator", "full_name": "Mona Moderator", "department": "Library", "is_superuser": True},
        {"username": "alice", "full_name": "Alice Nguyen", "department": "Mathematics"},
        {"username": "bob", "full_name": "Bob Okafor", "department": "Computer Science"},
        {"username": "chen", "full_name": "Chen Wei", "department": "Physics"},
        {"username": "dana", "full_name": "Dana Ruiz", "department": "Biology"},
    ]

    hashed = hash_password(SEED_PASSWORD)
    users = {}
    for data in users_data:
        user = User(email=f"{data['username']}@college.edu", hashed_password=hashed, **data)
        db.add(user)
        users[data["username"]] = user

    db.commit()
    for user in users.values():
        db.refresh(user)

    print(f"Created {len(users)} users (password: {SEED_PASSWORD}).")
    return users


def create_resources(db: Session, users: dict[str, User]) -> list[Resource]:
    """Create sample resources."""
    print("Creating resources...")
    resources_data = [
        {
            "title": "Linear Algebra Midterm Notes",
            "description": "Eigenvalues, eigenvectors and diagonalization.",
            "subject": "Mathematics",
            "semester": "3",
            "resource_type": "Notes",
            "author": "alice",
        },
        {
            "title": "Data Structures Final 2023",
            "description": "Past paper with worked solutions.",
            "subject": "Computer Science",
            "semester": "4",
            "resource_type": "Exam Paper",
            "author": "bob",
        },
        {
            "title": "Thermodynamics Study Guide",
            "subject": "Physics",
            "semester": "2",
            "resource_type": "Study Guide",
            "author": "chen",
        },
    ]

    resources = []
    for data in resources_data:
        author = users[data.pop("author")]
        resource = Resource(**data, author_id=author.id)
        db.add(resource)
        resources.append(resource)

    db.commit()
    for resource in resources:
        db.refresh(resource)

    print(f"Created {len(resources)} resources.")
    return resources


def create_ratings(db: Session, users: dict[str, User], resources: list[Resource]) -> int:
    """Rate every resource by every user who isn't its author."""
    print("Creating ratings...")
    values = {"alice": 5, "bob": 4, "chen": 3, "dana": 4}

    count = 0
    for resource in resources:
        resource_id = resource.id
        author_id = resource.author_id
        for username, value in values.items():
            user = users[username]
            if user.id == author_id:
                continue
            submit_rating(db, resource_id, user, value, f"Seeded feedback from {username}")
            count += 1

    print(f"Created {count} ratings.")
    return count


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears existing data before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()

    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        users = create_users(db)
        resources = create_resources(db, users)
        ratings = create_ratings(db, users, resources)

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Users: {len(users)}")
        print(f"  - Resources: {len(resources)}")
        print(f"  - Ratings: {ratings}")
        print("\nYou can now access the API at http://localhost:8001")
        print("API documentation at http://localhost:8001/docs")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
