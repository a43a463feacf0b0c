"""
Test Suite for Campus Resources API

Test Organization:
- conftest.py: Shared fixtures (test database, client, sample data)
- test_rating_store.py: Rating records, helpful votes, reports
- test_aggregation.py: Summary recompute, hiding, reputation
- test_concurrency.py: Keyed locks, retries, simultaneous submissions
- test_ratings_api.py: Tests for /api/v1/ratings endpoints
- test_resources.py: Tests for /api/v1/resources endpoints
- test_auth.py: Tests for /api/v1/auth endpoints

Running Tests:
    # Run all tests
    pytest

    # Run specific file
    pytest tests/test_aggregation.py

    # Run with verbose output
    pytest -v
"""
