"""
Services Package

Business logic kept separate from HTTP handling so it can be tested without
a client.

Current services:
- locks.py: Per-key locks serializing writes to one resource or rating
- rating_store.py: Rating records, helpful votes and reports
- ratings.py: Summary aggregation, the locked rating operations and
  resource edit/soft delete
- rate_limiter.py: Rate limiting with slowapi
- security.py: Password hashing and JWT utilities
"""
