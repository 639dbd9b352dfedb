"""Database Infrastructure - SQLAlchemy declarative Base.

Invariants:
    - All sessions are async (AsyncSession); asyncpg in production, aiosqlite in tests
"""
