"""Database package — declarative Base and a standalone session factory.

Invariants:
    - All sessions are async (AsyncSession)
"""
