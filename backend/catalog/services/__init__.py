"""Services Layer — product handlers, query translation and category cross-reference.

Invariants:
    - Services receive an AsyncSession; they never open their own
"""
