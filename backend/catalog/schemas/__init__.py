"""Pydantic Schemas — request validation and response shaping for API endpoints.

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
