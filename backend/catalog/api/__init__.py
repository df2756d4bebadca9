"""API Layer — FastAPI routes, the dispatch wrapper and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses

Design Decisions:
    - Thin routes delegate to services/product_handlers.py
"""
