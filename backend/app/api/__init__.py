"""API Layer — FastAPI routes, request dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses (the OAuth callback redirects)

Design Decisions:
    - Thin routes delegate to core policies and services
    - Authentication and collaborators resolved via dependencies.py so tests can override them
"""
