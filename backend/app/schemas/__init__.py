"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Request schemas trim and bound every user-supplied string
    - Domain enums from core/domain_types used for category, sort and role fields

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
