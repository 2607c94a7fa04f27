"""Boundary Protocols — structural contracts between core policy and shell objects.

Invariants:
    - Core NEVER imports ORM models or schemas — it only sees these Protocols
    - Anything with matching attributes (ORM row, Pydantic view, test stub) satisfies them

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Attributes only, no methods: policy reads state, never mutates it
"""

from datetime import datetime
from typing import Protocol


class UserLike(Protocol):
    """Acting or target user as seen by permission checks."""
    id: int
    open_id: str
    role: str
    login_method: str | None


class AuthoredLike(Protocol):
    """Anything owned by a user (case study, inquiry)."""
    user_id: int


class CatalogEntry(Protocol):
    """Case study view consumed by catalog filter/sort."""
    id: int
    title: str
    description: str
    category: str
    is_favorite: bool
    author_role: str
    author_is_owner: bool
    created_at: datetime
    updated_at: datetime | None


class DirectoryEntry(Protocol):
    """User view consumed by admin directory filter/sort."""
    id: int
    open_id: str
    name: str | None
    email: str | None
    role: str
    created_at: datetime
    last_signed_in: datetime
