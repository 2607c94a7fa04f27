"""User Directory — search and ordering for the admin user list and inquiry tabs.

Invariants:
    - All functions are PURE: no IO, no side effects; inputs are never mutated
    - Search matches name, email or open_id (case-insensitive substring)
    - Name sorts use name, then email, then open_id as display label
"""

from collections.abc import Sequence
from typing import TypeVar

from app.core.boundary_protocols import DirectoryEntry
from app.core.domain_types import InquiryStatus, Role, UserSort

D = TypeVar("D", bound=DirectoryEntry)


def display_label(user: DirectoryEntry) -> str:
    return user.name or user.email or user.open_id


def filter_users(users: Sequence[D], search: str | None) -> list[D]:
    keyword = (search or "").strip().lower()
    if not keyword:
        return list(users)
    return [
        u for u in users
        if keyword in (u.name or "").lower()
        or keyword in (u.email or "").lower()
        or keyword in u.open_id.lower()
    ]


def sort_users(users: Sequence[D], sort: UserSort) -> list[D]:
    if sort == UserSort.CREATED_ASC:
        return sorted(users, key=lambda u: u.created_at)
    if sort == UserSort.NAME_ASC:
        return sorted(users, key=display_label)
    if sort == UserSort.NAME_DESC:
        return sorted(users, key=display_label, reverse=True)
    if sort == UserSort.LAST_SIGNED_IN_DESC:
        return sorted(users, key=lambda u: u.last_signed_in, reverse=True)
    if sort == UserSort.ROLE_ADMIN_FIRST:
        newest_first = sorted(users, key=lambda u: u.created_at, reverse=True)
        return sorted(newest_first, key=lambda u: u.role != Role.ADMIN)
    return sorted(users, key=lambda u: u.created_at, reverse=True)


def matches_inquiry_status(is_resolved: bool, status: InquiryStatus | None) -> bool:
    """None selects every inquiry."""
    if status is None:
        return True
    return is_resolved == (status == InquiryStatus.RESOLVED)
