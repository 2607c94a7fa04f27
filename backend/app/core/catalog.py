"""Catalog Ordering — search, category filter, sort, pin and pagination for case studies.

Invariants:
    - All functions are PURE: no IO, no async, no side effects; inputs are never mutated
    - The pinned case (when present in the list) always sorts first, for every sort option
    - DEFAULT order: owner-authored (2) > admin-authored (1) > others (0), then oldest first
    - category_counts are computed over the unfiltered list

Design Decisions:
    - Filtering in Python, not SQL: the gallery is small and the same rules drive
      both the list and the per-category counts
    - Sorts are stable: equal keys keep repository order (id ascending)
"""

from collections.abc import Sequence
from datetime import datetime
from typing import TypeVar

from app.core.boundary_protocols import CatalogEntry
from app.core.domain_types import Category, CategoryFilter, CaseSort, Role

T = TypeVar("T")
E = TypeVar("E", bound=CatalogEntry)


def author_priority(entry: CatalogEntry) -> int:
    """Owner 2, admin 1, everyone else 0."""
    if entry.author_is_owner:
        return 2
    if entry.author_role == Role.ADMIN:
        return 1
    return 0


def matches_search(entry: CatalogEntry, search: str | None) -> bool:
    """Case-insensitive substring over title and description."""
    keyword = (search or "").strip().lower()
    if not keyword:
        return True
    return keyword in entry.title.lower() or keyword in entry.description.lower()


def matches_category(entry: CatalogEntry, category: CategoryFilter) -> bool:
    if category == CategoryFilter.ALL:
        return True
    if category == CategoryFilter.LIKED:
        return entry.is_favorite
    return entry.category == category.value


def filter_cases(
    entries: Sequence[E], search: str | None, category: CategoryFilter,
) -> list[E]:
    return [
        e for e in entries
        if matches_search(e, search) and matches_category(e, category)
    ]


def _updated_or_created(entry: CatalogEntry) -> datetime:
    return entry.updated_at or entry.created_at


def sort_cases(
    entries: Sequence[E], sort: CaseSort, pinned_id: int | None = None,
) -> list[E]:
    """Order entries by sort option, then lift the pinned case to the top."""
    if sort == CaseSort.DEFAULT:
        ordered = sorted(
            entries, key=lambda e: (-author_priority(e), e.created_at),
        )
    elif sort == CaseSort.CREATED_ASC:
        ordered = sorted(entries, key=lambda e: e.created_at)
    elif sort == CaseSort.UPDATED_DESC:
        ordered = sorted(entries, key=_updated_or_created, reverse=True)
    else:
        ordered = sorted(entries, key=lambda e: e.created_at, reverse=True)

    if pinned_id is None:
        return ordered
    pinned = [e for e in ordered if e.id == pinned_id]
    return pinned + [e for e in ordered if e.id != pinned_id]


def category_counts(entries: Sequence[CatalogEntry]) -> dict[str, int]:
    """Counts per filter tab: all, liked, and every category."""
    counts = {CategoryFilter.ALL.value: len(entries), CategoryFilter.LIKED.value: 0}
    counts.update({c.value: 0 for c in Category})
    for e in entries:
        if e.category in counts:
            counts[e.category] += 1
        if e.is_favorite:
            counts[CategoryFilter.LIKED.value] += 1
    return counts


def paginate(items: Sequence[T], limit: int | None, offset: int = 0) -> list[T]:
    """Slice items; limit=None returns everything from offset."""
    if limit is None:
        return list(items[offset:])
    return list(items[offset:offset + limit])


def total_pages(total: int, page_size: int) -> int:
    """Never less than 1, so an empty list still has page 1."""
    return max(1, -(-total // page_size))


def page_slice(items: Sequence[T], page: int, page_size: int) -> list[T]:
    """1-based page, clamped to the last page."""
    page = min(max(1, page), total_pages(len(items), page_size))
    start = (page - 1) * page_size
    return list(items[start:start + page_size])
