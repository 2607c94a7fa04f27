"""Catalog Ordering — tests for search, filter, sort, pin and pagination.

Tests cover:
    - search over title/description, case-insensitive
    - category filter including "liked"
    - DEFAULT sort by author priority then oldest first
    - pinned case first for every sort option
    - category counts over the unfiltered list
    - paginate / page_slice / total_pages edges
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

import pytest

from app.core.catalog import (
    author_priority,
    category_counts,
    filter_cases,
    page_slice,
    paginate,
    sort_cases,
    total_pages,
)
from app.core.domain_types import CaseSort, CategoryFilter

T0 = datetime(2026, 1, 1, 12, 0, 0)


@dataclass
class _Entry:
    id: int
    title: str = "title"
    description: str = "description"
    category: str = "prompt"
    is_favorite: bool = False
    author_role: str = "user"
    author_is_owner: bool = False
    created_at: datetime = T0
    updated_at: datetime | None = None


def _ids(entries):
    return [e.id for e in entries]


# ─── filter ──────────────────────────────────────────────────────

def test_search_matches_title_or_description_case_insensitive():
    entries = [
        _Entry(1, title="ChatGPT で議事録"),
        _Entry(2, description="Automates SLACK reports"),
        _Entry(3),
    ]
    assert _ids(filter_cases(entries, "chatgpt", CategoryFilter.ALL)) == [1]
    assert _ids(filter_cases(entries, "slack", CategoryFilter.ALL)) == [2]


def test_blank_search_matches_everything():
    entries = [_Entry(1), _Entry(2)]
    assert _ids(filter_cases(entries, "   ", CategoryFilter.ALL)) == [1, 2]


def test_liked_filter_selects_favorites():
    entries = [_Entry(1, is_favorite=True), _Entry(2)]
    assert _ids(filter_cases(entries, None, CategoryFilter.LIKED)) == [1]


def test_category_filter():
    entries = [_Entry(1, category="tools"), _Entry(2, category="business")]
    assert _ids(filter_cases(entries, None, CategoryFilter.BUSINESS)) == [2]


# ─── sort ────────────────────────────────────────────────────────

def test_author_priority():
    assert author_priority(_Entry(1, author_is_owner=True, author_role="admin")) == 2
    assert author_priority(_Entry(1, author_role="admin")) == 1
    assert author_priority(_Entry(1)) == 0


def test_default_sort_owner_then_admin_then_oldest():
    entries = [
        _Entry(1, created_at=T0),
        _Entry(2, author_role="admin", created_at=T0 + timedelta(days=2)),
        _Entry(3, author_is_owner=True, author_role="admin", created_at=T0 + timedelta(days=3)),
        _Entry(4, author_role="admin", created_at=T0 + timedelta(days=1)),
    ]
    assert _ids(sort_cases(entries, CaseSort.DEFAULT)) == [3, 4, 2, 1]


def test_created_sorts():
    entries = [
        _Entry(1, created_at=T0 + timedelta(days=1)),
        _Entry(2, created_at=T0),
        _Entry(3, created_at=T0 + timedelta(days=2)),
    ]
    assert _ids(sort_cases(entries, CaseSort.CREATED_ASC)) == [2, 1, 3]
    assert _ids(sort_cases(entries, CaseSort.CREATED_DESC)) == [3, 1, 2]


def test_updated_desc_falls_back_to_created():
    entries = [
        _Entry(1, created_at=T0, updated_at=T0 + timedelta(days=5)),
        _Entry(2, created_at=T0 + timedelta(days=3)),
    ]
    assert _ids(sort_cases(entries, CaseSort.UPDATED_DESC)) == [1, 2]


@pytest.mark.parametrize("sort", list(CaseSort))
def test_pinned_case_first_for_every_sort(sort):
    entries = [
        _Entry(1, created_at=T0, author_is_owner=True),
        _Entry(2, created_at=T0 + timedelta(days=1)),
        _Entry(3, created_at=T0 + timedelta(days=2)),
    ]
    assert sort_cases(entries, sort, pinned_id=2)[0].id == 2


def test_sort_does_not_mutate_input():
    entries = [_Entry(2, created_at=T0 + timedelta(days=1)), _Entry(1)]
    sort_cases(entries, CaseSort.CREATED_ASC)
    assert _ids(entries) == [2, 1]


# ─── counts / pagination ─────────────────────────────────────────

def test_category_counts_cover_every_tab():
    entries = [
        _Entry(1, category="prompt", is_favorite=True),
        _Entry(2, category="prompt"),
        _Entry(3, category="tools", is_favorite=True),
    ]
    counts = category_counts(entries)
    assert counts["all"] == 3
    assert counts["liked"] == 2
    assert counts["prompt"] == 2
    assert counts["tools"] == 1
    assert counts["activation"] == 0


def test_paginate():
    items = list(range(10))
    assert paginate(items, 3, 0) == [0, 1, 2]
    assert paginate(items, 3, 9) == [9]
    assert paginate(items, None, 8) == [8, 9]


def test_total_pages_never_below_one():
    assert total_pages(0, 10) == 1
    assert total_pages(10, 10) == 1
    assert total_pages(11, 10) == 2


def test_page_slice_clamps_to_last_page():
    items = list(range(25))
    assert page_slice(items, 3, 10) == [20, 21, 22, 23, 24]
    assert page_slice(items, 99, 10) == [20, 21, 22, 23, 24]
    assert page_slice(items, 0, 10) == list(range(10))
