"""Case Study Store — case studies, favorites and the per-viewer gallery views.

Invariants:
    - Views are joined with the author: author_name falls back to "不明", author_role to "user"
    - is_favorite is relative to the viewer (always False for anonymous viewers)
    - is_edited iff updated_at is later than created_at
    - Deleting a case study removes its favorites (the pin is cleared by the caller)
    - Never commits: the calling route owns the transaction

Design Decisions:
    - Gallery rows are returned in id order; core.catalog does filtering/sorting so the
      list, the per-category counts and the profile pages share one rule set
    - Favorite insert is INSERT ... ON CONFLICT DO NOTHING on (user_id, case_study_id):
      two concurrent "add" toggles both end favorited instead of one failing
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, delete, func
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import Role, UNKNOWN_AUTHOR_NAME
from app.models.case_study import CaseStudy
from app.models.favorite import Favorite
from app.models.user import User
from app.schemas.case_study import CaseStudyInput, CaseStudyView

logger = logging.getLogger(__name__)


def _with_author():
    return (
        select(CaseStudy, User.name, User.role, User.open_id)
        .outerjoin(User, CaseStudy.user_id == User.id)
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _to_view(
    case: CaseStudy,
    author_name: str | None,
    author_role: str | None,
    author_open_id: str | None,
    *,
    owner_open_id: str,
    is_favorite: bool = False,
    pinned_id: int | None = None,
) -> CaseStudyView:
    return CaseStudyView(
        id=case.id,
        user_id=case.user_id,
        title=case.title,
        description=case.description,
        thumbnail_url=case.thumbnail_url,
        thumbnail_key=case.thumbnail_key,
        category=case.category,
        tools=list(case.tools or []),
        challenge=case.challenge,
        solution=case.solution,
        steps=list(case.steps or []),
        impact=case.impact,
        tags=list(case.tags or []),
        is_recommended=case.is_recommended,
        created_at=case.created_at,
        updated_at=case.updated_at,
        is_favorite=is_favorite,
        author_name=author_name or UNKNOWN_AUTHOR_NAME,
        author_role=author_role or Role.USER.value,
        author_is_owner=bool(owner_open_id) and author_open_id == owner_open_id,
        is_edited=bool(
            case.updated_at
            and _as_utc(case.updated_at) > _as_utc(case.created_at)
        ),
        is_pinned=pinned_id is not None and case.id == pinned_id,
    )


async def favorite_ids(db: AsyncSession, user_id: int | None) -> set[int]:
    """Case study ids favorited by user (empty for anonymous)."""
    if user_id is None:
        return set()
    result = await db.execute(
        select(Favorite.case_study_id).where(Favorite.user_id == user_id),
    )
    return set(result.scalars().all())


async def list_views(
    db: AsyncSession,
    *,
    owner_open_id: str,
    viewer_id: int | None = None,
    pinned_id: int | None = None,
    author_id: int | None = None,
) -> list[CaseStudyView]:
    """All case studies (optionally one author's), in id order."""
    stmt = _with_author().order_by(CaseStudy.id)
    if author_id is not None:
        stmt = stmt.where(CaseStudy.user_id == author_id)
    rows = (await db.execute(stmt)).all()
    liked = await favorite_ids(db, viewer_id)
    return [
        _to_view(
            case, name, role, open_id,
            owner_open_id=owner_open_id,
            is_favorite=case.id in liked,
            pinned_id=pinned_id,
        )
        for case, name, role, open_id in rows
    ]


async def get_view(
    db: AsyncSession,
    case_study_id: int,
    *,
    owner_open_id: str,
    viewer_id: int | None = None,
    pinned_id: int | None = None,
) -> CaseStudyView | None:
    row = (
        await db.execute(_with_author().where(CaseStudy.id == case_study_id))
    ).first()
    if row is None:
        return None
    case, name, role, open_id = row
    liked = await is_favorite(db, viewer_id, case_study_id) if viewer_id else False
    return _to_view(
        case, name, role, open_id,
        owner_open_id=owner_open_id, is_favorite=liked, pinned_id=pinned_id,
    )


async def list_favorite_views(
    db: AsyncSession, user_id: int, *, owner_open_id: str, pinned_id: int | None = None,
) -> list[CaseStudyView]:
    """User's favorites, oldest favorite first."""
    stmt = (
        _with_author()
        .join(Favorite, Favorite.case_study_id == CaseStudy.id)
        .where(Favorite.user_id == user_id)
        .order_by(Favorite.created_at, Favorite.id)
    )
    rows = (await db.execute(stmt)).all()
    return [
        _to_view(
            case, name, role, open_id,
            owner_open_id=owner_open_id, is_favorite=True, pinned_id=pinned_id,
        )
        for case, name, role, open_id in rows
    ]


async def get_case_study(db: AsyncSession, case_study_id: int) -> CaseStudy | None:
    return await db.get(CaseStudy, case_study_id)


async def create_case_study(
    db: AsyncSession, user_id: int, data: CaseStudyInput, tags: list[str],
) -> CaseStudy:
    # one timestamp for both columns: a fresh case is not "edited"
    now = datetime.now(timezone.utc)
    case = CaseStudy(
        user_id=user_id,
        title=data.title,
        description=data.description,
        category=data.category.value,
        tools=data.tools,
        challenge=data.challenge,
        solution=data.solution,
        steps=data.steps,
        impact=data.impact,
        thumbnail_url=data.thumbnail_url,
        thumbnail_key=data.thumbnail_key,
        tags=tags,
        created_at=now,
        updated_at=now,
    )
    db.add(case)
    await db.flush()
    logger.info(
        "Case study created",
        extra={"user_id": user_id, "case_study_id": case.id},
    )
    return case


async def update_case_study(
    db: AsyncSession, case: CaseStudy, data: CaseStudyInput, tags: list[str],
) -> None:
    """Replace every editable field and bump updated_at."""
    case.title = data.title
    case.description = data.description
    case.category = data.category.value
    case.tools = data.tools
    case.challenge = data.challenge
    case.solution = data.solution
    case.steps = data.steps
    case.impact = data.impact
    case.thumbnail_url = data.thumbnail_url
    case.thumbnail_key = data.thumbnail_key
    case.tags = tags
    case.updated_at = datetime.now(timezone.utc)
    await db.flush()


async def delete_case_study(db: AsyncSession, case: CaseStudy) -> None:
    await db.execute(delete(Favorite).where(Favorite.case_study_id == case.id))
    await db.delete(case)
    await db.flush()
    logger.info("Case study deleted", extra={"case_study_id": case.id})


async def is_favorite(db: AsyncSession, user_id: int, case_study_id: int) -> bool:
    result = await db.execute(
        select(Favorite.id).where(
            Favorite.user_id == user_id, Favorite.case_study_id == case_study_id,
        ),
    )
    return result.first() is not None


async def toggle_favorite(db: AsyncSession, user_id: int, case_study_id: int) -> bool:
    """Flip the favorite; returns the new state."""
    if await is_favorite(db, user_id, case_study_id):
        await db.execute(
            delete(Favorite).where(
                Favorite.user_id == user_id, Favorite.case_study_id == case_study_id,
            ),
        )
        await db.flush()
        return False
    await add_favorite(db, user_id, case_study_id)
    return True


async def add_favorite(db: AsyncSession, user_id: int, case_study_id: int) -> None:
    """Insert the favorite; a row that already exists is left as is."""
    dialect = db.get_bind().dialect.name
    insert = postgresql_insert if dialect == "postgresql" else sqlite_insert
    await db.execute(
        insert(Favorite)
        .values(
            user_id=user_id, case_study_id=case_study_id,
            created_at=datetime.now(timezone.utc),
        )
        .on_conflict_do_nothing(index_elements=["user_id", "case_study_id"]),
    )
    await db.flush()


# ─── Dashboard ──────────────────────────────────────────────────

async def count_case_studies(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(CaseStudy.id)))).scalar_one()


async def count_favorites(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(Favorite.id)))).scalar_one()


async def popular_case_studies(
    db: AsyncSession, limit: int = 10,
) -> list[tuple[int, str, int]]:
    """(id, title, favorite_count) with at least one favorite, most favorited first."""
    favorite_count = func.count(Favorite.id).label("favorite_count")
    stmt = (
        select(CaseStudy.id, CaseStudy.title, favorite_count)
        .join(Favorite, Favorite.case_study_id == CaseStudy.id)
        .group_by(CaseStudy.id, CaseStudy.title)
        .order_by(favorite_count.desc(), CaseStudy.id)
        .limit(limit)
    )
    return [(row.id, row.title, row.favorite_count) for row in (await db.execute(stmt)).all()]
