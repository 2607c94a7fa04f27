"""User Store — users and user_profiles persistence.

Invariants:
    - upsert_user keys on open_id; the owner is forced to admin on insert and update
    - delete_user removes the user's favorites, favorites on their cases, their cases,
      profile and the user row; inquiries keep existing with user_id NULL
    - Never commits: the calling route owns the transaction

Design Decisions:
    - Explicit bulk deletes instead of ORM cascades: no relationship loading in async
      context, same behavior on SQLite with or without FK enforcement
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import Role
from app.models.case_study import CaseStudy
from app.models.favorite import Favorite
from app.models.inquiry import Inquiry
from app.models.user import User
from app.models.user_profile import UserProfile

logger = logging.getLogger(__name__)


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_open_id(db: AsyncSession, open_id: str) -> User | None:
    result = await db.execute(select(User).where(User.open_id == open_id))
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession) -> list[User]:
    """All users, newest first."""
    result = await db.execute(
        select(User).order_by(User.created_at.desc(), User.id.desc()),
    )
    return list(result.scalars().all())


async def count_users(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(User.id)))).scalar_one()


async def upsert_user(
    db: AsyncSession,
    *,
    open_id: str,
    owner_open_id: str,
    name: str | None,
    email: str | None,
    login_method: str | None,
    signed_in_at: datetime | None = None,
) -> User:
    """Insert or refresh a user keyed by open_id."""
    if not open_id:
        raise ValueError("User open_id is required for upsert")
    now = signed_in_at or datetime.now(timezone.utc)
    user = await get_user_by_open_id(db, open_id)
    if user is None:
        user = User(
            open_id=open_id, name=name, email=email,
            login_method=login_method, last_signed_in=now,
        )
        db.add(user)
    else:
        user.name = name
        user.email = email
        user.login_method = login_method
        user.last_signed_in = now
        user.updated_at = now
    if owner_open_id and open_id == owner_open_id:
        user.role = Role.ADMIN.value
    await db.flush()
    return user


async def touch_last_signed_in(db: AsyncSession, user: User) -> None:
    user.last_signed_in = datetime.now(timezone.utc)
    await db.flush()


async def update_role(db: AsyncSession, user: User, role: Role) -> None:
    user.role = role.value
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()


async def reassign_case_studies(
    db: AsyncSession, from_user_id: int, to_user_id: int,
) -> None:
    await db.execute(
        update(CaseStudy)
        .where(CaseStudy.user_id == from_user_id)
        .values(user_id=to_user_id, updated_at=datetime.now(timezone.utc)),
    )


async def delete_user(db: AsyncSession, user: User) -> None:
    """Delete user and everything they own (see module invariants)."""
    own_cases = select(CaseStudy.id).where(CaseStudy.user_id == user.id)
    await db.execute(
        delete(Favorite).where(
            (Favorite.user_id == user.id) | Favorite.case_study_id.in_(own_cases),
        ),
    )
    await db.execute(delete(CaseStudy).where(CaseStudy.user_id == user.id))
    await db.execute(delete(UserProfile).where(UserProfile.user_id == user.id))
    await db.execute(
        update(Inquiry).where(Inquiry.user_id == user.id).values(user_id=None),
    )
    await db.delete(user)
    await db.flush()
    logger.info("User deleted", extra={"user_id": user.id})


async def get_profile(db: AsyncSession, user_id: int) -> UserProfile | None:
    return await db.get(UserProfile, user_id)


async def update_profile(
    db: AsyncSession,
    user: User,
    *,
    name: str,
    department_role: str | None,
    avatar_url: str | None = None,
) -> None:
    """Rename the user and upsert department role / avatar."""
    now = datetime.now(timezone.utc)
    user.name = name
    user.updated_at = now
    profile = await get_profile(db, user.id)
    if profile is None:
        db.add(UserProfile(
            user_id=user.id, department_role=department_role, avatar_url=avatar_url,
        ))
    else:
        profile.department_role = department_role
        if avatar_url is not None:
            profile.avatar_url = avatar_url
        profile.updated_at = now
    await db.flush()
