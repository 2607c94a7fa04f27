"""Admin Routes — invite code, user management, inquiries and dashboard.

Invariants:
    - Every endpoint requires an admin (require_admin → 403 ADMIN_REQUIRED)
    - Owner protections and self-demotion/self-deletion come from core.enforce_permissions
    - Deleting a user without delete_case_studies hands their cases to the acting admin
    - Inquiry deletion is owner-only

Design Decisions:
    - User search/sort/pagination in core.user_directory: the directory is small and
      the same rules are unit-tested without a database
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import require_admin
from app.config import Settings, get_settings
from app.core.catalog import page_slice, total_pages
from app.core.domain_types import InquiryStatus, UserSort
from app.core.enforce_permissions import (
    check_owner, check_role_change, check_user_delete, is_owner,
)
from app.core.errors import ErrorContext, ResourceNotFoundError, error_from_violation
from app.core.user_directory import filter_users, sort_users
from app.infrastructure.database import get_db
from app.models.user import User
from app.schemas.admin import (
    AdminUserListResponse, AdminUserView, DashboardResponse, DashboardTotals,
    InquiryStatusUpdate, InquiryView, InviteCodeResponse, InviteCodeUpdate,
    PopularCaseStudy, RoleUpdate,
)
from app.schemas.case_study import SuccessResponse
from app.services import case_study_store, inquiry_store, settings_store, user_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/admin", tags=["admin"])

DEFAULT_PAGE_SIZE = 10


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await user_store.get_user_by_id(db, user_id)
    if user is None:
        raise ResourceNotFoundError("User", str(user_id))
    return user


def _raise_if(violation: dict | None, actor: User):
    if violation:
        raise error_from_violation(violation, ErrorContext(user_id=actor.id))


# ─── Invite code ────────────────────────────────────────────────

@router.get("/settings/invite-code", response_model=InviteCodeResponse)
async def get_invite_code(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return InviteCodeResponse(invite_code=await settings_store.get_invite_code(db))


@router.put("/settings/invite-code", response_model=SuccessResponse)
async def update_invite_code(
    body: InviteCodeUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await settings_store.set_invite_code(db, body.invite_code)
    await db.commit()
    logger.info("Invite code updated", extra={"user_id": admin.id})
    return SuccessResponse()


# ─── Users ──────────────────────────────────────────────────────

@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    search: str | None = None,
    sort: UserSort = UserSort.CREATED_DESC,
    page: int | None = Query(None, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """All users (newest first by default); paginated when page is given."""
    users = sort_users(filter_users(await user_store.list_users(db), search), sort)
    items = page_slice(users, page, page_size) if page else users
    return AdminUserListResponse(
        items=[
            AdminUserView(
                id=u.id,
                open_id=u.open_id,
                name=u.name,
                email=u.email,
                login_method=u.login_method,
                role=u.role,
                is_owner=is_owner(u, settings.owner_open_id),
                created_at=u.created_at,
                updated_at=u.updated_at,
                last_signed_in=u.last_signed_in,
            )
            for u in items
        ],
        total=len(users),
        page=min(page or 1, total_pages(len(users), page_size)),
        page_size=page_size,
        total_pages=total_pages(len(users), page_size),
    )


@router.patch("/users/{user_id}/role", response_model=SuccessResponse)
async def update_user_role(
    user_id: int,
    body: RoleUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    target = await _get_user_or_404(db, user_id)
    _raise_if(
        check_role_change(admin, target, body.role.value, settings.owner_open_id),
        admin,
    )
    await user_store.update_role(db, target, body.role)
    await db.commit()
    logger.info(
        f"Role of user {target.id} set to {body.role.value}",
        extra={"user_id": admin.id},
    )
    return SuccessResponse()


@router.delete("/users/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: int,
    delete_case_studies: bool = False,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    target = await _get_user_or_404(db, user_id)
    _raise_if(check_user_delete(admin, target, settings.owner_open_id), admin)
    if not delete_case_studies:
        await user_store.reassign_case_studies(db, target.id, admin.id)
    await user_store.delete_user(db, target)
    await db.commit()
    return SuccessResponse()


# ─── Inquiries ──────────────────────────────────────────────────

@router.get("/inquiries", response_model=list[InquiryView])
async def list_inquiries(
    status: InquiryStatus | None = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await inquiry_store.list_inquiries(db, status)


@router.patch("/inquiries/{inquiry_id}", response_model=SuccessResponse)
async def update_inquiry_status(
    inquiry_id: int,
    body: InquiryStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    inquiry = await inquiry_store.get_inquiry(db, inquiry_id)
    if inquiry is None:
        raise ResourceNotFoundError("Inquiry", str(inquiry_id))
    await inquiry_store.set_resolved(db, inquiry, body.is_resolved)
    await db.commit()
    return SuccessResponse()


@router.delete("/inquiries/{inquiry_id}", response_model=SuccessResponse)
async def delete_inquiry(
    inquiry_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    _raise_if(check_owner(admin, settings.owner_open_id), admin)
    inquiry = await inquiry_store.get_inquiry(db, inquiry_id)
    if inquiry is None:
        raise ResourceNotFoundError("Inquiry", str(inquiry_id))
    await inquiry_store.delete_inquiry(db, inquiry)
    await db.commit()
    return SuccessResponse()


# ─── Dashboard ──────────────────────────────────────────────────

@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    popular = await case_study_store.popular_case_studies(db)
    return DashboardResponse(
        totals=DashboardTotals(
            users=await user_store.count_users(db),
            case_studies=await case_study_store.count_case_studies(db),
            favorites=await case_study_store.count_favorites(db),
        ),
        popular_case_studies=[
            PopularCaseStudy(id=case_id, title=title, favorite_count=count)
            for case_id, title, count in popular
        ],
    )
