"""Case Study Routes — gallery listing, detail, CRUD, favorites, pin, share and images.

Invariants:
    - Reads are public (anonymous viewers get is_favorite=False everywhere)
    - Writes go through core.enforce_permissions before touching the store
    - Tags are (re)generated on every create/update; never taken from the client
    - Deleting the pinned case clears the pin in the same transaction

Design Decisions:
    - Fixed paths (/favorites, /pin, /images) declared before /{case_study_id}
    - Missing case → 404 ResourceNotFoundError (REST shape, not a null body)
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    get_current_user, get_storage, get_tag_generator, require_user,
)
from app.config import Settings, get_settings
from app.core.catalog import category_counts, filter_cases, paginate, sort_cases
from app.core.domain_types import CaseSort, CategoryFilter
from app.core.enforce_permissions import (
    check_can_delete_case, check_can_edit_case, check_can_post, check_owner,
)
from app.core.errors import ErrorContext, ResourceNotFoundError, error_from_violation
from app.infrastructure.database import get_db
from app.infrastructure.file_storage import LocalFileStorage
from app.models.case_study import CaseStudy
from app.models.user import User
from app.schemas.case_study import (
    CaseStudyCreated, CaseStudyInput, CaseStudyListResponse, CaseStudyView,
    FavoriteToggleResponse, ImageUpload, PinResponse, ShareLinkResponse,
    SuccessResponse, UploadResponse,
)
from app.services import case_study_store, settings_store
from app.services.tag_generator import TagGenerator
from app.services.uploads import CASE_STUDY_PREFIX, store_image

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/case-studies", tags=["case-studies"])


async def get_case_study_or_404(db: AsyncSession, case_study_id: int) -> CaseStudy:
    case = await case_study_store.get_case_study(db, case_study_id)
    if case is None:
        raise ResourceNotFoundError(
            "CaseStudy", str(case_study_id),
            ErrorContext(case_study_id=case_study_id),
        )
    return case


def _raise_if(violation: dict | None, user: User, case_study_id: int | None = None):
    if violation:
        raise error_from_violation(
            violation, ErrorContext(user_id=user.id, case_study_id=case_study_id),
        )


@router.get("", response_model=CaseStudyListResponse)
async def list_case_studies(
    search: str | None = None,
    category: CategoryFilter = CategoryFilter.ALL,
    sort: CaseSort = CaseSort.DEFAULT,
    limit: int | None = Query(None, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Gallery list: filter, sort (pinned first), paginate."""
    pinned_id = await settings_store.get_pinned_id(db)
    views = await case_study_store.list_views(
        db,
        owner_open_id=settings.owner_open_id,
        viewer_id=user.id if user else None,
        pinned_id=pinned_id,
    )
    ordered = sort_cases(filter_cases(views, search, category), sort, pinned_id)
    return CaseStudyListResponse(
        items=paginate(ordered, limit, offset),
        total=len(ordered),
        category_counts=category_counts(views),
        pinned_id=pinned_id,
    )


@router.post(
    "", response_model=CaseStudyCreated, status_code=status.HTTP_201_CREATED,
)
async def create_case_study(
    body: CaseStudyInput,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    tag_generator: TagGenerator = Depends(get_tag_generator),
):
    _raise_if(check_can_post(user), user)
    tags = await tag_generator.generate(
        body.title, body.description, body.tools, body.category.value, user.id,
    )
    case = await case_study_store.create_case_study(db, user.id, body, tags)
    await db.commit()
    return CaseStudyCreated(id=case.id)


@router.get("/favorites", response_model=list[CaseStudyView])
async def list_favorites(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Caller's favorites, oldest favorite first."""
    return await case_study_store.list_favorite_views(
        db, user.id,
        owner_open_id=settings.owner_open_id,
        pinned_id=await settings_store.get_pinned_id(db),
    )


@router.delete("/pin", response_model=PinResponse)
async def unpin_case_study(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    _raise_if(check_owner(user, settings.owner_open_id), user)
    await settings_store.set_pinned_id(db, None)
    await db.commit()
    return PinResponse(pinned_id=None)


@router.post("/images", response_model=UploadResponse)
async def upload_image(
    body: ImageUpload,
    user: User = Depends(require_user),
    settings: Settings = Depends(get_settings),
    storage: LocalFileStorage = Depends(get_storage),
):
    stored = await store_image(
        storage,
        prefix=CASE_STUDY_PREFIX,
        user_id=user.id,
        filename=body.filename,
        content_type=body.content_type,
        base64_data=body.base64_data,
        max_bytes=settings.upload_max_bytes,
    )
    return UploadResponse(url=stored.url, key=stored.key)


@router.get("/{case_study_id}", response_model=CaseStudyView)
async def get_case_study(
    case_study_id: int,
    user: User | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    view = await case_study_store.get_view(
        db, case_study_id,
        owner_open_id=settings.owner_open_id,
        viewer_id=user.id if user else None,
        pinned_id=await settings_store.get_pinned_id(db),
    )
    if view is None:
        raise ResourceNotFoundError(
            "CaseStudy", str(case_study_id),
            ErrorContext(case_study_id=case_study_id),
        )
    return view


@router.put("/{case_study_id}", response_model=SuccessResponse)
async def update_case_study(
    case_study_id: int,
    body: CaseStudyInput,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    tag_generator: TagGenerator = Depends(get_tag_generator),
):
    case = await get_case_study_or_404(db, case_study_id)
    _raise_if(check_can_edit_case(user, case), user, case_study_id)
    tags = await tag_generator.generate(
        body.title, body.description, body.tools, body.category.value, user.id,
    )
    await case_study_store.update_case_study(db, case, body, tags)
    await db.commit()
    return SuccessResponse()


@router.delete("/{case_study_id}", response_model=SuccessResponse)
async def delete_case_study(
    case_study_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    case = await get_case_study_or_404(db, case_study_id)
    _raise_if(check_can_delete_case(user, case), user, case_study_id)
    await case_study_store.delete_case_study(db, case)
    if await settings_store.get_pinned_id(db) == case_study_id:
        await settings_store.set_pinned_id(db, None)
    await db.commit()
    return SuccessResponse()


@router.post("/{case_study_id}/favorite", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    case_study_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await get_case_study_or_404(db, case_study_id)
    now_favorite = await case_study_store.toggle_favorite(db, user.id, case_study_id)
    await db.commit()
    return FavoriteToggleResponse(is_favorite=now_favorite)


@router.post("/{case_study_id}/pin", response_model=PinResponse)
async def pin_case_study(
    case_study_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    _raise_if(check_owner(user, settings.owner_open_id), user, case_study_id)
    await get_case_study_or_404(db, case_study_id)
    await settings_store.set_pinned_id(db, case_study_id)
    await db.commit()
    return PinResponse(pinned_id=case_study_id)


@router.get("/{case_study_id}/share", response_model=ShareLinkResponse)
async def share_link(
    case_study_id: int,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    await get_case_study_or_404(db, case_study_id)
    base = settings.public_base_url.rstrip("/")
    return ShareLinkResponse(url=f"{base}/?case={case_study_id}")
