"""Profile Routes — own profile (view/edit/avatar) and public profiles.

Invariants:
    - Public profiles never expose email or open_id; unknown users yield null
    - Own case studies are listed with is_favorite=False
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_storage, require_user
from app.config import Settings, get_settings
from app.core.catalog import sort_cases
from app.core.domain_types import CaseSort, UNKNOWN_AUTHOR_NAME
from app.infrastructure.database import get_db
from app.infrastructure.file_storage import LocalFileStorage
from app.models.user import User
from app.schemas.case_study import ImageUpload, SuccessResponse, UploadResponse
from app.schemas.user import (
    ProfileResponse, ProfileUpdate, ProfileUser,
    PublicProfileResponse, PublicProfileUser,
)
from app.services import case_study_store, user_store
from app.services.uploads import AVATAR_PREFIX, store_image

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/profile", tags=["profile"])


async def _authored_cases(db: AsyncSession, user_id: int, settings: Settings):
    views = await case_study_store.list_views(
        db, owner_open_id=settings.owner_open_id, author_id=user_id,
    )
    return sort_cases(views, CaseSort.CREATED_DESC)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    profile = await user_store.get_profile(db, user.id)
    return ProfileResponse(
        user=ProfileUser(
            id=user.id,
            name=user.name or "",
            email=user.email,
            role=user.role,
            login_method=user.login_method,
            department_role=(profile.department_role if profile else None) or "",
            avatar_url=profile.avatar_url if profile else None,
        ),
        case_studies=await _authored_cases(db, user.id, settings),
    )


@router.put("/me", response_model=SuccessResponse)
async def update_my_profile(
    body: ProfileUpdate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await user_store.update_profile(
        db, user,
        name=body.name,
        department_role=body.department_role,
        avatar_url=body.avatar_url,
    )
    await db.commit()
    return SuccessResponse()


@router.post("/me/avatar", response_model=UploadResponse)
async def upload_avatar(
    body: ImageUpload,
    user: User = Depends(require_user),
    settings: Settings = Depends(get_settings),
    storage: LocalFileStorage = Depends(get_storage),
):
    stored = await store_image(
        storage,
        prefix=AVATAR_PREFIX,
        user_id=user.id,
        filename=body.filename,
        content_type=body.content_type,
        base64_data=body.base64_data,
        max_bytes=settings.upload_max_bytes,
    )
    return UploadResponse(url=stored.url, key=stored.key)


@router.get("/users/{user_id}", response_model=PublicProfileResponse | None)
async def get_public_profile(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = await user_store.get_user_by_id(db, user_id)
    if user is None:
        return None
    profile = await user_store.get_profile(db, user.id)
    return PublicProfileResponse(
        user=PublicProfileUser(
            id=user.id,
            name=user.name or UNKNOWN_AUTHOR_NAME,
            role=user.role,
            department_role=(profile.department_role if profile else None) or "",
            avatar_url=profile.avatar_url if profile else None,
        ),
        case_studies=await _authored_cases(db, user.id, settings),
    )
