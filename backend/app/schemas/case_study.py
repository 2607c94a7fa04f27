"""Case Study Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - CaseStudyInput: title/description/challenge/solution stripped, non-empty
    - tools/steps: stored exactly as sent (order and entries preserved)
    - Required text fields have no length cap, only non-empty
    - Empty optional strings (impact, thumbnail_*) normalized to None
    - CaseStudyView carries every derived field the gallery needs (favorite, author, pin)

Design Decisions:
    - tags absent from input: they are always generated server-side
    - Views are plain BaseModel built by services.case_study_store, not ORM-mode dumps,
      because they merge columns from users, favorites and settings
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.core.domain_types import Category


class CaseStudyInput(BaseModel):
    """Create/update payload (update replaces every field)."""
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category: Category
    tools: list[str] = Field(default_factory=list)
    challenge: str = Field(min_length=1)
    solution: str = Field(min_length=1)
    steps: list[str] = Field(default_factory=list)
    impact: str | None = None
    thumbnail_url: str | None = None
    thumbnail_key: str | None = None

    @field_validator("title", "description", "challenge", "solution")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty or whitespace")
        return v

    @field_validator("impact", "thumbnail_url", "thumbnail_key")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class CaseStudyView(BaseModel):
    """Case study with author and viewer-relative fields."""
    id: int
    user_id: int
    title: str
    description: str
    thumbnail_url: str | None = None
    thumbnail_key: str | None = None
    category: str
    tools: list[str]
    challenge: str
    solution: str
    steps: list[str]
    impact: str | None = None
    tags: list[str]
    is_recommended: bool = False
    created_at: datetime
    updated_at: datetime | None = None
    is_favorite: bool = False
    author_name: str
    author_role: str
    author_is_owner: bool = False
    is_edited: bool = False
    is_pinned: bool = False


class CaseStudyListResponse(BaseModel):
    items: list[CaseStudyView]
    total: int
    category_counts: dict[str, int]
    pinned_id: int | None = None


class CaseStudyCreated(BaseModel):
    success: bool = True
    id: int


class FavoriteToggleResponse(BaseModel):
    is_favorite: bool


class ShareLinkResponse(BaseModel):
    url: str


class PinResponse(BaseModel):
    success: bool = True
    pinned_id: int | None


class ImageUpload(BaseModel):
    """Base64 image upload (already compressed client-side)."""
    filename: str = Field(min_length=1, max_length=255)
    content_type: str = Field(min_length=1, max_length=100)
    base64_data: str = Field(min_length=1)


class UploadResponse(BaseModel):
    url: str
    key: str


class SuccessResponse(BaseModel):
    success: bool = True
