"""User & Profile Schemas — session user, own profile, public profile.

Invariants:
    - ProfileUpdate.name: 1-80 chars after strip
    - ProfileUpdate.department_role: <=120 chars after strip, blank → None
    - Public views never expose email or open_id
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.case_study import CaseStudyView


class SessionUser(BaseModel):
    """Current user as returned by /auth/me."""
    id: int
    open_id: str
    name: str | None = None
    email: str | None = None
    login_method: str | None = None
    role: str
    is_owner: bool = False
    created_at: datetime
    last_signed_in: datetime


class ProfileUser(BaseModel):
    id: int
    name: str
    email: str | None = None
    role: str
    login_method: str | None = None
    department_role: str = ""
    avatar_url: str | None = None


class ProfileResponse(BaseModel):
    user: ProfileUser
    case_studies: list[CaseStudyView]


class PublicProfileUser(BaseModel):
    id: int
    name: str
    role: str
    department_role: str = ""
    avatar_url: str | None = None


class PublicProfileResponse(BaseModel):
    user: PublicProfileUser
    case_studies: list[CaseStudyView]


class ProfileUpdate(BaseModel):
    name: str = Field(max_length=200)
    department_role: str | None = Field(None, max_length=500)
    avatar_url: str | None = Field(None, max_length=2048)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        if len(v) > 80:
            raise ValueError("name must be at most 80 characters")
        return v

    @field_validator("department_role")
    @classmethod
    def strip_department_role(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if len(v) > 120:
            raise ValueError("department_role must be at most 120 characters")
        return v or None


class LoginUrlResponse(BaseModel):
    url: str
