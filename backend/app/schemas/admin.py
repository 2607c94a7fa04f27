"""Admin Schemas — invite code, user management, inquiries and dashboard.

Invariants:
    - InviteCodeUpdate.invite_code: stripped, <=128 chars (blank clears the code)
    - RoleUpdate.role limited to core.domain_types.Role
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.core.domain_types import Role


class InviteCodeResponse(BaseModel):
    invite_code: str


class InviteCodeUpdate(BaseModel):
    invite_code: str = Field("", max_length=256)

    @field_validator("invite_code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        v = v.strip()
        if len(v) > 128:
            raise ValueError("invite_code must be at most 128 characters")
        return v


class AdminUserView(BaseModel):
    id: int
    open_id: str
    name: str | None = None
    email: str | None = None
    login_method: str | None = None
    role: str
    is_owner: bool = False
    created_at: datetime
    updated_at: datetime
    last_signed_in: datetime


class AdminUserListResponse(BaseModel):
    items: list[AdminUserView]
    total: int
    page: int
    page_size: int
    total_pages: int


class RoleUpdate(BaseModel):
    role: Role


class InquiryView(BaseModel):
    id: int
    user_id: int | None = None
    title: str
    content: str
    is_resolved: bool
    created_at: datetime
    updated_at: datetime
    user_name: str | None = None
    user_email: str | None = None


class InquiryStatusUpdate(BaseModel):
    is_resolved: bool


class DashboardTotals(BaseModel):
    users: int
    case_studies: int
    favorites: int


class PopularCaseStudy(BaseModel):
    id: int
    title: str
    favorite_count: int


class DashboardResponse(BaseModel):
    totals: DashboardTotals
    popular_case_studies: list[PopularCaseStudy]
