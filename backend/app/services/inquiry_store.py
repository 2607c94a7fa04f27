"""Inquiry Store — user messages to administrators.

Invariants:
    - Listing is newest first and carries the sender's name/email (None once deleted)
    - Status filtering uses core.user_directory.matches_inquiry_status
    - Never commits: the calling route owns the transaction
"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import InquiryStatus
from app.core.user_directory import matches_inquiry_status
from app.models.inquiry import Inquiry
from app.models.user import User
from app.schemas.admin import InquiryView


async def create_inquiry(
    db: AsyncSession, user_id: int, title: str, content: str,
) -> Inquiry:
    inquiry = Inquiry(user_id=user_id, title=title, content=content)
    db.add(inquiry)
    await db.flush()
    return inquiry


async def list_inquiries(
    db: AsyncSession, status: InquiryStatus | None = None,
) -> list[InquiryView]:
    stmt = (
        select(Inquiry, User.name, User.email)
        .outerjoin(User, Inquiry.user_id == User.id)
        .order_by(Inquiry.created_at.desc(), Inquiry.id.desc())
    )
    rows = (await db.execute(stmt)).all()
    return [
        InquiryView(
            id=inquiry.id,
            user_id=inquiry.user_id,
            title=inquiry.title,
            content=inquiry.content,
            is_resolved=inquiry.is_resolved,
            created_at=inquiry.created_at,
            updated_at=inquiry.updated_at,
            user_name=name,
            user_email=email,
        )
        for inquiry, name, email in rows
        if matches_inquiry_status(inquiry.is_resolved, status)
    ]


async def get_inquiry(db: AsyncSession, inquiry_id: int) -> Inquiry | None:
    return await db.get(Inquiry, inquiry_id)


async def set_resolved(db: AsyncSession, inquiry: Inquiry, is_resolved: bool) -> None:
    inquiry.is_resolved = is_resolved
    inquiry.updated_at = datetime.now(timezone.utc)
    await db.flush()


async def delete_inquiry(db: AsyncSession, inquiry: Inquiry) -> None:
    await db.delete(inquiry)
    await db.flush()
