"""Inquiry Routes — signed-in users send messages to administrators."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import require_user
from app.infrastructure.database import get_db
from app.models.user import User
from app.schemas.inquiry import InquiryCreate, InquiryCreated
from app.services import inquiry_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/inquiries", tags=["inquiries"])


@router.post("", response_model=InquiryCreated, status_code=status.HTTP_201_CREATED)
async def create_inquiry(
    body: InquiryCreate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    inquiry = await inquiry_store.create_inquiry(db, user.id, body.title, body.content)
    await db.commit()
    logger.info("Inquiry received", extra={"user_id": user.id})
    return InquiryCreated(id=inquiry.id)
