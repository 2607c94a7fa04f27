"""Settings Store — app_settings key/value persistence (invite code, pinned case).

Invariants:
    - set_setting upserts; value None means unset
    - get_pinned_id tolerates garbage values (returns None)
    - Never commits: the calling route owns the transaction
"""

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import INVITE_CODE_SETTING_KEY, PINNED_CASE_SETTING_KEY
from app.models.app_setting import AppSetting


async def get_setting(db: AsyncSession, key: str) -> str | None:
    setting = await db.get(AppSetting, key)
    return setting.value if setting else None


async def set_setting(db: AsyncSession, key: str, value: str | None) -> None:
    setting = await db.get(AppSetting, key)
    if setting is None:
        db.add(AppSetting(key=key, value=value))
    else:
        setting.value = value
        setting.updated_at = datetime.now(timezone.utc)
    await db.flush()


async def get_invite_code(db: AsyncSession) -> str:
    """Stored invite code, "" when unset."""
    return (await get_setting(db, INVITE_CODE_SETTING_KEY) or "").strip()


async def set_invite_code(db: AsyncSession, invite_code: str) -> None:
    await set_setting(db, INVITE_CODE_SETTING_KEY, invite_code.strip() or None)


async def get_pinned_id(db: AsyncSession) -> int | None:
    raw = await get_setting(db, PINNED_CASE_SETTING_KEY)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


async def set_pinned_id(db: AsyncSession, case_study_id: int | None) -> None:
    await set_setting(
        db, PINNED_CASE_SETTING_KEY,
        str(case_study_id) if case_study_id is not None else None,
    )
