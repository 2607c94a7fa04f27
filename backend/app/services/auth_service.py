"""Auth Service — session cookie resolution and the OAuth login completion flow.

Invariants:
    - authenticate() returns None for every failure (no cookie, bad token, unknown user)
    - A successful authenticate() refreshes last_signed_in
    - complete_oauth_login() checks the invite gate BEFORE creating or updating the user
    - The owner is admin after every login (user_store.upsert_user)

Design Decisions:
    - Flow split from the route: the route only translates outcomes to HTTP
      (cookie, redirects, error bodies), the service owns the ordering of steps
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.core.errors import BusinessRuleError
from app.core.invite_gate import decode_state, check_invite
from app.infrastructure.google_oauth import GoogleOAuthClient
from app.infrastructure.session_tokens import (
    SessionPayload, sign_session, verify_session,
)
from app.models.user import User
from app.services import settings_store, user_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginOutcome:
    """Either a minted session token or an invite-gate rejection."""
    token: str | None = None
    invite_required: bool = False


def mint_session_token(user: User, settings: Settings) -> str:
    payload = SessionPayload(
        open_id=user.open_id,
        app_id=settings.google_client_id or "cai-library",
        name=user.name or user.email or user.open_id,
    )
    return sign_session(payload, settings.jwt_secret, settings.session_ttl_seconds)


async def authenticate(
    db: AsyncSession, token: str | None, settings: Settings,
) -> User | None:
    """Resolve the session cookie to a user, or None."""
    session = verify_session(token, settings.jwt_secret)
    if session is None:
        return None
    user = await user_store.get_user_by_open_id(db, session.open_id)
    if user is None:
        logger.warning("Session refers to unknown user")
        return None
    await user_store.touch_last_signed_in(db, user)
    await db.commit()
    # reload so timestamps match rows loaded later in the request
    await db.refresh(user)
    return user


async def complete_oauth_login(
    db: AsyncSession,
    oauth_client: GoogleOAuthClient,
    settings: Settings,
    *,
    code: str,
    state: str,
) -> LoginOutcome:
    """Exchange the code, gate on invite code, upsert the user, mint a token."""
    login_state = decode_state(state)
    access_token = await oauth_client.exchange_code(code, login_state.redirect_uri)
    identity = await oauth_client.fetch_identity(access_token)
    if not identity.open_id:
        raise BusinessRuleError("openId missing from user info", "OPEN_ID_MISSING")

    required_code = await settings_store.get_invite_code(db)
    violation = check_invite(
        identity.email, settings.allowed_email_domain,
        required_code, login_state.invite_code,
    )
    if violation:
        logger.info("Login rejected by invite gate")
        return LoginOutcome(invite_required=True)

    user = await user_store.upsert_user(
        db,
        open_id=identity.open_id,
        owner_open_id=settings.owner_open_id,
        name=identity.name or None,
        email=identity.email,
        login_method=identity.login_method,
    )
    await db.commit()
    logger.info("User signed in", extra={"user_id": user.id})
    return LoginOutcome(token=mint_session_token(user, settings))
