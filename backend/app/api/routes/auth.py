"""Auth Routes — Google login URL, OAuth callback, current user and logout.

Invariants:
    - The callback answers with raw {"error": ...} bodies and redirects (browser-facing),
      not the CaiError envelope
    - Session cookie: HttpOnly, path "/", Secure + SameSite=None on https, Lax otherwise
    - Invite-gate rejections redirect to /login with the message in ?error=

Design Decisions:
    - Two routers: /api/v1/auth (JSON API) and /api/oauth (the registered redirect URI)
"""

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user, get_oauth_client
from app.config import Settings, get_settings
from app.core.domain_types import INVITE_REQUIRED_MESSAGE
from app.core.enforce_permissions import is_owner
from app.core.errors import BusinessRuleError
from app.core.invite_gate import build_login_url
from app.infrastructure.database import get_db
from app.infrastructure.google_oauth import GoogleOAuthClient
from app.models.user import User
from app.schemas.case_study import SuccessResponse
from app.schemas.user import LoginUrlResponse, SessionUser
from app.services import auth_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])
oauth_router = APIRouter(prefix="/api/oauth", tags=["auth"])


def is_secure_request(request: Request) -> bool:
    if request.url.scheme == "https":
        return True
    forwarded = request.headers.get("x-forwarded-proto", "")
    return any(p.strip().lower() == "https" for p in forwarded.split(","))


def _cookie_options(request: Request) -> dict:
    secure = is_secure_request(request)
    return {
        "path": "/",
        "httponly": True,
        "secure": secure,
        "samesite": "none" if secure else "lax",
    }


def to_session_user(user: User, settings: Settings) -> SessionUser:
    return SessionUser(
        id=user.id,
        open_id=user.open_id,
        name=user.name,
        email=user.email,
        login_method=user.login_method,
        role=user.role,
        is_owner=is_owner(user, settings.owner_open_id),
        created_at=user.created_at,
        last_signed_in=user.last_signed_in,
    )


@router.get("/login-url", response_model=LoginUrlResponse)
async def login_url(
    invite_code: str | None = None,
    select_account: bool = False,
    settings: Settings = Depends(get_settings),
):
    """Google authorization URL (invite code travels in the OAuth state)."""
    return LoginUrlResponse(url=build_login_url(
        settings.google_client_id, settings.public_base_url,
        invite_code, select_account,
    ))


@router.get("/me", response_model=SessionUser | None)
async def me(
    user: User | None = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    if user is None:
        return None
    return to_session_user(user, settings)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
):
    response.delete_cookie(settings.session_cookie_name, **_cookie_options(request))
    return SuccessResponse()


@oauth_router.get("/callback")
async def oauth_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
):
    """Complete Google login, set the session cookie and go home."""
    if not code or not state:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "code and state are required"},
        )
    try:
        outcome = await auth_service.complete_oauth_login(
            db, oauth_client, settings, code=code, state=state,
        )
    except BusinessRuleError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"error": e.message},
        )
    except Exception as e:
        logger.error(f"OAuth callback failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "OAuth callback failed"},
        )

    if outcome.invite_required:
        return RedirectResponse(
            f"/login?error={quote(INVITE_REQUIRED_MESSAGE)}",
            status_code=status.HTTP_302_FOUND,
        )

    response = RedirectResponse("/", status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        settings.session_cookie_name,
        outcome.token,
        max_age=settings.session_ttl_seconds,
        **_cookie_options(request),
    )
    return response
