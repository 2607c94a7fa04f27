"""Request Dependencies — session resolution, role guards and collaborator factories.

Invariants:
    - get_current_user never raises on bad/missing cookies (anonymous = None)
    - require_user → 401 AUTHENTICATION_REQUIRED; require_admin → 403 ADMIN_REQUIRED
    - All collaborators (OAuth client, storage, tag generator) come from here so tests
      can swap them through app.dependency_overrides

Design Decisions:
    - One AsyncSession per request: FastAPI caches get_db within a request, so guards
      and the route share the same transaction
    - The Anthropic-backed TagGenerator is built once per configuration (lru_cache on
      primitive args) to reuse the SDK's connection pool
"""

from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.enforce_permissions import check_admin
from app.core.errors import AuthenticationRequiredError, error_from_violation, ErrorContext
from app.infrastructure.anthropic_client import ResilientAnthropicClient
from app.infrastructure.database import get_db
from app.infrastructure.file_storage import LocalFileStorage
from app.infrastructure.google_oauth import GoogleOAuthClient
from app.models.user import User
from app.services import auth_service
from app.services.tag_generator import TagGenerator


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User | None:
    token = request.cookies.get(settings.session_cookie_name)
    return await auth_service.authenticate(db, token, settings)


async def require_user(user: User | None = Depends(get_current_user)) -> User:
    if user is None:
        raise AuthenticationRequiredError()
    return user


async def require_admin(user: User = Depends(require_user)) -> User:
    violation = check_admin(user)
    if violation:
        raise error_from_violation(violation, ErrorContext(user_id=user.id))
    return user


def get_oauth_client(settings: Settings = Depends(get_settings)) -> GoogleOAuthClient:
    return GoogleOAuthClient(
        settings.google_client_id,
        settings.google_client_secret,
        settings.oauth_timeout_seconds,
    )


def get_storage(settings: Settings = Depends(get_settings)) -> LocalFileStorage:
    return LocalFileStorage(settings.upload_dir, settings.upload_url_prefix)


@lru_cache
def _build_tag_generator(
    api_key: str,
    model: str,
    enabled: bool,
    max_retries: int,
    base_delay_ms: int,
    max_delay_ms: int,
    timeout_seconds: int,
) -> TagGenerator:
    client = None
    if enabled:
        client = ResilientAnthropicClient(
            api_key=api_key,
            max_retries=max_retries,
            base_delay_ms=base_delay_ms,
            max_delay_ms=max_delay_ms,
            timeout_seconds=timeout_seconds,
        )
    return TagGenerator(client, model, enabled=enabled)


def get_tag_generator(settings: Settings = Depends(get_settings)) -> TagGenerator:
    return _build_tag_generator(
        settings.anthropic_api_key,
        settings.tag_model,
        settings.tag_generation_enabled,
        settings.anthropic_max_retries,
        settings.anthropic_base_delay_ms,
        settings.anthropic_max_delay_ms,
        settings.anthropic_timeout_seconds,
    )
