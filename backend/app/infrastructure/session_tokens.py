"""Session Tokens — HS256 JWT minting and verification for the session cookie.

Invariants:
    - Tokens carry openId, appId, name and exp; all three strings must be non-empty
    - verify_session never raises: any failure (signature, expiry, shape) returns None
    - Only HS256 accepted on verification (no algorithm confusion)

Design Decisions:
    - python-jose for JWT: signing, expiry validation and algorithm pinning in one call
    - SessionPayload dataclass over raw dict: callers cannot forget a claim
"""

import logging
import time
from dataclasses import dataclass

from jose import jwt, JWTError

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"


@dataclass(frozen=True)
class SessionPayload:
    open_id: str
    app_id: str
    name: str


def _non_empty(value: object) -> bool:
    return isinstance(value, str) and len(value) > 0


def sign_session(
    payload: SessionPayload, secret: str, expires_in_seconds: int,
) -> str:
    """Mint a signed session token expiring after expires_in_seconds."""
    claims = {
        "openId": payload.open_id,
        "appId": payload.app_id,
        "name": payload.name,
        "exp": int(time.time()) + expires_in_seconds,
    }
    return jwt.encode(claims, secret, algorithm=_ALGORITHM)


def verify_session(token: str | None, secret: str) -> SessionPayload | None:
    """Verify signature/expiry and claim shape; None when anything is off."""
    if not token:
        logger.debug("Missing session cookie")
        return None
    try:
        claims = jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except JWTError as e:
        logger.warning(f"Session verification failed: {e}")
        return None

    open_id, app_id, name = (
        claims.get("openId"), claims.get("appId"), claims.get("name"),
    )
    if not (_non_empty(open_id) and _non_empty(app_id) and _non_empty(name)):
        logger.warning("Session payload missing required fields")
        return None
    return SessionPayload(open_id=open_id, app_id=app_id, name=name)
