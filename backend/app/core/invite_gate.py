"""Invite Gate — OAuth state codec and the corporate-domain / invite-code login rule.

Invariants:
    - All functions are PURE: no IO, no async, no side effects
    - state is base64(JSON {"redirectUri", "inviteCode"?}); undecodable state never raises
    - Corporate emails always pass; everyone else needs a non-empty matching invite code
    - Both stored and provided invite codes are compared after strip()

Design Decisions:
    - Decoder is lenient (bad base64/JSON → empty payload) because Google echoes state
      verbatim; a malformed state just means "no invite code"
"""

import base64
import binascii
import json
from dataclasses import dataclass
from urllib.parse import urlencode

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
OAUTH_CALLBACK_PATH = "/api/oauth/callback"


@dataclass(frozen=True)
class OAuthState:
    """Decoded OAuth state payload."""
    redirect_uri: str
    invite_code: str | None = None


def encode_state(redirect_uri: str, invite_code: str | None = None) -> str:
    """Encode login state; blank invite codes are omitted."""
    payload: dict[str, str] = {"redirectUri": redirect_uri}
    code = (invite_code or "").strip()
    if code:
        payload["inviteCode"] = code
    raw = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def _b64decode(state: str) -> str:
    try:
        return base64.b64decode(state, validate=False).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return state


def decode_state(state: str) -> OAuthState:
    """Decode state. Falls back to the raw decoded text as redirect URI."""
    decoded = _b64decode(state)
    try:
        parsed = json.loads(decoded)
    except (json.JSONDecodeError, ValueError):
        return OAuthState(redirect_uri=decoded)
    if not isinstance(parsed, dict):
        return OAuthState(redirect_uri=decoded)

    redirect_uri = parsed.get("redirectUri")
    invite_code = parsed.get("inviteCode")
    return OAuthState(
        redirect_uri=(
            redirect_uri if isinstance(redirect_uri, str) and redirect_uri
            else decoded
        ),
        invite_code=invite_code if isinstance(invite_code, str) else None,
    )


def is_corporate_email(email: str | None, allowed_domain: str) -> bool:
    """Case-insensitive suffix match on the allowed domain (e.g. '@example.co.jp')."""
    if not email or not allowed_domain:
        return False
    return email.lower().endswith(allowed_domain.lower())


def check_invite(
    email: str | None,
    allowed_domain: str,
    required_code: str | None,
    provided_code: str | None,
) -> dict | None:
    """Return violation dict when a non-corporate login lacks the invite code."""
    if is_corporate_email(email, allowed_domain):
        return None
    required = (required_code or "").strip()
    provided = (provided_code or "").strip()
    if not required or provided != required:
        return {
            "status": "error",
            "error_code": "INVITE_CODE_REQUIRED",
            "message": "Invite code required",
        }
    return None


def build_login_url(
    client_id: str,
    public_base_url: str,
    invite_code: str | None = None,
    select_account: bool = False,
) -> str:
    """Google authorization URL carrying the callback and invite code in state."""
    redirect_uri = public_base_url.rstrip("/") + OAUTH_CALLBACK_PATH
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": "openid email profile",
        "state": encode_state(redirect_uri, invite_code),
    }
    if select_account:
        params["prompt"] = "select_account"
    return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"
