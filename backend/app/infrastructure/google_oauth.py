"""Google OAuth Client — authorization-code exchange and OpenID userinfo lookup.

Invariants:
    - Every HTTP failure (status >= 400, timeout, connection) maps to OAuthExchangeError
    - Missing client id/secret is a configuration error raised before any request
    - Userinfo is normalized to GoogleIdentity (open_id = OpenID "sub")

Design Decisions:
    - httpx.AsyncClient per call: the callback runs once per login, no pool to manage
    - No retries: a failed exchange is surfaced to the user, who simply logs in again
"""

import logging
from dataclasses import dataclass

import httpx

from app.core.domain_types import LoginMethod
from app.core.errors import OAuthExchangeError

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


@dataclass(frozen=True)
class GoogleIdentity:
    """Normalized userinfo response."""
    open_id: str
    name: str
    email: str | None
    login_method: str = LoginMethod.GOOGLE.value


class GoogleOAuthClient:
    """Exchanges authorization codes and fetches the signed-in identity."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def exchange_code(self, code: str, redirect_uri: str) -> str:
        """Exchange authorization code for an access token."""
        if not self.client_id:
            raise OAuthExchangeError("GOOGLE_CLIENT_ID is not configured.", "config")
        if not self.client_secret:
            raise OAuthExchangeError(
                "GOOGLE_CLIENT_SECRET is not configured.", "config",
            )
        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri,
        }
        data = await self._request("POST", GOOGLE_TOKEN_URL, "token", data=payload)
        access_token = data.get("access_token")
        if not access_token:
            raise OAuthExchangeError("access_token missing", "token")
        return access_token

    async def fetch_identity(self, access_token: str) -> GoogleIdentity:
        """Fetch OpenID userinfo for the access token."""
        data = await self._request(
            "GET", GOOGLE_USERINFO_URL, "userinfo",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        email = data.get("email") or None
        return GoogleIdentity(
            open_id=data.get("sub") or "",
            name=data.get("name") or email or "",
            email=email,
        )

    async def _request(self, method: str, url: str, stage: str, **kwargs) -> dict:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport,
            ) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise OAuthExchangeError(str(e) or type(e).__name__, stage)
        if response.status_code >= 400:
            logger.warning(
                f"Google {stage} request failed: {response.text}",
                extra={"status_code": response.status_code},
            )
            raise OAuthExchangeError(
                f"HTTP {response.status_code} {response.reason_phrase}", stage,
            )
        try:
            return response.json()
        except ValueError:
            raise OAuthExchangeError("invalid JSON response", stage)
