"""
OAuth identity provider client.
Exchanges an authorization code for an access token and fetches the profile.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel

from casebook.core.config import settings
from casebook.core.exceptions import ServiceUnavailable


class ProviderProfile(BaseModel):
    open_id: str | None = None
    name: str | None = None
    email: str | None = None
    login_method: str | None = None
    platform: str | None = None

    @classmethod
    def from_provider(cls, data: dict[str, Any]) -> "ProviderProfile":
        return cls(
            open_id=data.get("openId") or data.get("open_id"),
            name=data.get("name"),
            email=data.get("email"),
            login_method=data.get("loginMethod") or data.get("login_method"),
            platform=data.get("platform"),
        )


class OAuthIdentityProvider:
    def __init__(
        self,
        server_url: str,
        app_id: str | None = None,
        client_secret: str | None = None,
        timeout: float = 20.0,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self.app_id = app_id
        self.client_secret = client_secret
        self.timeout = timeout

    async def exchange_code(self, code: str, state: str) -> str:
        """Exchange authorization code for an access token."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.post(
                f"{self.server_url}/oauth/token",
                json={
                    "clientId": self.app_id,
                    "clientSecret": self.client_secret,
                    "grantType": "authorization_code",
                    "code": code,
                    "state": state,
                },
            )
            r.raise_for_status()
            return r.json()["accessToken"]

    async def get_user_info(self, access_token: str) -> ProviderProfile:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.get(
                f"{self.server_url}/oauth/userinfo",
                headers={"Authorization": f"Bearer {access_token}"},
            )
            r.raise_for_status()
            return ProviderProfile.from_provider(r.json())


def get_identity_provider() -> OAuthIdentityProvider:
    """FastAPI dependency; tests override it with a fake provider."""
    if not settings.OAUTH_SERVER_URL:
        raise ServiceUnavailable("OAuth server URL is not configured")
    return OAuthIdentityProvider(
        settings.OAUTH_SERVER_URL,
        app_id=settings.APP_ID,
        client_secret=settings.OAUTH_CLIENT_SECRET,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
