"""Hosted auth provider (Supabase GoTrue REST API)."""
import logging
from typing import Optional

import httpx
from pydantic import BaseModel

from mygames.config import Settings, get_settings
from mygames.exceptions import AuthError, GatewayError
from mygames.gateways.base import BaseHttpGateway

logger = logging.getLogger(__name__)

# Statuses the provider uses for rejected credentials, unconfirmed emails and weak passwords
CLIENT_ERROR_STATUSES = {400, 401, 403, 404, 422, 429}


class UserIdentity(BaseModel):
    id: str
    email: Optional[str] = None


class Session(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user: UserIdentity


class SupabaseAuthGateway(BaseHttpGateway):
    """Sign-in, sign-up and password management delegated to the auth provider."""

    name = "auth"
    timeout = 10.0

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(client)
        self.settings = settings or get_settings()

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        return {
            "apikey": self.settings.supabase_anon_key,
            "Authorization": f"Bearer {access_token or self.settings.supabase_anon_key}",
        }

    async def _request(self, method: str, path: str, access_token: str | None = None, **kwargs) -> httpx.Response:
        url = f"{self.settings.auth_base_url}{path}"
        try:
            return await self.client.request(method, url, headers=self._headers(access_token), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Auth provider request failed: {method} {path}: {e}")
            raise GatewayError("Auth provider is unreachable") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        return (
            data.get("error_description")
            or data.get("msg")
            or data.get("message")
            or f"Auth provider returned {response.status_code}"
        )

    def _check(self, response: httpx.Response):
        """Raise AuthError for rejected requests and GatewayError for provider failures."""
        if response.is_success:
            return
        message = self._error_message(response)
        if response.status_code in CLIENT_ERROR_STATUSES:
            raise AuthError(message)
        logger.error(f"Auth provider error {response.status_code}: {message}")
        raise GatewayError(message)

    async def current_user(self, access_token: str) -> UserIdentity | None:
        """Resolve an access token to its user, or None when it is invalid or expired."""
        if not access_token:
            return None
        response = await self._request("GET", "/user", access_token)
        if response.status_code in (401, 403):
            return None
        self._check(response)
        data = response.json()
        return UserIdentity(id=data["id"], email=data.get("email"))

    async def sign_in(self, email: str, password: str) -> Session:
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        self._check(response)
        data = response.json()
        user = data.get("user") or {}
        logger.info(f"User signed in: {user.get('id')}")
        return Session(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
            user=UserIdentity(id=user["id"], email=user.get("email")),
        )

    async def sign_up(self, email: str, password: str) -> None:
        response = await self._request("POST", "/signup", json={"email": email, "password": password})
        self._check(response)
        logger.info("Sign-up accepted, confirmation email pending")

    async def sign_out(self, access_token: str) -> None:
        response = await self._request("POST", "/logout", access_token)
        if not response.is_success:
            # The session is gone either way
            logger.warning(f"Sign-out returned {response.status_code}: {self._error_message(response)}")

    async def request_password_reset(self, email: str, redirect_url: str) -> None:
        response = await self._request(
            "POST",
            "/recover",
            params={"redirect_to": redirect_url},
            json={"email": email},
        )
        self._check(response)

    async def update_password(self, access_token: str, new_password: str) -> None:
        response = await self._request("PUT", "/user", access_token, json={"password": new_password})
        self._check(response)
        logger.info("Password updated")
