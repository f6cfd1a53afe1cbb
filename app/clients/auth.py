from __future__ import annotations

import logging
import time
from typing import Optional, Protocol

import httpx

from app.config import Settings
from app.services.exceptions import AuthorizationError, ConfigurationError

logger = logging.getLogger(__name__)


class TokenProvider(Protocol):
    async def get_token(self) -> str:
        ...


class StaticTokenProvider:
    """Wraps a bearer token supplied by the caller (delegated user sign-in)."""

    def __init__(self, token: str) -> None:
        self._token = token.strip() if token else ""

    async def get_token(self) -> str:
        if not self._token:
            raise AuthorizationError("Access token is required")
        return self._token


class ServiceAccountTokenProvider:
    """Acquires and caches a Graph token for the configured service account.

    Tokens are reused until ``expiry_margin`` seconds before they expire.
    Concurrent callers may both refresh; the later token simply wins.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        clock=time.monotonic,
    ) -> None:
        self._settings = settings
        self._http_client = http_client
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at = 0.0

    def _credentials(self) -> dict[str, str]:
        settings = self._settings
        missing = [
            name
            for name in ("tenant_id", "client_id", "client_secret", "service_account_email")
            if not getattr(settings, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Azure AD credentials are not configured: {', '.join(missing)}"
            )
        return {
            "grant_type": "password",
            "client_id": settings.client_id,
            "client_secret": settings.client_secret,
            "scope": settings.token_scope,
            "username": settings.service_account_email,
            "password": settings.service_account_password or "",
        }

    async def _request_token(self, form: dict[str, str]) -> httpx.Response:
        url = self._settings.token_url
        if self._http_client is not None:
            return await self._http_client.post(url, data=form)
        async with httpx.AsyncClient(timeout=self._settings.graph_timeout) as client:
            return await client.post(url, data=form)

    async def get_token(self) -> str:
        if self._token and self._clock() < self._expires_at:
            logger.debug("Using cached service account token")
            return self._token

        form = self._credentials()
        logger.info("Acquiring token for service account %s", form["username"])
        try:
            response = await self._request_token(form)
        except httpx.RequestError as exc:
            logger.exception("Unable to reach token endpoint")
            raise AuthorizationError("Unable to reach token endpoint", cause=exc) from exc

        if response.is_error:
            logger.error(
                "Token acquisition failed: %s %s", response.status_code, response.text
            )
            raise AuthorizationError("Failed to acquire service account token")

        try:
            body = response.json()
            token = body["access_token"]
            expires_in = int(body["expires_in"])
        except (ValueError, KeyError, TypeError) as exc:
            raise AuthorizationError("Token response missing required fields", cause=exc) from exc

        self._token = token
        self._expires_at = self._clock() + expires_in - self._settings.token_expiry_margin_seconds
        logger.info("Service account token acquired, expires in %s seconds", expires_in)
        return token
