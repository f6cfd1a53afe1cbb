from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from app.clients.auth import TokenProvider
from app.services.exceptions import AuthorizationError, ConfigurationError, DownstreamServiceError

logger = logging.getLogger(__name__)


class GraphBookingsClient:
    """Async HTTP client for one Microsoft Bookings business on Graph.

    Every call authenticates with a bearer token from ``token_provider``.
    """

    def __init__(
        self,
        base_url: str,
        business_id: str | None,
        *,
        token_provider: TokenProvider,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = str(base_url).rstrip("/")
        self._business_id = business_id or None
        self._timeout = timeout
        self._token_provider = token_provider
        self._client = http_client

    @property
    def business_id(self) -> str | None:
        return self._business_id

    @property
    def is_configured(self) -> bool:
        return bool(self._business_id)

    def with_token_provider(self, token_provider: TokenProvider) -> "GraphBookingsClient":
        """Return a client sharing this connection pool but authenticating differently."""

        return GraphBookingsClient(
            self._base_url,
            self._business_id,
            token_provider=token_provider,
            timeout=self._timeout,
            http_client=self._ensure_client(),
        )

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"Accept": "application/json"},
        )

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    def _business_path(self, suffix: str) -> str:
        if not self._business_id:
            raise ConfigurationError("Booking Business ID not configured")
        return f"/solutions/bookingBusinesses/{quote(self._business_id, safe='@')}{suffix}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any] | None = None,
        payload: Dict[str, Any] | None = None,
    ) -> Any:
        token = await self._token_provider.get_token()
        client = self._ensure_client()
        try:
            response = await client.request(
                method,
                path,
                params=params,
                json=payload,
                headers={"Authorization": f"Bearer {token}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status in (401, 403):
                logger.error("Graph rejected credentials with status %s", status)
                raise AuthorizationError("Not authorized to access bookings", cause=exc) from exc
            logger.exception("Graph returned error %s for %s %s", status, method, path)
            raise DownstreamServiceError(
                "Graph returned an error response",
                status_code=status,
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            logger.exception("Unable to reach Graph: %s", exc)
            raise DownstreamServiceError(
                "Unable to reach Graph", status_code=None, cause=exc
            ) from exc

        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _values(data: Any) -> List[Dict[str, Any]]:
        if isinstance(data, dict) and isinstance(data.get("value"), list):
            return data["value"]
        return []

    async def list_services(self) -> List[Dict[str, Any]]:
        data = await self._request("GET", self._business_path("/services"))
        return self._values(data)

    async def get_service(self, service_id: str) -> Optional[Dict[str, Any]]:
        try:
            return await self._request(
                "GET", self._business_path(f"/services/{quote(service_id, safe='')}")
            )
        except DownstreamServiceError as exc:
            if exc.status_code == 404:
                return None
            raise

    async def list_appointments(self, service_id: str | None = None) -> List[Dict[str, Any]]:
        params = None
        if service_id:
            escaped = service_id.replace("'", "''")
            params = {"$filter": f"serviceId eq '{escaped}'"}
        data = await self._request("GET", self._business_path("/appointments"), params=params)
        return self._values(data)

    async def get_appointment(self, appointment_id: str) -> Optional[Dict[str, Any]]:
        try:
            return await self._request(
                "GET", self._business_path(f"/appointments/{quote(appointment_id, safe='')}")
            )
        except DownstreamServiceError as exc:
            if exc.status_code == 404:
                return None
            raise

    async def create_appointment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request("POST", self._business_path("/appointments"), payload=payload)
        return data if isinstance(data, dict) else {}

    async def patch_appointment(self, appointment_id: str, payload: Dict[str, Any]) -> None:
        await self._request(
            "PATCH",
            self._business_path(f"/appointments/{quote(appointment_id, safe='')}"),
            payload=payload,
        )

    async def delete_appointment(self, appointment_id: str) -> None:
        await self._request(
            "DELETE", self._business_path(f"/appointments/{quote(appointment_id, safe='')}")
        )
