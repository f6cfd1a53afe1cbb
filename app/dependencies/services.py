from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header

from app.clients.auth import ServiceAccountTokenProvider, StaticTokenProvider
from app.clients.graph import GraphBookingsClient
from app.config import Settings, get_settings
from app.services import BookingService


@lru_cache(maxsize=1)
def get_token_provider_cached() -> ServiceAccountTokenProvider:
    return ServiceAccountTokenProvider(get_settings())


@lru_cache(maxsize=1)
def get_graph_client_cached() -> GraphBookingsClient:
    settings = get_settings()
    return GraphBookingsClient(
        str(settings.graph_base_url),
        settings.bookings_business_id,
        token_provider=get_token_provider_cached(),
        timeout=settings.graph_timeout,
    )


def get_graph_client(
    authorization: str | None = Header(default=None),
) -> GraphBookingsClient:
    """Use the caller's bearer token when one is sent, else the service account."""

    client = get_graph_client_cached()
    if authorization and authorization.lower().startswith("bearer "):
        return client.with_token_provider(StaticTokenProvider(authorization[7:]))
    return client


def get_booking_service(
    client: GraphBookingsClient = Depends(get_graph_client),
    settings: Settings = Depends(get_settings),
) -> BookingService:
    return BookingService(client, settings)
