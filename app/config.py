from decimal import Decimal
from functools import lru_cache
from typing import List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="Hotel Booking API")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
        ]
    )
    graph_base_url: AnyHttpUrl = Field(
        default="https://graph.microsoft.com/v1.0"
    )
    graph_timeout: float = Field(
        default=10.0
    )
    bookings_business_id: str | None = Field(
        default=None
    )
    bookings_staff_id: str | None = Field(
        default=None
    )

    tenant_id: str | None = Field(default=None)
    client_id: str | None = Field(default=None)
    client_secret: str | None = Field(default=None)
    service_account_email: str | None = Field(default=None)
    service_account_password: str | None = Field(default=None)
    token_url_template: str = Field(
        default="https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"
    )
    token_scope: str = Field(
        default="https://graph.microsoft.com/.default"
    )
    token_expiry_margin_seconds: int = Field(
        default=300
    )

    default_nightly_price: Decimal = Field(
        default=Decimal("100")
    )
    availability_fallback_price: Decimal = Field(
        default=Decimal("100")
    )
    calendar_default_months: int = Field(
        default=3
    )

    # Business-policy toggles for the fail-open paths.
    fail_open_on_availability_error: bool = Field(
        default=True
    )
    fallback_on_create_error: bool = Field(
        default=True
    )
    revalidate_on_create: bool = Field(
        default=True
    )

    model_config = SettingsConfigDict(env_prefix="HOTEL_", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @property
    def token_url(self) -> str | None:
        if not self.tenant_id:
            return None
        return self.token_url_template.format(tenant_id=self.tenant_id)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
