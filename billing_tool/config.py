"""Runtime settings, read from ``BILLING_*`` environment variables or a ``.env`` file."""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BILLING_", env_file=".env", extra="ignore")

    # Currencies
    currency: str = "EUR"
    invoice_currency: str = "RON"
    exchange_rate: Decimal = Decimal("1")

    # Invoicing defaults
    vat_rate: Decimal = Decimal("19")
    default_due_days: int = 30

    # Presentation
    amount_locale: str = "ro"

    # Logging
    log_level: str = "INFO"

    # API
    allowed_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ]


@lru_cache
def get_settings() -> Settings:
    return Settings()
