# dealer_portal/settings.py
from __future__ import annotations
from typing import List, Optional
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
import os

_DEFAULT_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def _parse_cors(v: Optional[str | List[str]]) -> List[str]:
    """
    Accept JSON array (e.g. '["http://localhost:3000"]') or
    comma-separated string ('http://localhost:3000,http://127.0.0.1:3000').
    """
    if v is None:
        return list(_DEFAULT_ORIGINS)
    if isinstance(v, list):
        return v
    s = v.strip()
    if not s:
        return list(_DEFAULT_ORIGINS)
    if s.startswith("["):
        try:
            parsed = json.loads(s)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list) and all(isinstance(x, str) for x in parsed):
            return parsed
    return [p.strip() for p in s.split(",") if p.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # --- API ---
    api_host: str = Field(default="127.0.0.1", validation_alias=AliasChoices("API_HOST",))
    api_port: int = Field(default=8000,        validation_alias=AliasChoices("API_PORT",))
    cors_origins_raw: Optional[str | List[str]] = Field(
        default=None, validation_alias=AliasChoices("CORS_ORIGINS",)
    )
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL",))

    # --- Firebase ---
    firebase_project_id: str = Field(
        default="dealer-portal",
        validation_alias=AliasChoices("FIREBASE_PROJECT_ID",)
    )
    google_application_credentials: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_APPLICATION_CREDENTIALS",)
    )

    # --- Firestore layout ---
    orders_collection: str = Field(default="orders", validation_alias=AliasChoices("ORDERS_COLLECTION",))
    prices_collection: str = Field(default="prices", validation_alias=AliasChoices("PRICES_COLLECTION",))
    tiers_collection: str = Field(default="tiers", validation_alias=AliasChoices("TIERS_COLLECTION",))
    products_collection: str = Field(
        default="guitars", validation_alias=AliasChoices("PRODUCTS_COLLECTION",)
    )

    # --- Ordering ---
    # currency used when a caller has no `currency` custom claim
    default_currency: str = Field(default="USD", validation_alias=AliasChoices("DEFAULT_CURRENCY",))
    enforce_status_transitions: bool = Field(
        default=True, validation_alias=AliasChoices("ENFORCE_STATUS_TRANSITIONS",)
    )
    require_terms_acceptance: bool = Field(
        default=False, validation_alias=AliasChoices("REQUIRE_TERMS_ACCEPTANCE",)
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors(self.cors_origins_raw)


# singleton
settings = Settings()

# Make sure GOOGLE_APPLICATION_CREDENTIALS is exported for firebase_admin
if settings.google_application_credentials:
    os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = settings.google_application_credentials
