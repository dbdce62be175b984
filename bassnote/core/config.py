from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

# .env lives at the project root: bassnote/core/config.py -> bassnote/core -> bassnote -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"


class Settings(BaseSettings):
    # Stripe: secret key (sk_live_... / sk_test_...). Empty means checkout is disabled.
    stripe_secret_key: str = ""
    # Upper bound for every outbound Stripe call, in seconds
    stripe_timeout_seconds: float = 10.0
    database_url: str = "sqlite:///./bassnote.db"
    # Managed PostgreSQL hosts usually need "require"
    database_sslmode: str = ""
    # "database" is durable; "memory" loses every entitlement on restart (demo only)
    entitlement_backend: Literal["database", "memory"] = "database"
    # Public site URL: CORS origin and fallback redirect origin for checkout
    public_base_url: str = Field(
        default="http://localhost:8080",
        validation_alias=AliasChoices("PUBLIC_BASE_URL", "YOUR_LIVE_WEBSITE_URL"),
    )
    # Comma separated; empty -> only public_base_url
    cors_origins: str = ""
    port: int = 3000
    # Per IP, applied to /checkout and /verify-purchase
    rate_limit_per_minute: int = 60
    environment: str = "development"
    # The single catalog item sold through checkout (unit_amount in cents)
    product_name: str = "Bass Note Master Pro"
    product_description: str = "Unlock all lessons and advanced game features."
    product_unit_amount: int = 1999
    product_currency: str = "usd"

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("stripe_secret_key", mode="before")
    @classmethod
    def strip_stripe_key(cls, v: str | None) -> str:
        """Trailing whitespace from copy/paste breaks Stripe auth."""
        return (v or "").strip()

    @field_validator("public_base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str:
        return (v or "").strip().rstrip("/")


settings = Settings()


def is_stripe_configured() -> bool:
    return bool(settings.stripe_secret_key)


def cors_origins_list() -> list[str]:
    raw = (settings.cors_origins or "").strip()
    if raw == "*":
        return ["*"]
    origins = [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]
    return origins or [settings.public_base_url]
