# billing_gateway/core/settings.py
from __future__ import annotations
from typing import Any, Dict, List, Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    # --- App ---
    APP_NAME: str = "Billing Gateway"
    ENV: Literal["development", "staging", "production", "test"] = "development"
    LOG_LEVEL: str = "INFO"

    # --- HTTP / CORS ---
    CORS_ORIGINS: str = "*"  # comma-separated list or "*"
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: str = "*"   # comma-separated or "*"
    CORS_ALLOW_HEADERS: str = "*"   # comma-separated or "*"

    # --- Auth (admin routes) ---
    JWT_SECRET: str = "supersecretjwt"
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: Optional[str] = None
    JWT_AUDIENCE: Optional[str] = None
    DEV_JWT_SUBJECT: str = "dev-user"

    # --- Providers ---
    ENABLED_PROVIDERS: str = "stripe,fake"   # comma-separated slugs
    PROVIDER_ENTRY_POINT_GROUP: str = "billing_gateway.providers"
    PROVIDER_TIMEOUT_SECONDS: float = 30.0
    WEBHOOK_TOLERANCE_SECONDS: int = 300     # 0 disables replay protection
    WEBHOOK_DEDUPE_CAPACITY: int = 10_000

    # --- Stripe ---
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_MAX_NETWORK_RETRIES: int = 2

    # --- Fake ---
    FAKE_API_KEY: str = "fake_key"
    FAKE_WEBHOOK_SECRET: str = "whsec_fake"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @property
    def DEV_MODE(self) -> bool:
        return self.ENV == "development"

    @property
    def enabled_providers(self) -> List[str]:
        return [s for s in self.ENABLED_PROVIDERS.split(",") if s]

    @field_validator("CORS_ORIGINS", "CORS_ALLOW_METHODS", "CORS_ALLOW_HEADERS", "ENABLED_PROVIDERS")
    @classmethod
    def _norm_csv(cls, v: str) -> str:
        return ",".join([piece.strip() for piece in v.split(",")]) if v else v

    @field_validator("WEBHOOK_TOLERANCE_SECONDS")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("WEBHOOK_TOLERANCE_SECONDS must be >= 0")
        return v

    def webhook_secret_for(self, slug: str) -> Optional[str]:
        secret = {
            "stripe": self.STRIPE_WEBHOOK_SECRET,
            "fake": self.FAKE_WEBHOOK_SECRET,
        }.get(slug)
        return secret or None

    def provider_config(self, slug: str) -> Dict[str, Any]:
        """Runtime config for the single-tenant deployment of `slug`."""
        if slug == "stripe":
            return {"apiKey": self.STRIPE_SECRET_KEY} if self.STRIPE_SECRET_KEY else {}
        if slug == "fake":
            return {"apiKey": self.FAKE_API_KEY}
        return {}

    def validate_providers(self) -> None:
        if "stripe" in self.enabled_providers and self.ENV == "production":
            if not self.STRIPE_SECRET_KEY or not self.STRIPE_WEBHOOK_SECRET:
                raise ValueError("STRIPE_SECRET_KEY and STRIPE_WEBHOOK_SECRET are required when stripe is enabled in production")


settings = Settings()
# Post init checks that are cross-field aware
settings.validate_providers()
