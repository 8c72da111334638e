import os

from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Pick up the browser-side environment names the dashboard also reads."""

        super().model_post_init(__context)

        if not self.turnkey_organization_id:
            fallback = os.getenv("NEXT_PUBLIC_ORGANIZATION_ID")
            if fallback:
                object.__setattr__(self, "turnkey_organization_id", fallback)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="auto", description="Log renderer: json, console, or auto (console at DEBUG)")

    # Custodial API
    turnkey_base_url: str = Field(
        default="https://api.turnkey.com",
        description="Base URL of the custodial wallet API",
        validation_alias=AliasChoices("turnkey_base_url", "TURNKEY_API_BASE_URL", "NEXT_PUBLIC_BASE_URL"),
    )
    turnkey_organization_id: str = Field(
        default="",
        description="Organization that owns the wallets, keys and policies",
    )
    turnkey_api_public_key: str = Field(default="", description="API key public half (compressed P-256, hex)")
    turnkey_api_private_key: str = Field(default="", description="API key private half (P-256 scalar, hex)")
    request_timeout_seconds: int = Field(default=30, description="Request timeout")
    activity_poll_timeout_seconds: float = Field(default=60.0, description="How long to wait for a submitted activity to settle")
    activity_poll_interval_seconds: float = Field(default=1.0, ge=0, description="Delay between activity status polls")

    # Browser SDK provider
    server_sign_path: str = Field(default="/api/sign", description="Route the browser SDK posts payloads to for stamping")
    auth_iframe_url: str = Field(default="https://auth.turnkey.com", description="Hosted auth iframe used by the browser SDK")

    # OAuth (demo)
    google_client_id: str = Field(
        default="DEMO_CLIENT_ID_123456789",
        description="Google OAuth client id",
        validation_alias=AliasChoices("google_client_id", "NEXT_PUBLIC_GOOGLE_CLIENT_ID"),
    )
    app_url: str = Field(
        default="http://localhost:3000",
        description="Public URL of the dashboard, used to build the OAuth redirect URI",
        validation_alias=AliasChoices("app_url", "NEXT_PUBLIC_APP_URL"),
    )

    # Wallet listing
    unclaimed_preview_limit: int = Field(
        default=5,
        ge=0,
        description="How many unclaimed organization wallets to offer a user who owns none",
    )

    @property
    def has_api_keys(self) -> bool:
        return bool(self.turnkey_api_public_key and self.turnkey_api_private_key)

    @property
    def has_organization(self) -> bool:
        return bool(self.turnkey_organization_id)

    @property
    def is_configured(self) -> bool:
        """Check if we have everything needed to call the custodial API"""
        return self.has_api_keys and self.has_organization and bool(self.turnkey_base_url)


# Global settings instance
settings = Settings()
