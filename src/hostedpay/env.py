from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, field_validator

TRUE_VALUES = ("1", "true", "yes")


def _flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


class Settings(BaseModel):
    """Typed application settings built from environment variables."""

    # Runtime mode: anything other than "production" tolerates missing secrets
    environment: str = "production"

    # Redis for session snapshots
    database_url: str = "redis://localhost:6379/0"
    session_ttl_seconds: int = 3600

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    api_workers: int = 1
    api_cors_origins: list[str] = ["*"]
    api_prefix: str = "/pitch"

    # Key Vault
    key_vault_name: Optional[str] = None
    sha_phrase_secret: str = "epdq-shaphrase"
    gateway_user_secret: str = "epdq-userid"
    gateway_password_secret: str = "epdq-password"
    instruction_data_code_secret: str = "fetchInstructionData-code"

    # Gateway
    merchant_id: str = "epdq1717240"
    hosted_page_url: str = "https://mdepayments.epdq.co.uk/Tokenization/HostedPage"
    directlink_url: str = "https://mdepayments.epdq.co.uk/ncol/prod/orderdirect.asp"
    gateway_origins: list[str] = ["https://mdepayments.epdq.co.uk"]
    gateway_timeout_seconds: float = 10.0
    default_amount_minor: int = 99
    currency: str = "GBP"
    alias_usage: str = "One-off Helix payment"
    verify_inbound_signature: bool = True

    payments_disabled: bool = False

    # Application settings
    app_name: str = "HostedPay"
    app_version: str = "1.0.0"

    @field_validator("hosted_page_url", "directlink_url")
    @classmethod
    def validate_https_url(cls, v: str) -> str:
        if not v.startswith(("https://", "http://")):
            raise ValueError(f"Gateway URL must be absolute: {v!r}")
        return v

    @field_validator("default_amount_minor")
    @classmethod
    def validate_amount(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Default amount must be positive")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def key_vault_uri(self) -> Optional[str]:
        if not self.key_vault_name:
            return None
        return f"https://{self.key_vault_name}.vault.azure.net"


def get_settings() -> Settings:
    """Return typed settings instance sourced from env vars."""
    env = os.environ.get
    defaults = Settings()
    return Settings(
        environment=env("HOSTEDPAY_ENV", defaults.environment),
        database_url=env("HOSTEDPAY_DATABASE_URL", defaults.database_url),
        session_ttl_seconds=int(
            env("HOSTEDPAY_SESSION_TTL_SECONDS", str(defaults.session_ttl_seconds))
        ),
        api_host=env("HOSTEDPAY_API_HOST", defaults.api_host),
        api_port=int(env("HOSTEDPAY_API_PORT", env("PORT", str(defaults.api_port)))),
        api_debug=_flag(env("HOSTEDPAY_API_DEBUG")),
        api_workers=int(env("HOSTEDPAY_API_WORKERS", str(defaults.api_workers))),
        api_cors_origins=env("HOSTEDPAY_API_CORS_ORIGINS", "*").split(","),
        api_prefix=env("HOSTEDPAY_API_PREFIX", defaults.api_prefix),
        key_vault_name=(env("KEY_VAULT_NAME") or "").strip() or None,
        merchant_id=env("HOSTEDPAY_MERCHANT_ID", defaults.merchant_id),
        hosted_page_url=env("HOSTEDPAY_HOSTED_PAGE_URL", defaults.hosted_page_url),
        directlink_url=env("HOSTEDPAY_DIRECTLINK_URL", defaults.directlink_url),
        gateway_origins=env(
            "HOSTEDPAY_GATEWAY_ORIGINS", ",".join(defaults.gateway_origins)
        ).split(","),
        gateway_timeout_seconds=float(
            env(
                "HOSTEDPAY_GATEWAY_TIMEOUT_SECONDS",
                str(defaults.gateway_timeout_seconds),
            )
        ),
        default_amount_minor=int(
            env("HOSTEDPAY_DEFAULT_AMOUNT_MINOR", str(defaults.default_amount_minor))
        ),
        currency=env("HOSTEDPAY_CURRENCY", defaults.currency),
        alias_usage=env("HOSTEDPAY_ALIAS_USAGE", defaults.alias_usage),
        verify_inbound_signature=_flag(
            env("HOSTEDPAY_VERIFY_INBOUND_SIGNATURE"), default=True
        ),
        payments_disabled=_flag(
            env("DISABLE_PAYMENTS") or env("PAYMENT_DISABLED")
        ),
        app_name=env("HOSTEDPAY_APP_NAME", defaults.app_name),
        app_version=env("HOSTEDPAY_APP_VERSION", defaults.app_version),
    )
