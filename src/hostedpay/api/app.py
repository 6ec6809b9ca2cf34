"""FastAPI application configuration."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from ..domain.errors import ConfigurationError
from ..env import Settings, get_settings
from ..infrastructure.database import DatabaseClient
from ..infrastructure.http.http_client import AsyncHttpClient
from ..infrastructure.secrets import (
    EnvSecretStore,
    KeyVaultSecretStore,
    SecretNames,
    SecretProvider,
    SecretStore,
)
from .routers import confirmation, redirect, sessions, signing

logger = logging.getLogger(__name__)


def build_secret_provider(settings: Settings) -> SecretProvider:
    """Key Vault when a vault is configured, environment variables otherwise."""
    store: SecretStore
    if settings.key_vault_uri:
        logger.info("Using Key Vault %s for gateway secrets", settings.key_vault_uri)
        store = KeyVaultSecretStore(settings.key_vault_uri)
    else:
        logger.warning("KEY_VAULT_NAME not set; reading gateway secrets from env")
        store = EnvSecretStore()
    names = SecretNames(
        sha_phrase=settings.sha_phrase_secret,
        gateway_user=settings.gateway_user_secret,
        gateway_password=settings.gateway_password_secret,
        instruction_data_code=settings.instruction_data_code_secret,
    )
    return SecretProvider(store, names)


def create_app(
    settings: Optional[Settings] = None,
    *,
    secret_provider: Optional[SecretProvider] = None,
    http_client: Optional[AsyncHttpClient] = None,
    db_client: Optional[DatabaseClient] = None,
) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        provider: SecretProvider = app.state.secret_provider
        try:
            await provider.load()
        except ConfigurationError as e:
            if settings.is_production:
                logger.critical("Failed to load gateway secrets: %s", e)
                raise SystemExit(1) from e
            logger.warning(
                "Starting %s without gateway secrets: %s", settings.environment, e
            )
        try:
            yield
        finally:
            await app.state.http_client.aclose()
            await app.state.db_client.close()
            await provider.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Hosted payment page signing and DirectLink confirmation API",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.secret_provider = secret_provider or build_secret_provider(settings)
    app.state.http_client = http_client or AsyncHttpClient(
        timeout=settings.gateway_timeout_seconds
    )
    app.state.db_client = db_client or DatabaseClient(settings)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(signing.router, prefix=settings.api_prefix)
    app.include_router(redirect.router, prefix=settings.api_prefix)
    app.include_router(confirmation.router, prefix=settings.api_prefix)
    app.include_router(sessions.router, prefix=settings.api_prefix)
    app.mount("/metrics", make_asgi_app())

    @app.get("/health")
    async def health_check() -> dict[str, object]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "secretsLoaded": app.state.secret_provider.is_loaded,
            "paymentsDisabled": settings.payments_disabled,
        }

    @app.head(f"{settings.api_prefix}/")
    async def head_root() -> Response:
        return Response(status_code=200)

    return app
