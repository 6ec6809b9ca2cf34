"""FastAPI dependencies for the checkout API."""

from __future__ import annotations

from typing import Optional, Protocol

from fastapi import Depends, HTTPException, Request, status

from ..application.use_cases.confirmation import ConfirmationService
from ..application.use_cases.frame_controller import (
    EmbeddedFrameController,
    ErrorCallback,
    PostToFrame,
)
from ..application.use_cases.redirect_session import RedirectSessionBuilder
from ..domain.session_repository import PaymentSessionRepository
from ..env import Settings
from ..infrastructure.database import DatabaseClient
from ..infrastructure.gateway.directlink_client import DirectLinkClient
from ..infrastructure.http.http_client import AsyncHttpClient
from ..infrastructure.secrets import SecretProvider
from ..infrastructure.session_repository_impl import PaymentSessionRepositoryImpl
from ..infrastructure.storage import KeyValueStore, RedisKeyValueStore


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_database_client(request: Request) -> DatabaseClient:
    return request.app.state.db_client


def get_key_value_store(
    db_client: DatabaseClient = Depends(get_database_client),
) -> KeyValueStore:
    """Get key-value store."""
    return RedisKeyValueStore(db_client)


def get_session_repository(
    store: KeyValueStore = Depends(get_key_value_store),
    settings: Settings = Depends(get_app_settings),
) -> PaymentSessionRepository:
    """Get payment session snapshot repository."""
    return PaymentSessionRepositoryImpl(store, ttl_seconds=settings.session_ttl_seconds)


def get_secret_provider(request: Request) -> SecretProvider:
    return request.app.state.secret_provider


def get_http_client(request: Request) -> AsyncHttpClient:
    return request.app.state.http_client


def ensure_payments_enabled(settings: Settings = Depends(get_app_settings)) -> None:
    """Reject payment operations while the payments-disabled flag is set."""
    if settings.payments_disabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payments are temporarily disabled",
        )


def get_redirect_session_builder(
    settings: Settings = Depends(get_app_settings),
    secret_provider: SecretProvider = Depends(get_secret_provider),
) -> RedirectSessionBuilder:
    """Get redirect session builder."""
    return RedirectSessionBuilder(
        secret_provider,
        settings.hosted_page_url,
        default_merchant_id=settings.merchant_id,
    )


def get_confirmation_service(
    settings: Settings = Depends(get_app_settings),
    secret_provider: SecretProvider = Depends(get_secret_provider),
    http_client: AsyncHttpClient = Depends(get_http_client),
) -> ConfirmationService:
    """Get confirmation service."""
    return ConfirmationService(
        secret_provider,
        DirectLinkClient(http_client, settings.directlink_url),
        merchant_id=settings.merchant_id,
        default_amount_minor=settings.default_amount_minor,
        currency=settings.currency,
        alias_usage=settings.alias_usage,
    )


class FrameControllerFactory(Protocol):
    def __call__(
        self,
        session_id: str,
        redirect_url: str,
        accept_url: str,
        exception_url: str,
        post_to_frame: PostToFrame,
        *,
        on_error: Optional[ErrorCallback] = None,
    ) -> EmbeddedFrameController: ...


def get_frame_controller_factory(
    settings: Settings = Depends(get_app_settings),
    repository: PaymentSessionRepository = Depends(get_session_repository),
) -> FrameControllerFactory:
    """Build frame controllers that only trust the configured gateway origins."""

    def factory(
        session_id: str,
        redirect_url: str,
        accept_url: str,
        exception_url: str,
        post_to_frame: PostToFrame,
        *,
        on_error: Optional[ErrorCallback] = None,
    ) -> EmbeddedFrameController:
        return EmbeddedFrameController(
            session_id,
            redirect_url,
            accept_url,
            exception_url,
            repository,
            post_to_frame,
            on_error=on_error,
            allowed_origins=settings.gateway_origins,
        )

    return factory
