"""Shared pytest fixtures for checkout payment tests."""

from __future__ import annotations

from typing import AsyncIterator, Iterator

import pytest
import pytest_asyncio

from hostedpay.env import Settings
from hostedpay.infrastructure.http.http_client import AsyncHttpClient
from hostedpay.infrastructure.secrets import SecretProvider
from hostedpay.infrastructure.session_repository_impl import (
    PaymentSessionRepositoryImpl,
)
from tests.fixtures import (
    DEFAULT_TEST_SECRETS,
    InMemoryKeyValueStore,
    InMemorySecretStore,
)
from tests.fixtures.gateway_stub import DIRECTLINK_URL, GatewayStub


@pytest.fixture
def test_settings() -> Settings:
    """Settings pointing at the stub gateway."""
    return Settings(
        environment="test",
        directlink_url=DIRECTLINK_URL,
        hosted_page_url="https://gateway.test/Tokenization/HostedPage",
        merchant_id="epdq1717240",
        default_amount_minor=99,
    )


@pytest.fixture
def secret_store() -> InMemorySecretStore:
    return InMemorySecretStore(DEFAULT_TEST_SECRETS)


@pytest_asyncio.fixture
async def secret_provider(secret_store: InMemorySecretStore) -> SecretProvider:
    """A provider that has already loaded the default test secrets."""
    provider = SecretProvider(secret_store)
    await provider.load()
    return provider


@pytest.fixture
def gateway() -> GatewayStub:
    return GatewayStub()


@pytest_asyncio.fixture
async def http_client(gateway: GatewayStub) -> AsyncIterator[AsyncHttpClient]:
    client = AsyncHttpClient(timeout=5.0, transport=gateway.transport())
    yield client
    await client.aclose()


@pytest.fixture
def kv_store() -> Iterator[InMemoryKeyValueStore]:
    store = InMemoryKeyValueStore()
    yield store
    store.clear()


@pytest.fixture
def session_repository(kv_store: InMemoryKeyValueStore) -> PaymentSessionRepositoryImpl:
    return PaymentSessionRepositoryImpl(kv_store, ttl_seconds=600)
