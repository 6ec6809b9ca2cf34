"""Gateway secrets loaded from a managed secret store.

Secrets are fetched once at process start and kept in an immutable record.
The only way to change them afterwards is :meth:`SecretProvider.override`,
which exists for tests and local development.
"""

from __future__ import annotations

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Optional

from azure.core.exceptions import ResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential
from azure.keyvault.secrets.aio import SecretClient
from pydantic import BaseModel, ConfigDict

from ..domain.errors import ConfigurationError, SignatureUnavailable

logger = logging.getLogger(__name__)


class GatewaySecrets(BaseModel):
    model_config = ConfigDict(frozen=True)

    sha_phrase: str = ""
    gateway_user: str = ""
    gateway_password: str = ""
    instruction_data_code: Optional[str] = None


class SecretNames(BaseModel):
    """Names of the secrets in the store, keyed by GatewaySecrets field."""

    sha_phrase: str = "epdq-shaphrase"
    gateway_user: str = "epdq-userid"
    gateway_password: str = "epdq-password"
    instruction_data_code: str = "fetchInstructionData-code"


REQUIRED_FIELDS = ("sha_phrase", "gateway_user", "gateway_password")
OPTIONAL_FIELDS = ("instruction_data_code",)


class SecretStore(ABC):
    """Read-only access to named secrets."""

    @abstractmethod
    async def get_secret(self, name: str) -> Optional[str]:
        """Return the secret value, or ``None`` if it does not exist."""
        pass

    async def close(self) -> None:
        pass


class KeyVaultSecretStore(SecretStore):
    """Azure Key Vault backed store using the ambient Azure identity."""

    def __init__(self, vault_uri: str, credential: Any = None) -> None:
        self._credential = credential or DefaultAzureCredential()
        self._client = SecretClient(vault_url=vault_uri, credential=self._credential)

    async def get_secret(self, name: str) -> Optional[str]:
        try:
            secret = await self._client.get_secret(name)
        except ResourceNotFoundError:
            return None
        return secret.value

    async def close(self) -> None:
        await self._client.close()
        await self._credential.close()


class EnvSecretStore(SecretStore):
    """Reads ``epdq-shaphrase`` from ``EPDQ_SHAPHRASE`` and so on."""

    def __init__(self, environ: Optional[dict[str, str]] = None) -> None:
        self._environ = environ if environ is not None else os.environ

    async def get_secret(self, name: str) -> Optional[str]:
        return self._environ.get(name.upper().replace("-", "_"))


class SecretProvider:
    """Loads gateway secrets once and serves them from memory."""

    def __init__(self, store: SecretStore, names: Optional[SecretNames] = None):
        self.store = store
        self.names = names or SecretNames()
        self._secrets: Optional[GatewaySecrets] = None

    @property
    def is_loaded(self) -> bool:
        return self._secrets is not None and bool(self._secrets.sha_phrase)

    @property
    def secrets(self) -> GatewaySecrets:
        if self._secrets is None:
            raise SignatureUnavailable("Gateway secrets have not been loaded yet")
        return self._secrets

    @property
    def sha_phrase(self) -> str:
        phrase = self.secrets.sha_phrase
        if not phrase:
            raise SignatureUnavailable("SHA phrase not loaded")
        return phrase

    async def load(self) -> GatewaySecrets:
        """Fetch every named secret concurrently.

        Raises ``ConfigurationError`` if any required secret is missing or the
        store fails; a payment service must not run on partial credentials.
        """
        fields = REQUIRED_FIELDS + OPTIONAL_FIELDS
        names = [getattr(self.names, field) for field in fields]
        results = await asyncio.gather(
            *(self.store.get_secret(name) for name in names),
            return_exceptions=True,
        )

        values: dict[str, Optional[str]] = {}
        missing: list[str] = []
        for field, name, result in zip(fields, names, results):
            if isinstance(result, BaseException):
                if field in REQUIRED_FIELDS:
                    logger.error("Failed to fetch secret %s: %s", name, result)
                    missing.append(name)
                else:
                    logger.warning("Optional secret %s unavailable: %s", name, result)
                values[field] = None
                continue
            if not result and field in REQUIRED_FIELDS:
                missing.append(name)
            values[field] = result or None

        if missing:
            raise ConfigurationError(
                f"Missing required secrets: {', '.join(sorted(missing))}"
            )

        self._secrets = GatewaySecrets(**values)
        logger.info(
            "Gateway secrets loaded (instruction data code %s)",
            "available" if self._secrets.instruction_data_code else "missing",
        )
        return self._secrets

    def override(self, **partial: Any) -> GatewaySecrets:
        """Replace the cached secrets without touching the store."""
        current = self._secrets.model_dump() if self._secrets else {}
        self._secrets = GatewaySecrets(**{**current, **partial})
        return self._secrets

    async def close(self) -> None:
        await self.store.close()
