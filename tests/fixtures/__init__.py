"""Test fixtures for in-memory implementations."""

from .in_memory_storage import InMemoryKeyValueStore
from .in_memory_secrets import DEFAULT_TEST_SECRETS, InMemorySecretStore

__all__ = [
    "DEFAULT_TEST_SECRETS",
    "InMemoryKeyValueStore",
    "InMemorySecretStore",
]
