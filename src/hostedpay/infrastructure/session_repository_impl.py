"""PaymentSessionRepository implementation over a storage abstraction."""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from ..domain.entities import PaymentSessionSnapshot
from ..domain.session_repository import PaymentSessionRepository
from .storage import KeyValueStore

DEFAULT_SESSION_TTL_SECONDS = 60 * 60


class PaymentSessionRepositoryImpl(PaymentSessionRepository):
    """Stores one JSON snapshot per browser session with an expiry."""

    def __init__(
        self, store: KeyValueStore, ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS
    ):
        self.store = store
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(session_id: str) -> str:
        return f"payment_session:{session_id}"

    async def save(self, session_id: str, snapshot: PaymentSessionSnapshot) -> None:
        await self.store.set(
            self._key(session_id),
            snapshot.model_dump_json(by_alias=True),
            ttl_seconds=self.ttl_seconds,
        )

    async def get(self, session_id: str) -> Optional[PaymentSessionSnapshot]:
        data = await self.store.get(self._key(session_id))
        if not data:
            return None
        try:
            return PaymentSessionSnapshot.model_validate_json(data)
        except ValidationError:
            # A corrupt snapshot is treated as no snapshot; the flow restarts.
            await self.store.delete(self._key(session_id))
            return None

    async def delete(self, session_id: str) -> None:
        await self.store.delete(self._key(session_id))
