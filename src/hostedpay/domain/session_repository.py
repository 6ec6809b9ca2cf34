"""Payment session snapshot repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .entities import PaymentSessionSnapshot


class PaymentSessionRepository(ABC):
    """Save/restore contract for the state that survives a redirect round trip."""

    @abstractmethod
    async def save(self, session_id: str, snapshot: PaymentSessionSnapshot) -> None:
        """Persist the snapshot, replacing any previous one."""
        pass

    @abstractmethod
    async def get(self, session_id: str) -> Optional[PaymentSessionSnapshot]:
        pass

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        pass
