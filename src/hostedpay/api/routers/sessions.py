"""Payment session snapshot routes.

The checkout saves a snapshot when the hosted page redirects to the accept
URL and reads it back after a reload so a finished payment is not restarted.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status

from ...domain.entities import PaymentSessionSnapshot
from ...domain.session_repository import PaymentSessionRepository
from ..dependencies import get_session_repository

router = APIRouter(prefix="/payment-sessions", tags=["sessions"])

SessionId = Annotated[
    str, Path(min_length=8, max_length=128, pattern=r"^[A-Za-z0-9_\-]+$")
]


@router.get(
    "/{session_id}",
    response_model=PaymentSessionSnapshot,
    response_model_by_alias=True,
)
async def get_session(
    session_id: SessionId,
    repository: PaymentSessionRepository = Depends(get_session_repository),
) -> PaymentSessionSnapshot:
    snapshot = await repository.get(session_id)
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Payment session not found"
        )
    return snapshot


@router.put(
    "/{session_id}",
    response_model=PaymentSessionSnapshot,
    response_model_by_alias=True,
)
async def save_session(
    snapshot: PaymentSessionSnapshot,
    session_id: SessionId,
    repository: PaymentSessionRepository = Depends(get_session_repository),
) -> PaymentSessionSnapshot:
    await repository.save(session_id, snapshot)
    return snapshot


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_session(
    session_id: SessionId,
    repository: PaymentSessionRepository = Depends(get_session_repository),
) -> Response:
    await repository.delete(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
