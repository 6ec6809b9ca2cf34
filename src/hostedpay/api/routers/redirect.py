"""Hosted payment page redirect routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...application.dtos import RedirectConfigDTO, RedirectUrlResponseDTO
from ...application.use_cases.redirect_session import RedirectSessionBuilder
from ...domain.errors import InvalidConfig, SignatureUnavailable
from ..dependencies import ensure_payments_enabled, get_redirect_session_builder

router = APIRouter(tags=["redirect"], dependencies=[Depends(ensure_payments_enabled)])


@router.post("/redirect-url", response_model=RedirectUrlResponseDTO)
async def create_redirect_url(
    config: RedirectConfigDTO,
    builder: RedirectSessionBuilder = Depends(get_redirect_session_builder),
) -> RedirectUrlResponseDTO:
    """Return a signed hosted payment page URL for the given order."""
    try:
        session = builder.build_session(config)
    except InvalidConfig as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SignatureUnavailable:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payment signing is not ready yet; retry shortly",
        )
    return RedirectUrlResponseDTO(url=session.url, shasign=session.signature)
