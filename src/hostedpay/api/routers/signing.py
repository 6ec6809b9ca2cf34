"""SHASIGN routes."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from prometheus_client import Counter

from ...application.dtos import ShaSignResponseDTO
from ...crypto.shasign import sign
from ...domain.errors import ConfigurationError, SignatureUnavailable
from ...infrastructure.secrets import SecretProvider
from ..dependencies import get_secret_provider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["signing"])

shasign_requests_total = Counter(
    "shasign_requests_total",
    "Total SHASIGN requests processed",
    ["status"],
)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


@router.post("/get-shasign", response_model=ShaSignResponseDTO)
async def get_shasign(
    params: dict[str, Any] = Body(...),
    secret_provider: SecretProvider = Depends(get_secret_provider),
) -> ShaSignResponseDTO:
    """Sign a flat parameter map with the gateway SHA phrase."""
    bad_keys = sorted(k for k, v in params.items() if not _is_scalar(v))
    if bad_keys:
        shasign_requests_total.labels(status="client_error").inc()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Parameters must be flat scalars: {', '.join(bad_keys)}",
        )
    try:
        shasign = sign(params, secret_provider.sha_phrase)
    except TypeError as e:
        shasign_requests_total.labels(status="client_error").inc()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (SignatureUnavailable, ConfigurationError) as e:
        shasign_requests_total.labels(status="server_error").inc()
        logger.error("Cannot sign parameters: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="SHA phrase not loaded",
        )
    shasign_requests_total.labels(status="success").inc()
    return ShaSignResponseDTO(shasign=shasign)
