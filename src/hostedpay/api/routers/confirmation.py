"""DirectLink confirmation routes."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, status
from prometheus_client import Counter, Histogram

from ...application.dtos import ConfirmPaymentDTO, ConfirmPaymentResponseDTO
from ...application.use_cases.confirmation import ConfirmationService
from ...domain.errors import (
    ConfigurationError,
    InvalidSignature,
    MissingParameters,
    ProviderError,
    SignatureUnavailable,
)
from ...env import Settings
from ..dependencies import (
    ensure_payments_enabled,
    get_app_settings,
    get_confirmation_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["confirmation"], dependencies=[Depends(ensure_payments_enabled)]
)

confirm_payment_requests_total = Counter(
    "confirm_payment_requests_total",
    "Total payment confirmation requests processed",
    ["status"],
)

confirm_payment_duration_seconds = Histogram(
    "confirm_payment_duration_seconds",
    "Wall time to confirm a payment with the gateway",
    ["status"],
)


def _observe(label: str, start_time: float) -> None:
    confirm_payment_requests_total.labels(status=label).inc()
    confirm_payment_duration_seconds.labels(status=label).observe(
        time.perf_counter() - start_time
    )


@router.post(
    "/confirm-payment",
    response_model=ConfirmPaymentResponseDTO,
    response_model_exclude_none=True,
    response_model_by_alias=True,
)
async def confirm_payment(
    payload: ConfirmPaymentDTO,
    settings: Settings = Depends(get_app_settings),
    service: ConfirmationService = Depends(get_confirmation_service),
) -> ConfirmPaymentResponseDTO:
    """Capture the payment for an alias returned by the hosted page."""
    start_time = time.perf_counter()
    try:
        if bool(payload.sha_sign) != bool(payload.redirect_params):
            raise InvalidSignature("shaSign and redirectParams must be sent together")
        if settings.verify_inbound_signature and payload.sha_sign:
            service.verify_redirect(
                payload.redirect_params or {},
                payload.sha_sign,
                alias_id=payload.alias_id,
                order_id=payload.order_id,
            )
        result = await service.confirm_payment(
            payload.alias_id, payload.order_id, payload.amount
        )
        _observe("success", start_time)
        return result
    except (MissingParameters, InvalidSignature) as e:
        _observe("client_error", start_time)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ProviderError as e:
        _observe("provider_error", start_time)
        logger.error(
            "DirectLink confirmation failed for order %s: %s",
            payload.order_id,
            e.detail,
        )
        detail: dict[str, object] = {"error": str(e)}
        if e.timed_out:
            detail["supportContact"] = True
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
        )
    except (SignatureUnavailable, ConfigurationError):
        _observe("server_error", start_time)
        logger.exception("Confirmation attempted without gateway secrets")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Payment service is not configured",
        )
