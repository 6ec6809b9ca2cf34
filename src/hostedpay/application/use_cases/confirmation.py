"""Finalizes a tokenized card payment through DirectLink."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from ...crypto.shasign import SIGNATURE_FIELD, mask_secrets, sign, verify
from ...domain.errors import InvalidSignature, MissingParameters
from ...domain.redirect_params import ALIAS_ID_PARAM, ORDER_ID_PARAM, lookup_param
from ...infrastructure.gateway.directlink_client import DirectLinkClient
from ...infrastructure.secrets import SecretProvider
from ..dtos import ConfirmPaymentResponseDTO

logger = logging.getLogger(__name__)

# SAL = sale (authorise and capture in one step)
OPERATION_SALE = "SAL"
# BYPSP = the alias was created by the gateway's hosted page
ALIAS_OPERATION_BY_PSP = "BYPSP"


class ConfirmationService:
    """Service for the server-to-server capture of an aliased card."""

    def __init__(
        self,
        secret_provider: SecretProvider,
        directlink_client: DirectLinkClient,
        *,
        merchant_id: str,
        default_amount_minor: int,
        currency: str = "GBP",
        alias_usage: str = "One-off Helix payment",
    ):
        self.secret_provider = secret_provider
        self.directlink_client = directlink_client
        self.merchant_id = merchant_id
        self.default_amount_minor = default_amount_minor
        self.currency = currency
        self.alias_usage = alias_usage

    def build_order_params(
        self, alias_id: str, order_id: str, amount: Optional[int] = None
    ) -> dict[str, str]:
        secrets = self.secret_provider.secrets
        return {
            "PSPID": self.merchant_id,
            "USERID": secrets.gateway_user,
            "PSWD": secrets.gateway_password,
            "ORDERID": order_id,
            "ALIAS": alias_id,
            "AMOUNT": str(amount if amount is not None else self.default_amount_minor),
            "CURRENCY": self.currency,
            "OPERATION": OPERATION_SALE,
            "ALIASUSAGE": self.alias_usage,
            "ALIASOPERATION": ALIAS_OPERATION_BY_PSP,
        }

    def verify_redirect(
        self,
        params: Mapping[str, str],
        signature: str,
        *,
        alias_id: Optional[str] = None,
        order_id: Optional[str] = None,
    ) -> None:
        """Reject accept-redirect parameters whose SHASign does not match.

        When ``alias_id``/``order_id`` are given they must be the ones the
        signed redirect carries, so a genuine redirect cannot vouch for a
        different alias or order.
        """
        if not verify(params, signature, self.secret_provider.sha_phrase):
            raise InvalidSignature("Redirect signature does not match its parameters")
        for name, expected in ((ALIAS_ID_PARAM, alias_id), (ORDER_ID_PARAM, order_id)):
            if expected is not None and lookup_param(params, name) != expected:
                raise InvalidSignature(f"{name} does not match the signed redirect")

    async def confirm_payment(
        self,
        alias_id: Optional[str],
        order_id: Optional[str],
        amount: Optional[int] = None,
    ) -> ConfirmPaymentResponseDTO:
        if not alias_id or not order_id:
            raise MissingParameters("Missing aliasId or orderId")

        params = self.build_order_params(alias_id, order_id, amount)
        params[SIGNATURE_FIELD] = sign(params, self.secret_provider.sha_phrase)
        logger.debug("DirectLink order request: %s", mask_secrets(params))

        result = await self.directlink_client.submit_order(params)
        logger.info(
            "DirectLink order %s answered STATUS=%s NCERROR=%s",
            order_id,
            result.status,
            result.nc_error,
        )

        response = ConfirmPaymentResponseDTO(
            success=True, result=result.raw, status=result.status
        )
        if result.requires_challenge:
            response.challenge = result.html_answer
        if result.already_processed:
            response.already_processed = True
        return response
