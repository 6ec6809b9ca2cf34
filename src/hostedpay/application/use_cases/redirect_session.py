"""Builds signed redirects to the gateway's hosted tokenization page."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode

from ...crypto.shasign import SIGNATURE_FIELD, sign
from ...domain.entities import RedirectSession
from ...domain.errors import InvalidConfig
from ...infrastructure.secrets import SecretProvider
from ..dtos import RedirectConfigDTO

logger = logging.getLogger(__name__)


def build_hosted_page_params(config: RedirectConfigDTO) -> dict[str, str]:
    """Parameter set in the hosted page's own field names."""
    params = {
        "ACCOUNT.PSPID": config.merchant_id or "",
        "ALIAS.ORDERID": config.order_id or "",
        "PARAMETERS.ACCEPTURL": config.accept_url or "",
        "PARAMETERS.EXCEPTIONURL": config.exception_url or "",
        "CARD.PAYMENTMETHOD": config.card_options.payment_method,
        "LAYOUT.TEMPLATENAME": config.layout.template_name,
        "LAYOUT.LANGUAGE": config.layout.language,
        "ALIAS.STOREPERMANENTLY": "Y" if config.store_permanently else "N",
    }
    if config.card_options.brand:
        params["CARD.BRAND"] = config.card_options.brand
    return params


class RedirectSessionBuilder:
    """Service for composing hosted-page URLs."""

    def __init__(
        self,
        secret_provider: SecretProvider,
        hosted_page_url: str,
        *,
        default_merchant_id: Optional[str] = None,
    ):
        self.secret_provider = secret_provider
        self.hosted_page_url = hosted_page_url
        self.default_merchant_id = default_merchant_id

    def _validated(self, config: RedirectConfigDTO) -> RedirectConfigDTO:
        if not config.merchant_id and self.default_merchant_id:
            config = config.model_copy(update={"merchant_id": self.default_merchant_id})
        missing = [
            name
            for name, value in (
                ("merchantId", config.merchant_id),
                ("orderId", config.order_id),
                ("acceptUrl", config.accept_url),
                ("exceptionUrl", config.exception_url),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise InvalidConfig(f"Missing required field(s): {', '.join(missing)}")
        return config

    def build_session(self, config: RedirectConfigDTO) -> RedirectSession:
        config = self._validated(config)
        params = build_hosted_page_params(config)
        # Raises SignatureUnavailable until secrets have loaded.
        signature = sign(params, self.secret_provider.sha_phrase)
        query = urlencode({**params, SIGNATURE_FIELD: signature})
        logger.info("Built hosted page redirect for order %s", config.order_id)
        return RedirectSession(
            merchant_id=config.merchant_id,
            order_id=config.order_id,
            accept_url=config.accept_url,
            exception_url=config.exception_url,
            layout_options=config.layout,
            signature=signature,
            url=f"{self.hosted_page_url}?{query}",
        )

    def build_redirect_url(self, config: RedirectConfigDTO) -> str:
        return self.build_session(config).url
