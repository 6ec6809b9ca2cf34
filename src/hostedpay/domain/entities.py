"""Payment domain entities: redirect sessions, outcomes and session snapshots."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentOutcome(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FrameState(str, Enum):
    """States of one embedded hosted-page payment attempt."""

    IDLE = "idle"
    AWAITING_READY = "awaiting_ready"
    FORM_READY = "form_ready"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (FrameState.SUCCEEDED, FrameState.FAILED)

    @property
    def outcome(self) -> PaymentOutcome:
        if self is FrameState.SUCCEEDED:
            return PaymentOutcome.SUCCEEDED
        if self is FrameState.FAILED:
            return PaymentOutcome.FAILED
        return PaymentOutcome.PENDING


class CardOptions(BaseModel):
    """Card payment method filter for the hosted page."""

    payment_method: str = "CreditCard"
    brand: Optional[str] = None


class LayoutOptions(BaseModel):
    template_name: str = "master.htm"
    language: str = "en_GB"


class RedirectSession(BaseModel):
    """A signed hosted-page redirect for one order.

    ``alias_id`` stays empty until the gateway redirects back to the accept URL.
    """

    merchant_id: str
    order_id: str
    accept_url: str
    exception_url: str
    layout_options: LayoutOptions = Field(default_factory=LayoutOptions)
    signature: str
    url: str
    alias_id: Optional[str] = None

    def bind_alias(self, alias_id: str, order_id: str) -> None:
        """Attach the gateway-assigned alias once the redirect comes back."""
        self.alias_id = alias_id
        self.order_id = order_id


class PaymentSessionSnapshot(BaseModel):
    """Serializable state that survives a page reload during the redirect round trip."""

    model_config = ConfigDict(populate_by_name=True)

    payment_done: bool = Field(False, alias="paymentDone")
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    alias_id: Optional[str] = Field(None, alias="aliasId")
    order_id: Optional[str] = Field(None, alias="orderId")
    sha_sign: Optional[str] = Field(None, alias="shaSign")


class DirectLinkResult(BaseModel):
    """Parsed view of a DirectLink ``orderdirect`` response."""

    raw: str
    status: Optional[str] = None
    nc_error: Optional[str] = None
    html_answer: Optional[str] = None

    @property
    def requires_challenge(self) -> bool:
        # 46 = waiting for 3-D Secure identification
        return self.status == "46" and bool(self.html_answer)

    @property
    def already_processed(self) -> bool:
        return self.nc_error == "50001113"
