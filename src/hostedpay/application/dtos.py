"""Data Transfer Objects for the checkout API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain.entities import CardOptions, LayoutOptions


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RedirectConfigDTO(_CamelModel):
    """Inputs for a hosted-page redirect.

    Required fields are optional here so that a missing one surfaces as
    ``InvalidConfig`` rather than a schema error.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "orderId": "HLX-12345-ABCDE",
                "acceptUrl": "https://example.com/pitch/payment/result?result=accept",
                "exceptionUrl": "https://example.com/pitch/payment/result?result=reject",
            }
        },
    )

    merchant_id: Optional[str] = Field(None, alias="merchantId")
    order_id: Optional[str] = Field(None, alias="orderId")
    accept_url: Optional[str] = Field(None, alias="acceptUrl")
    exception_url: Optional[str] = Field(None, alias="exceptionUrl")
    card_options: CardOptions = Field(default_factory=CardOptions, alias="cardOptions")
    layout: LayoutOptions = Field(default_factory=LayoutOptions)
    store_permanently: bool = Field(True, alias="storePermanently")


class RedirectUrlResponseDTO(BaseModel):
    url: str
    shasign: str


class ShaSignResponseDTO(BaseModel):
    shasign: str


class ConfirmPaymentDTO(_CamelModel):
    """Alias/order pair from the accept redirect."""

    alias_id: Optional[str] = Field(None, alias="aliasId")
    order_id: Optional[str] = Field(None, alias="orderId")
    amount: Optional[int] = Field(None, gt=0, description="Amount in minor units")
    sha_sign: Optional[str] = Field(None, alias="shaSign")
    redirect_params: Optional[dict[str, str]] = Field(None, alias="redirectParams")


class ConfirmPaymentResponseDTO(_CamelModel):
    success: bool
    result: str
    status: Optional[str] = None
    challenge: Optional[str] = None
    already_processed: Optional[bool] = Field(None, alias="alreadyProcessed")
