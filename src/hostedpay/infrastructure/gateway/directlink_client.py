"""Client for the gateway's server-to-server DirectLink API."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ElementTree
from typing import Mapping

import httpx

from ...domain.entities import DirectLinkResult
from ...domain.errors import ProviderError
from ..http.http_client import AsyncHttpClient

logger = logging.getLogger(__name__)


def parse_directlink_response(body: str) -> DirectLinkResult:
    """Extract STATUS/NCERROR/HTML_ANSWER from an ``ncresponse`` body.

    DirectLink answers with a single ``<ncresponse .../>`` element whose
    attributes carry the result; anything else is kept raw only.
    """
    result = DirectLinkResult(raw=body)
    text = body.strip()
    if not text.startswith("<"):
        return result
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError:
        logger.warning("DirectLink returned unparseable XML")
        return result
    if root.tag.lower() != "ncresponse":
        return result
    return DirectLinkResult(
        raw=body,
        status=root.get("STATUS"),
        nc_error=root.get("NCERROR"),
        html_answer=root.get("HTML_ANSWER") or None,
    )


class DirectLinkClient:
    """Posts signed, form-encoded orders to ``orderdirect.asp``."""

    def __init__(self, http_client: AsyncHttpClient, endpoint_url: str):
        self.http_client = http_client
        self.endpoint_url = endpoint_url

    async def submit_order(self, params: Mapping[str, str]) -> DirectLinkResult:
        try:
            response = await self.http_client.post_form(self.endpoint_url, params)
        except httpx.TimeoutException as e:
            raise ProviderError(
                "Payment provider did not respond in time",
                detail=f"Timeout calling DirectLink: {e!r}",
                timed_out=True,
            ) from e
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                "Payment provider rejected the request",
                detail=(
                    f"DirectLink returned {e.response.status_code}: "
                    f"{e.response.text[:500]}"
                ),
            ) from e
        except httpx.RequestError as e:
            raise ProviderError(
                "Could not reach payment provider",
                detail=f"DirectLink request error: {e!r}",
            ) from e
        return parse_directlink_response(response.text)
