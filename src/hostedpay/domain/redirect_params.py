"""Query parameters the gateway appends to its accept/exception redirects."""

from __future__ import annotations

from typing import Mapping, Optional
from urllib.parse import parse_qsl, urlsplit

ALIAS_ID_PARAM = "Alias.AliasId"
ORDER_ID_PARAM = "Alias.OrderId"
SIGNATURE_PARAM = "SHASign"


def redirect_query_params(href: str) -> dict[str, str]:
    """Query parameters of a gateway redirect, last value wins."""
    return dict(parse_qsl(urlsplit(href).query, keep_blank_values=True))


def lookup_param(params: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive lookup; empty values count as missing."""
    lowered = name.lower()
    for key, value in params.items():
        if key.lower() == lowered and value:
            return value
    return None
