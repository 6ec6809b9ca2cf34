"""SHASIGN computation for the hosted payment page and DirectLink API."""

from __future__ import annotations

import hashlib
import hmac
from typing import Mapping, NewType, Union

from ..domain.errors import ConfigurationError

Scalar = Union[str, int, float]
SignedParameterSet = Mapping[str, Scalar]
Signature = NewType("Signature", str)

SIGNATURE_FIELD = "SHASIGN"


def _flatten(value: Scalar) -> str:
    """Render a value the way the browser checkout stringifies it.

    Integral floats drop their ``.0``. Floats whose Python text form differs
    from the JavaScript one (exponent notation, inf, nan) are rejected; such
    values must be sent as strings.
    """
    if isinstance(value, bool) or value is None:
        raise TypeError(f"Cannot sign non-scalar value {value!r}")
    if isinstance(value, str):
        return value
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e16:
            return str(int(value))
        text = repr(value)
        if "e" in text or "n" in text:
            raise TypeError(f"Cannot sign float {text}; send it as a string")
        return text
    return str(value)


def canonical_string(params: SignedParameterSet, secret_phrase: str) -> str:
    """Return the string that gets hashed for ``params``.

    Keys are sorted by code point (case-sensitive, not locale-aware) and each
    entry is rendered as ``KEY=value<phrase>`` with no separator between them.
    """
    return "".join(
        f"{key}={_flatten(params[key])}{secret_phrase}" for key in sorted(params)
    )


def sign(params: SignedParameterSet, secret_phrase: str) -> Signature:
    """Compute the uppercase hex SHA-256 SHASIGN of ``params``."""
    if not secret_phrase:
        raise ConfigurationError("SHA phrase is empty; refusing to sign")
    payload = canonical_string(params, secret_phrase).encode("utf-8")
    return Signature(hashlib.sha256(payload).hexdigest().upper())


def verify(
    params: SignedParameterSet,
    signature: str,
    secret_phrase: str,
    *,
    signature_field: str = SIGNATURE_FIELD,
) -> bool:
    """Check an inbound signature against the parameters it came with.

    The signature field itself (matched case-insensitively) and empty values
    are excluded, since the gateway never signs them.
    """
    unsigned = {
        key: value
        for key, value in params.items()
        if key.upper() != signature_field.upper() and value != ""
    }
    expected = sign(unsigned, secret_phrase)
    return hmac.compare_digest(expected, signature.strip().upper())


def mask_secrets(params: Mapping[str, Scalar]) -> dict[str, Scalar]:
    """Copy of ``params`` safe for logging."""
    masked = dict(params)
    if "PSWD" in masked:
        masked["PSWD"] = "[REDACTED]"
    return masked
