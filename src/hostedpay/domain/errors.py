"""Domain-specific exceptions."""

from __future__ import annotations


class HostedPayError(Exception):
    """Base class for payment integration errors."""


class ConfigurationError(HostedPayError):
    """Raised when a secret or credential required for signing is missing."""


class SignatureUnavailable(HostedPayError):
    """Raised when signing is requested before the SHA phrase has loaded."""


class InvalidConfig(HostedPayError):
    """Raised when a redirect session or frame is missing a required URL or field."""


class MissingParameters(HostedPayError):
    """Raised when a confirmation request lacks the alias or order id."""


class InvalidSignature(HostedPayError):
    """Raised when an inbound SHASIGN does not match the recomputed one."""


class ProviderError(HostedPayError):
    """Raised when the payment gateway call fails.

    ``detail`` carries the full provider/network message for server-side logs;
    ``str(error)`` stays generic so it can be shown to the end user.
    """

    def __init__(
        self, message: str, *, detail: str = "", timed_out: bool = False
    ) -> None:
        super().__init__(message)
        self.detail = detail
        self.timed_out = timed_out


class SubmitFailed(HostedPayError):
    """Raised when the hosted frame reports a terminal failure."""

    code = "SUBMIT_FAILED"


class InvalidTransition(HostedPayError):
    """Raised when a frame controller action is not valid in its current state."""
