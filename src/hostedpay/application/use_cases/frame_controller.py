"""Drives one embedded hosted-page payment attempt.

The hosted page runs inside a frame and talks to its parent with a small
postMessage protocol (see :mod:`hostedpay.domain.frame_messages`). This
controller owns the state for exactly one attempt:

    IDLE -> AWAITING_READY -> FORM_READY -> SUBMITTING -> SUCCEEDED | FAILED

``size`` messages only resize the frame. ``navigate`` messages are terminal
only when they point at the accept or exception URL. A remount after a
completed payment restores SUCCEEDED from the persisted snapshot instead of
loading the hosted page again.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

from ...domain.entities import FrameState, PaymentOutcome, PaymentSessionSnapshot
from ...domain.errors import InvalidConfig, InvalidTransition, SubmitFailed
from ...domain.frame_messages import (
    FrameMessage,
    NavigateMessage,
    ReadyMessage,
    SizeMessage,
    SubmitMessage,
    parse_frame_message,
    to_wire,
)
from ...domain.redirect_params import (
    ALIAS_ID_PARAM,
    ORDER_ID_PARAM,
    SIGNATURE_PARAM,
    lookup_param,
    redirect_query_params,
)
from ...domain.session_repository import PaymentSessionRepository

logger = logging.getLogger(__name__)

PostToFrame = Callable[[dict[str, Any]], Awaitable[None]]
ErrorCallback = Callable[[str], None]


class EmbeddedFrameController:
    """State machine for the hosted page embedded in the checkout."""

    def __init__(
        self,
        session_id: str,
        redirect_url: str,
        accept_url: str,
        exception_url: str,
        repository: PaymentSessionRepository,
        post_to_frame: PostToFrame,
        *,
        on_error: Optional[ErrorCallback] = None,
        allowed_origins: Sequence[str] = (),
        payment_method: str = "card",
    ):
        if not accept_url or not exception_url:
            raise InvalidConfig("Accept and exception URLs are required")
        if accept_url == exception_url:
            raise InvalidConfig("Accept and exception URLs must differ")
        self.session_id = session_id
        self.redirect_url = redirect_url
        self.accept_url = accept_url
        self.exception_url = exception_url
        self.repository = repository
        self.post_to_frame = post_to_frame
        self.on_error = on_error
        self.allowed_origins = tuple(o.rstrip("/") for o in allowed_origins)
        self.payment_method = payment_method

        self.state = FrameState.IDLE
        self.frame_src: Optional[str] = None
        self.frame_height: Optional[float] = None
        self.alias_id: Optional[str] = None
        self.order_id: Optional[str] = None
        self.sha_sign: Optional[str] = None
        self.error_code: Optional[str] = None

    @property
    def outcome(self) -> PaymentOutcome:
        return self.state.outcome

    async def mount(self) -> FrameState:
        """Restore a completed session or start loading the hosted page."""
        snapshot = await self.repository.get(self.session_id)
        if snapshot is not None and snapshot.payment_done:
            self.alias_id = snapshot.alias_id
            self.order_id = snapshot.order_id
            self.sha_sign = snapshot.sha_sign
            self.state = FrameState.SUCCEEDED
            logger.info("Restored completed payment for session %s", self.session_id)
            return self.state

        if self.state is FrameState.IDLE:
            self.frame_src = self.redirect_url
            self.state = FrameState.AWAITING_READY
        return self.state

    def _origin_allowed(self, origin: Optional[str]) -> bool:
        if not self.allowed_origins:
            return True
        return origin is not None and origin.rstrip("/") in self.allowed_origins

    async def handle_message(self, data: Any, origin: Optional[str] = None) -> bool:
        """Feed one window message into the state machine.

        Returns whether the message was part of the protocol and acted upon.
        """
        if not self._origin_allowed(origin):
            logger.debug("Ignoring frame message from origin %s", origin)
            return False
        message = parse_frame_message(data)
        if message is None or self.state.is_terminal:
            return False
        return await self._dispatch(message)

    async def _dispatch(self, message: FrameMessage) -> bool:
        if isinstance(message, SizeMessage):
            self.frame_height = message.height
            return True
        if isinstance(message, ReadyMessage):
            if self.state is not FrameState.AWAITING_READY:
                return False
            self.state = FrameState.FORM_READY
            return True
        if isinstance(message, NavigateMessage):
            if self.state is not FrameState.SUBMITTING:
                return False
            return await self._navigate(message.href)
        # The frame never sends submit to its parent.
        return False

    def _match_redirect(self, href: str) -> Optional[str]:
        # The longer URL wins when one is a prefix of the other.
        candidates = sorted(
            (self.accept_url, self.exception_url), key=len, reverse=True
        )
        for url in candidates:
            if href.startswith(url):
                return url
        return None

    async def _navigate(self, href: str) -> bool:
        target = self._match_redirect(href)
        if target is None:
            return False

        if target == self.accept_url:
            params = redirect_query_params(href)
            self.alias_id = lookup_param(params, ALIAS_ID_PARAM)
            self.order_id = lookup_param(params, ORDER_ID_PARAM)
            self.sha_sign = lookup_param(params, SIGNATURE_PARAM)
            if not self.alias_id or not self.order_id:
                logger.warning(
                    "Accept redirect for session %s carried no alias/order id",
                    self.session_id,
                )
            await self.repository.save(
                self.session_id,
                PaymentSessionSnapshot(
                    payment_done=True,
                    payment_method=self.payment_method,
                    alias_id=self.alias_id,
                    order_id=self.order_id,
                    sha_sign=self.sha_sign,
                ),
            )
            self.state = FrameState.SUCCEEDED
            return True

        self.state = FrameState.FAILED
        self.error_code = SubmitFailed.code
        logger.info("Hosted page reported failure for session %s", self.session_id)
        if self.on_error is not None:
            self.on_error(SubmitFailed.code)
        return True

    async def submit(self) -> None:
        """Ask the hosted page to submit its card form."""
        if self.state is not FrameState.FORM_READY:
            raise InvalidTransition(f"Cannot submit while {self.state.value}")
        await self.post_to_frame(to_wire(SubmitMessage()))
        self.state = FrameState.SUBMITTING

    async def retry(self) -> None:
        """User-initiated retry after a reported failure."""
        if self.state is not FrameState.FAILED:
            raise InvalidTransition(f"Cannot retry while {self.state.value}")
        self.error_code = None
        self.state = FrameState.FORM_READY

    async def reset(self) -> None:
        """Abandon the attempt, e.g. when the payment method is changed."""
        await self.repository.delete(self.session_id)
        self.state = FrameState.IDLE
        self.frame_src = None
        self.frame_height = None
        self.alias_id = self.order_id = self.sha_sign = None
        self.error_code = None
