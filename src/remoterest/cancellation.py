"""Cancellation token — one terminal outcome per invocation.

The dispatcher creates a token for every remote invocation and passes it
into ``Remotes.invoke``. It reaches exactly one terminal state:

- **settled** — the invocation finished (result or error); later
  cancellation attempts are no-ops.
- **cancelled** — the client went away first; callbacks registered with
  ``on_cancel`` run exactly once.

Handlers that do long work can poll ``token.cancelled`` or call
``token.raise_if_cancelled()``.

Free-threading safety:
    - State transitions happen under a ``threading.Lock``
    - Callbacks run outside the lock
"""

import logging
import threading
from collections.abc import Callable
from enum import Enum

from remoterest.errors import RequestCanceled

logger = logging.getLogger("remoterest.rest")


class TokenState(Enum):
    PENDING = "pending"
    SETTLED = "settled"
    CANCELED = "canceled"


class CancellationToken:
    """Cooperative cancellation for a single invocation."""

    __slots__ = ("_callbacks", "_lock", "_reason", "_state")

    def __init__(self) -> None:
        self._state = TokenState.PENDING
        self._reason: str | None = None
        self._callbacks: list[Callable[[str | None], object]] = []
        self._lock = threading.Lock()

    @property
    def state(self) -> TokenState:
        return self._state

    @property
    def cancelled(self) -> bool:
        return self._state is TokenState.CANCELED

    @property
    def settled(self) -> bool:
        return self._state is TokenState.SETTLED

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> bool:
        """Cancel a pending token.

        Returns True only for the call that moved the token to
        ``CANCELED``; cancelling a settled or already cancelled token
        does nothing.
        """
        with self._lock:
            if self._state is not TokenState.PENDING:
                return False
            self._state = TokenState.CANCELED
            self._reason = reason
            callbacks = list(self._callbacks)
            self._callbacks.clear()

        for callback in callbacks:
            try:
                callback(reason)
            except Exception:
                logger.exception("Cancellation callback failed")
        return True

    def settle(self) -> bool:
        """Mark the invocation finished. Returns False if it was already cancelled."""
        with self._lock:
            if self._state is TokenState.PENDING:
                self._state = TokenState.SETTLED
                self._callbacks.clear()
            return self._state is TokenState.SETTLED

    def on_cancel(self, callback: Callable[[str | None], object]) -> None:
        """Run *callback* on cancellation, or right away if already cancelled."""
        with self._lock:
            if self._state is TokenState.PENDING:
                self._callbacks.append(callback)
                return
            cancelled = self._state is TokenState.CANCELED
        if cancelled:
            callback(self._reason)

    def raise_if_cancelled(self) -> None:
        """Raise ``RequestCanceled`` if the token was cancelled."""
        if self._state is TokenState.CANCELED:
            raise RequestCanceled(self._reason or "Request canceled")

    def __repr__(self) -> str:
        return f"CancellationToken(state={self._state.value!r})"
