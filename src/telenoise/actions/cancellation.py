"""Cooperative cancellation tokens.

A ``CancelToken`` is the signal an action's ``generate`` polls to find out
it should stop. Tokens form a tree: cancelling a parent cancels every child
derived from it, and a child may carry its own deadline without affecting
the parent.
"""

from __future__ import annotations

import threading
from typing import Any

from telenoise.errors import CancellationError

__all__ = ["CancelToken", "CANCELLED", "DEADLINE_EXCEEDED"]

CANCELLED = "cancelled"
DEADLINE_EXCEEDED = "deadline exceeded"


class CancelToken:
    """Thread-safe cancellation signal with optional deadline.

    Attributes
    ----------
    reason : str | None
        Why the token was cancelled, None while it is live.
    """

    def __init__(self, parent: CancelToken | None = None) -> None:
        """Initialize token.

        Parameters
        ----------
        parent : CancelToken | None, optional
            Token whose cancellation propagates to this one.
        """
        self.reason: str | None = None
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: list[CancelToken] = []
        self._parent = parent
        self._timer: threading.Timer | None = None

        if parent is not None:
            parent._adopt(self)

    @property
    def cancelled(self) -> bool:
        """Whether the token has been cancelled."""
        return self._event.is_set()

    @property
    def timed_out(self) -> bool:
        """Whether the token was cancelled by its deadline."""
        return self.reason == DEADLINE_EXCEEDED

    def cancel(self, reason: str = CANCELLED) -> None:
        """Cancel this token and all of its children.

        The first reason wins; later calls are no-ops.
        """
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            children = list(self._children)

        for child in children:
            child.cancel(reason)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or *timeout* elapses.

        Returns
        -------
        bool
            True if the token is cancelled.
        """
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        """Raise ``CancellationError`` if the token is cancelled."""
        if self._event.is_set():
            raise CancellationError(self.reason or CANCELLED)

    def child(self, timeout: float | None = None) -> CancelToken:
        """Derive a child token, optionally bounded by *timeout* seconds.

        A timeout of None or 0 means unbounded.
        """
        token = CancelToken(parent=self)
        if timeout:
            token._timer = threading.Timer(timeout, token.cancel, args=(DEADLINE_EXCEEDED,))
            token._timer.daemon = True
            token._timer.start()
        return token

    def release(self) -> None:
        """Stop the deadline timer and detach from the parent."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._parent is not None:
            self._parent._detach(self)
            self._parent = None

    def _adopt(self, child: CancelToken) -> None:
        with self._lock:
            if not self._event.is_set():
                self._children.append(child)
                return
            reason = self.reason or CANCELLED
        child.cancel(reason)

    def _detach(self, child: CancelToken) -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)

    def __enter__(self) -> CancelToken:
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager and release the token."""
        self.release()

    def __repr__(self) -> str:
        state = f"cancelled: {self.reason}" if self.cancelled else "live"
        return f"<CancelToken {state}>"
