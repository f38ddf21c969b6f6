"""Cancellation contexts threaded through a send.

A :class:`Context` combines an optional deadline with a cancellation flag.
The HTTP pipeline checks it before dispatching a request, bounds the request
timeout by :meth:`Context.remaining` and checks it again while draining the
response body.  Contexts are safe to cancel from another thread.
"""

from __future__ import annotations

import threading
import time
from typing import Optional


class ContextError(Exception):
    """Base class for errors reported by a finished context."""


class Cancelled(ContextError):
    def __init__(self) -> None:
        super().__init__("context canceled")


class DeadlineExceeded(ContextError):
    def __init__(self) -> None:
        super().__init__("context deadline exceeded")


class Context:
    def __init__(
        self, deadline: Optional[float] = None, parent: Optional["Context"] = None
    ) -> None:
        if parent is not None and parent.deadline is not None:
            if deadline is None or parent.deadline < deadline:
                deadline = parent.deadline
        self.deadline = deadline
        self._parent = parent
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    def err(self) -> Optional[ContextError]:
        """Return why the context is done, or ``None`` while it is live."""
        if self._cancelled.is_set():
            return Cancelled()
        if self._parent is not None:
            parent_err = self._parent.err()
            if parent_err is not None:
                return parent_err
        if self.deadline is not None and time.monotonic() >= self.deadline:
            return DeadlineExceeded()
        return None

    def done(self) -> bool:
        return self.err() is not None

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, ``None`` when there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())


def background() -> Context:
    """Return a context that never expires unless cancelled."""
    return Context()


def with_timeout(seconds: float, parent: Optional[Context] = None) -> Context:
    return Context(deadline=time.monotonic() + seconds, parent=parent)


__all__ = [
    "Cancelled",
    "Context",
    "ContextError",
    "DeadlineExceeded",
    "background",
    "with_timeout",
]
