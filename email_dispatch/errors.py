"""Error taxonomy shared by every driver.

All failures surface as :class:`MailError`.  Each error is tagged with a
``kind`` (one of :data:`CONFLICT`, :data:`INTERNAL`, :data:`INVALID` or
:data:`API`), a human readable ``message``, the ``operation`` that raised it
and, optionally, the ``cause`` it wraps.  Errors raised by the HTTP pipeline
after the round-trip completed also carry the partial ``response`` so the
provider's diagnostic is never lost.

:func:`kind_of` and :func:`message_of` walk the ``cause`` chain so callers
can classify an error without caring how deep it was wrapped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from email_dispatch.debug import is_debug

if TYPE_CHECKING:
    from email_dispatch.models import Response

# An action cannot be performed.
CONFLICT = "conflict"
# Failure inside the library (encoding, decoding, reading).
INTERNAL = "internal"
# Validation failed or the input could not be used.
INVALID = "invalid"
# The remote service or the transport failed.
API = "api"

# Prefixed to error messages when debugging.
PREFIX = "email-dispatch"
# Returned by message_of when no message could be found.
GLOBAL_ERROR = "An error has occurred."


class MailError(Exception):
    """A tagged library error."""

    def __init__(
        self,
        kind: str = "",
        message: str = "",
        operation: str = "",
        cause: Optional[BaseException] = None,
        response: Optional["Response"] = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.operation = operation
        self.cause = cause
        self.response = response
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        parts = []
        if is_debug():
            parts.append(PREFIX)
            if self.operation:
                parts.append(self.operation)
        if self.message:
            parts.append(self.message)
        if self.cause is not None:
            parts.append(str(self.cause))
        return ": ".join(parts)

    def __repr__(self) -> str:
        return (
            f"MailError(kind={self.kind!r}, message={self.message!r}, "
            f"operation={self.operation!r}, cause={self.cause!r})"
        )


class EmptyBodyError(Exception):
    """A provider answered with a failure status and nothing to diagnose."""

    def __init__(self) -> None:
        super().__init__("error, empty body")


def kind_of(err: Optional[BaseException]) -> str:
    """Return the kind of the outermost tagged error in the chain.

    Untagged exceptions are reported as :data:`INTERNAL`.
    """
    if err is None:
        return ""
    if isinstance(err, MailError):
        if err.kind:
            return err.kind
        if err.cause is not None:
            return kind_of(err.cause)
    return INTERNAL


def message_of(err: Optional[BaseException]) -> str:
    """Return the human message of the outermost error that has one."""
    if err is None:
        return ""
    if isinstance(err, MailError):
        if err.message:
            return err.message
        if err.cause is not None:
            return message_of(err.cause)
    return GLOBAL_ERROR


__all__ = [
    "API",
    "CONFLICT",
    "EmptyBodyError",
    "GLOBAL_ERROR",
    "INTERNAL",
    "INVALID",
    "MailError",
    "PREFIX",
    "kind_of",
    "message_of",
]
