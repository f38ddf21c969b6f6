"""Process-wide debug switch.

When enabled, the HTTP pipeline prints an equivalent ``curl`` command for
every outbound request and :class:`email_dispatch.errors.MailError` messages
carry the library prefix and the operation label that raised them.

The flag is seeded from the ``EMAIL_DISPATCH_DEBUG`` environment variable
("1", "true" or "yes" enable it) and is expected to be changed only at
startup through :func:`set_debug`.
"""

from __future__ import annotations

import os

_TRUTHY = {"1", "true", "yes"}

_debug: bool = os.environ.get("EMAIL_DISPATCH_DEBUG", "").lower() in _TRUTHY


def set_debug(enabled: bool) -> None:
    """Turn request tracing and verbose error labels on or off."""
    global _debug
    _debug = bool(enabled)


def is_debug() -> bool:
    return _debug


__all__ = ["set_debug", "is_debug"]
