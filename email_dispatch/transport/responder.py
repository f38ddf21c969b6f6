"""Per-driver response decoding.

Every HTTP driver supplies a fresh :class:`Responder` for each send.  The
pipeline calls :meth:`Responder.unmarshal`, then :meth:`Responder.check_error`
and, only when that did not raise, :meth:`Responder.meta`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import requests

from email_dispatch.errors import EmptyBodyError


@dataclass(frozen=True)
class Meta:
    message: str = ""
    id: str = ""


class Responder(ABC):
    @abstractmethod
    def unmarshal(self, body: bytes) -> None:
        """Populate the responder from the raw body.

        An empty body must be accepted; it is classified by ``check_error``.
        """
        raise NotImplementedError

    @abstractmethod
    def check_error(self, response: requests.Response, body: bytes) -> None:
        """Raise the provider's diagnostic when the response is a failure."""
        raise NotImplementedError

    @abstractmethod
    def meta(self) -> Meta:
        raise NotImplementedError


def is_2xx(status_code: int) -> bool:
    return 200 <= status_code < 300


def ensure_body(response: requests.Response, body: bytes, failed: bool) -> None:
    """Raise :class:`EmptyBodyError` for a failed response with nothing in it.

    ``failed`` is the provider's own verdict; a non-2xx status counts as a
    failure regardless.
    """
    if not body and (failed or not is_2xx(response.status_code)):
        raise EmptyBodyError()


__all__ = ["Meta", "Responder", "ensure_body", "is_2xx"]
