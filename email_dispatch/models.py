"""Message and result types handed to and returned by every driver.

A :class:`Transmission` is the caller's logical email.  It is validated by
each driver before anything is encoded or sent.  A :class:`Response` is the
uniform result of a successful send, whichever provider carried it.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from email_dispatch.errors import INVALID, MailError
from email_dispatch.mime import detect


@dataclass(frozen=True)
class Attachment:
    """A file attached to a transmission; neither field is interpreted."""

    filename: str
    data: bytes

    def media_type(self) -> str:
        return detect(self.data)

    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


@dataclass
class Transmission:
    """A single email to be sent through a driver.

    ``recipients``, ``subject`` and ``html`` are required; everything else may
    be left empty.
    """

    recipients: List[str] = field(default_factory=list)
    subject: str = ""
    html: str = ""
    plain_text: str = ""
    cc: List[str] = field(default_factory=list)
    bcc: List[str] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)

    def has_cc(self) -> bool:
        return bool(self.cc)

    def has_bcc(self) -> bool:
        return bool(self.bcc)

    def has_attachments(self) -> bool:
        return bool(self.attachments)

    def validate(self) -> None:
        """Raise an ``invalid`` :class:`MailError` for the first missing field."""
        if not self.recipients:
            raise _invalid("transmission requires recipients")
        if not self.subject:
            raise _invalid("transmission requires a subject")
        if not self.html:
            raise _invalid("transmission requires html content")


def validate_transmission(tx: Optional[Transmission]) -> Transmission:
    """Validate ``tx``, rejecting a missing transmission outright."""
    if tx is None:
        raise _invalid("can't validate a nil transmission")
    tx.validate()
    return tx


def _invalid(message: str) -> MailError:
    return MailError(kind=INVALID, message=message, operation="Transmission.Validate")


@dataclass
class Response:
    """Outcome of a send.

    ``status_code`` and ``body`` come straight from the provider; ``id`` and
    ``message`` are extracted by the driver's responder.
    """

    status_code: int = 0
    body: bytes = b""
    headers: Dict[str, List[str]] = field(default_factory=dict)
    id: str = ""
    message: str = ""


__all__ = ["Attachment", "Response", "Transmission", "validate_transmission"]
