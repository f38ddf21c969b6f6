"""HTTP transport shared by the API drivers.

The pieces are deliberately independent: a :class:`Request` describes what
to send, a :class:`Payload` encodes the body, a :class:`Responder` decodes
the reply and :class:`Client` ties the three together.
"""

from __future__ import annotations

from email_dispatch.transport.client import Client, read_body
from email_dispatch.transport.context import (
    Cancelled,
    Context,
    ContextError,
    DeadlineExceeded,
    background,
    with_timeout,
)
from email_dispatch.transport.payload import FormData, JSONData, Payload
from email_dispatch.transport.request import Request, new_http_request
from email_dispatch.transport.responder import Meta, Responder, ensure_body, is_2xx

__all__ = [
    "Cancelled",
    "Client",
    "Context",
    "ContextError",
    "DeadlineExceeded",
    "FormData",
    "JSONData",
    "Meta",
    "Payload",
    "Request",
    "Responder",
    "background",
    "ensure_body",
    "is_2xx",
    "new_http_request",
    "read_body",
    "with_timeout",
]
