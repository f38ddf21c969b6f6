"""Mailgun-based email sender implementation.

This module defines ``MailgunSender``, which sends email via the Mailgun
HTTP API as ``multipart/form-data`` (Mailgun's only accepted encoding once
attachments are involved).  See the Mailgun API documentation for details
on the parameters accepted:

    https://documentation.mailgun.com/en/latest/api-sending.html

Configuration used:

* ``api_key`` – API key for Mailgun, sent as the basic auth password
* ``domain`` – domain configured in Mailgun
* ``url`` – optional base URL; defaults to the official API (use the EU
  host ``https://api.eu.mailgun.net`` for EU domains)
"""

from __future__ import annotations

from typing import Optional

import requests
from pydantic import BaseModel

from email_dispatch.config import Config, invalid_config
from email_dispatch.errors import API, MailError
from email_dispatch.mailer import Mailer
from email_dispatch.models import Response, Transmission, validate_transmission
from email_dispatch.transport import (
    Client,
    Context,
    FormData,
    Meta,
    Responder,
    background,
    ensure_body,
    is_2xx,
    new_http_request,
)

DEFAULT_BASE_URL = "https://api.mailgun.net"

ERROR_MESSAGE = "error sending transmission to Mailgun API"


class MailgunReply(BaseModel):
    """Body returned by the messages endpoint.

    Example: ``{"id": "<20111114174239.25659.5817@samples.mailgun.org>",
    "message": "Queued. Thank you."}``
    """

    id: str = ""
    message: str = ""


class MailgunResponder(Responder):
    def __init__(self) -> None:
        self.reply = MailgunReply()

    def unmarshal(self, body: bytes) -> None:
        if body:
            self.reply = MailgunReply.model_validate_json(body)

    def check_error(self, response: requests.Response, body: bytes) -> None:
        failed = not is_2xx(response.status_code)
        ensure_body(response, body, failed)
        if failed:
            raise MailError(
                kind=API,
                message=f"{ERROR_MESSAGE} - message: {self.reply.message}",
                operation="Mailgun.CheckError",
            )

    def meta(self) -> Meta:
        return Meta(message=self.reply.message, id=self.reply.id)


class MailgunSender(Mailer):
    """Mailgun implementation of the ``Mailer`` interface."""

    def __init__(self, cfg: Config) -> None:
        cfg.validate()
        if not cfg.domain:
            raise invalid_config("driver requires a domain")
        self._cfg = cfg
        self._base_url = (cfg.url or DEFAULT_BASE_URL).rstrip("/")
        self._client = Client(cfg.http_client, timeout=cfg.timeout)

    def _form(self, tx: Transmission) -> FormData:
        form = FormData()
        form.add_value("from", f"{self._cfg.from_name} <{self._cfg.from_address}>")
        form.add_value("subject", tx.subject)
        form.add_value("html", tx.html)
        if tx.plain_text:
            form.add_value("text", tx.plain_text)
        for recipient in tx.recipients:
            form.add_value("to", recipient)
        for address in tx.cc:
            form.add_value("cc", address)
        for address in tx.bcc:
            form.add_value("bcc", address)
        for name, value in tx.headers.items():
            form.add_value(f"h:{name}", value)
        for attachment in tx.attachments:
            form.add_buffer("attachment", attachment.filename, attachment.data)
        return form

    def send(
        self, transmission: Optional[Transmission], ctx: Optional[Context] = None
    ) -> Response:
        """Send an email via the Mailgun API.

        Args:
            transmission: The message to send.
            ctx: Optional cancellation context.

        Raises:
            MailError: If validation, the HTTP request or Mailgun fails.
        """
        tx = validate_transmission(transmission)

        req = new_http_request(
            "POST", f"{self._base_url}/v3/{self._cfg.domain}/messages"
        )
        req.set_basic_auth("api", self._cfg.api_key)

        return self._client.do(
            ctx or background(), req, self._form(tx), MailgunResponder()
        )


__all__ = ["MailgunSender", "MailgunResponder"]
