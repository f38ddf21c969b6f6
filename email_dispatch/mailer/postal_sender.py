"""Postal-based email sender implementation.

Sends JSON to the ``/api/v1/send/message`` endpoint of a self-hosted Postal
server, authenticated by the ``X-Server-API-Key`` header.

See: https://apiv1.postalserver.io/controllers/send/message.html
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field

from email_dispatch.config import Config
from email_dispatch.errors import API, MailError
from email_dispatch.mailer import Mailer
from email_dispatch.models import Response, Transmission, validate_transmission
from email_dispatch.transport import (
    Client,
    Context,
    JSONData,
    Meta,
    Responder,
    background,
    ensure_body,
    is_2xx,
    new_http_request,
)

ERROR_MESSAGE = "error sending message to Postal API"
SUCCESS_MESSAGE = "Successfully sent Postal email"


class PostalAttachment(BaseModel):
    name: str
    content_type: str
    data: str


class PostalMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    to: List[str]
    cc: List[str] = []
    bcc: List[str] = []
    from_address: str = Field(alias="from")
    sender: str
    subject: str
    html_body: str
    plain_body: str = ""
    attachments: Optional[List[PostalAttachment]] = None
    headers: Optional[Dict[str, str]] = None


class PostalReply(BaseModel):
    """Body returned by Postal.

    ``status`` is either "success" or "error"; ``data`` holds the message
    identifiers on success and ``code``/``message`` on failure.
    """

    status: str = ""
    time: float = 0
    flags: Dict[str, Any] = {}
    data: Dict[str, Any] = {}


class PostalResponder(Responder):
    def __init__(self) -> None:
        self.reply = PostalReply()

    def unmarshal(self, body: bytes) -> None:
        if body:
            self.reply = PostalReply.model_validate_json(body)

    def check_error(self, response: requests.Response, body: bytes) -> None:
        failed = not is_2xx(response.status_code) or self.reply.status != "success"
        ensure_body(response, body, failed)
        if not failed:
            return
        message = ERROR_MESSAGE
        if "code" in self.reply.data:
            message = f"{message} - code: {self.reply.data['code']}"
        if "message" in self.reply.data:
            message = f"{message}, message: {self.reply.data['message']}"
        raise MailError(kind=API, message=message, operation="Postal.CheckError")

    def meta(self) -> Meta:
        message_id = self.reply.data.get("message_id")
        return Meta(
            message=SUCCESS_MESSAGE,
            id="" if message_id is None else str(message_id),
        )


class PostalSender(Mailer):
    """Postal implementation of the ``Mailer`` interface."""

    def __init__(self, cfg: Config) -> None:
        cfg.validate()
        self._cfg = cfg
        self._client = Client(cfg.http_client, timeout=cfg.timeout)

    def _message(self, tx: Transmission) -> PostalMessage:
        attachments = [
            PostalAttachment(
                name=a.filename, content_type=a.media_type(), data=a.base64()
            )
            for a in tx.attachments
        ]
        return PostalMessage(
            to=tx.recipients,
            cc=tx.cc,
            bcc=tx.bcc,
            from_address=self._cfg.from_address,
            sender=self._cfg.from_name,
            subject=tx.subject,
            html_body=tx.html,
            plain_body=tx.plain_text,
            attachments=attachments or None,
            headers=dict(tx.headers) or None,
        )

    def send(
        self, transmission: Optional[Transmission], ctx: Optional[Context] = None
    ) -> Response:
        """Send an email via the Postal API."""
        tx = validate_transmission(transmission)

        payload = JSONData(self._message(tx))
        req = new_http_request(
            "POST", f"{self._cfg.url.rstrip('/')}/api/v1/send/message"
        )
        req.add_header("X-Server-API-Key", self._cfg.api_key)

        return self._client.do(ctx or background(), req, payload, PostalResponder())


__all__ = ["PostalSender", "PostalResponder"]
