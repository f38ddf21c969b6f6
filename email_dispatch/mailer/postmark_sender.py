"""Postmark-based email sender implementation.

See: https://postmarkapp.com/developer/api/email-api
"""

from __future__ import annotations

from typing import List, Optional

import requests
from pydantic import BaseModel, Field

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

ENDPOINT = "https://api.postmarkapp.com/email"

ERROR_MESSAGE = "error sending transmission to Postmark API"


class PostmarkHeader(BaseModel):
    Name: str
    Value: str


class PostmarkAttachment(BaseModel):
    Name: str
    Content: str
    ContentType: str


class PostmarkMessage(BaseModel):
    From: str
    To: str
    Cc: Optional[str] = None
    Bcc: Optional[str] = None
    Subject: str
    HtmlBody: str
    TextBody: Optional[str] = None
    Headers: Optional[List[PostmarkHeader]] = None
    Attachments: Optional[List[PostmarkAttachment]] = None
    MessageStream: str = "outbound"


class PostmarkReply(BaseModel):
    """Body returned by Postmark; an ``ErrorCode`` of 0 means success."""

    To: str = ""
    SubmittedAt: str = ""
    message_id: str = Field(default="", alias="MessageID")
    ErrorCode: int = 0
    Message: str = ""


class PostmarkResponder(Responder):
    def __init__(self) -> None:
        self.reply = PostmarkReply()

    def unmarshal(self, body: bytes) -> None:
        if body:
            self.reply = PostmarkReply.model_validate_json(body)

    def check_error(self, response: requests.Response, body: bytes) -> None:
        failed = not is_2xx(response.status_code) or self.reply.ErrorCode != 0
        ensure_body(response, body, failed)
        if failed:
            raise MailError(
                kind=API,
                message=(
                    f"{ERROR_MESSAGE} - code: {self.reply.ErrorCode}, "
                    f"message: {self.reply.Message}"
                ),
                operation="Postmark.CheckError",
            )

    def meta(self) -> Meta:
        return Meta(message=self.reply.Message, id=self.reply.message_id)


class PostmarkSender(Mailer):
    """Postmark implementation of the ``Mailer`` interface."""

    def __init__(self, cfg: Config) -> None:
        cfg.validate()
        self._cfg = cfg
        self._client = Client(cfg.http_client, timeout=cfg.timeout)

    def _message(self, tx: Transmission) -> PostmarkMessage:
        return PostmarkMessage(
            From=f"{self._cfg.from_name} <{self._cfg.from_address}>",
            To=",".join(tx.recipients),
            Cc=",".join(tx.cc) or None,
            Bcc=",".join(tx.bcc) or None,
            Subject=tx.subject,
            HtmlBody=tx.html,
            TextBody=tx.plain_text or None,
            Headers=[
                PostmarkHeader(Name=name, Value=value)
                for name, value in tx.headers.items()
            ]
            or None,
            Attachments=[
                PostmarkAttachment(
                    Name=a.filename, Content=a.base64(), ContentType=a.media_type()
                )
                for a in tx.attachments
            ]
            or None,
        )

    def send(
        self, transmission: Optional[Transmission], ctx: Optional[Context] = None
    ) -> Response:
        """Send an email via the Postmark API."""
        tx = validate_transmission(transmission)

        payload = JSONData(self._message(tx))
        req = new_http_request("POST", ENDPOINT)
        req.add_header("Accept", "application/json")
        req.add_header("X-Postmark-Server-Token", self._cfg.api_key)

        return self._client.do(ctx or background(), req, payload, PostmarkResponder())


__all__ = ["PostmarkSender", "PostmarkResponder"]
