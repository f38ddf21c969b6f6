"""SendGrid-based email sender implementation.

Uses the v3 ``mail/send`` endpoint with bearer token authentication.  On
success SendGrid replies ``202 Accepted`` with an empty body, so no message
identifier is available from the response.

See: https://docs.sendgrid.com/api-reference/mail-send/mail-send
"""

from __future__ import annotations

from typing import Dict, List, Optional

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

ENDPOINT = "https://api.sendgrid.com/v3/mail/send"

ERROR_MESSAGE = "error sending transmission to SendGrid API"
SUCCESS_MESSAGE = "Successfully sent Sendgrid email"


class SendGridEmail(BaseModel):
    email: str
    name: Optional[str] = None


class SendGridPersonalization(BaseModel):
    to: List[SendGridEmail]
    cc: Optional[List[SendGridEmail]] = None
    bcc: Optional[List[SendGridEmail]] = None
    subject: str


class SendGridContent(BaseModel):
    type: str
    value: str


class SendGridAttachment(BaseModel):
    content: str
    type: str
    filename: str
    disposition: str = "attachment"


class SendGridMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_address: SendGridEmail = Field(alias="from")
    subject: str
    personalizations: List[SendGridPersonalization]
    content: List[SendGridContent]
    attachments: Optional[List[SendGridAttachment]] = None
    headers: Optional[Dict[str, str]] = None


class SendGridError(BaseModel):
    message: str = ""
    field: Optional[str] = None
    help: Optional[str] = None


class SendGridReply(BaseModel):
    errors: List[SendGridError] = []


class SendGridResponder(Responder):
    def __init__(self) -> None:
        self.reply = SendGridReply()

    def unmarshal(self, body: bytes) -> None:
        if body:
            self.reply = SendGridReply.model_validate_json(body)

    def check_error(self, response: requests.Response, body: bytes) -> None:
        failed = not is_2xx(response.status_code) or bool(self.reply.errors)
        ensure_body(response, body, failed)
        if not failed:
            return
        message = ERROR_MESSAGE
        if self.reply.errors:
            first = self.reply.errors[0]
            message = f"{message} - message: {first.message}"
            if first.field:
                message = f"{message}, field: {first.field}"
        raise MailError(kind=API, message=message, operation="SendGrid.CheckError")

    def meta(self) -> Meta:
        return Meta(message=SUCCESS_MESSAGE)


class SendGridSender(Mailer):
    """SendGrid implementation of the ``Mailer`` interface."""

    def __init__(self, cfg: Config) -> None:
        cfg.validate()
        self._cfg = cfg
        self._client = Client(cfg.http_client, timeout=cfg.timeout)

    def _message(self, tx: Transmission) -> SendGridMessage:
        # SendGrid rejects content entries with an empty value.
        content = []
        if tx.plain_text:
            content.append(SendGridContent(type="text/plain", value=tx.plain_text))
        content.append(SendGridContent(type="text/html", value=tx.html))

        return SendGridMessage(
            from_address=SendGridEmail(
                email=self._cfg.from_address, name=self._cfg.from_name
            ),
            subject=tx.subject,
            personalizations=[
                SendGridPersonalization(
                    to=[SendGridEmail(email=r) for r in tx.recipients],
                    cc=[SendGridEmail(email=c) for c in tx.cc] or None,
                    bcc=[SendGridEmail(email=b) for b in tx.bcc] or None,
                    subject=tx.subject,
                )
            ],
            content=content,
            attachments=[
                SendGridAttachment(
                    content=a.base64(), type=a.media_type(), filename=a.filename
                )
                for a in tx.attachments
            ]
            or None,
            headers=dict(tx.headers) or None,
        )

    def send(
        self, transmission: Optional[Transmission], ctx: Optional[Context] = None
    ) -> Response:
        """Send an email via the SendGrid API."""
        tx = validate_transmission(transmission)

        payload = JSONData(self._message(tx))
        req = new_http_request("POST", ENDPOINT)
        req.add_header("Authorization", f"Bearer {self._cfg.api_key}")

        return self._client.do(ctx or background(), req, payload, SendGridResponder())


__all__ = ["SendGridSender", "SendGridResponder"]
