"""SparkPost-based email sender implementation.

Posts to the Transmissions API.  CC and BCC addresses are delivered as extra
recipients whose ``header_to`` points at the primary recipients; CC
addresses are also listed in a single ``cc`` content header so they show up
in the delivered message.

See: https://developers.sparkpost.com/api/transmissions/
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

DEFAULT_BASE_URL = "https://api.sparkpost.com"

ERROR_MESSAGE = "error sending transmission to Sparkpost API"
SUCCESS_MESSAGE = "Successfully sent Sparkpost email"


class SparkPostFrom(BaseModel):
    email: str
    name: str


class SparkPostAttachment(BaseModel):
    type: str
    name: str
    data: str


class SparkPostContent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    html: str
    text: Optional[str] = None
    subject: str
    from_address: SparkPostFrom = Field(alias="from")
    headers: Optional[Dict[str, str]] = None
    attachments: Optional[List[SparkPostAttachment]] = None


class SparkPostAddress(BaseModel):
    email: str
    header_to: Optional[str] = None


class SparkPostRecipient(BaseModel):
    address: SparkPostAddress


class SparkPostTransmission(BaseModel):
    recipients: List[SparkPostRecipient]
    content: SparkPostContent


class SparkPostError(BaseModel):
    message: str = ""
    code: Any = ""
    description: str = ""


class SparkPostReply(BaseModel):
    """Body returned by the Transmissions API.

    Example bodies::

        {"results": {"total_rejected_recipients": 0,
                     "total_accepted_recipients": 1, "id": "7029753512321354395"}}
        {"errors": [{"message": "content.subject is a required field", "code": "1400"}]}
    """

    results: Dict[str, Any] = {}
    errors: List[SparkPostError] = []


class SparkPostResponder(Responder):
    def __init__(self) -> None:
        self.reply = SparkPostReply()

    def unmarshal(self, body: bytes) -> None:
        if body:
            self.reply = SparkPostReply.model_validate_json(body)

    def check_error(self, response: requests.Response, body: bytes) -> None:
        failed = not is_2xx(response.status_code) or bool(self.reply.errors)
        ensure_body(response, body, failed)
        if not failed:
            return
        message = ERROR_MESSAGE
        if self.reply.errors:
            first = self.reply.errors[0]
            message = f"{message} - code: {first.code}, message: {first.message}"
        raise MailError(kind=API, message=message, operation="SparkPost.CheckError")

    def meta(self) -> Meta:
        message_id = self.reply.results.get("id")
        return Meta(
            message=SUCCESS_MESSAGE,
            id="" if message_id is None else str(message_id),
        )


class SparkPostSender(Mailer):
    """SparkPost implementation of the ``Mailer`` interface."""

    def __init__(self, cfg: Config) -> None:
        cfg.validate()
        self._cfg = cfg
        self._base_url = (cfg.url or DEFAULT_BASE_URL).rstrip("/")
        self._client = Client(cfg.http_client, timeout=cfg.timeout)

    def _transmission(self, tx: Transmission) -> SparkPostTransmission:
        header_to = ",".join(tx.recipients)
        recipients = [
            SparkPostRecipient(address=SparkPostAddress(email=address, header_to=header_to))
            for address in [*tx.recipients, *tx.cc, *tx.bcc]
        ]

        headers = dict(tx.headers)
        if tx.has_cc():
            headers["cc"] = ",".join(tx.cc)

        content = SparkPostContent(
            html=tx.html,
            text=tx.plain_text or None,
            subject=tx.subject,
            from_address=SparkPostFrom(
                email=self._cfg.from_address, name=self._cfg.from_name
            ),
            headers=headers or None,
            attachments=[
                SparkPostAttachment(type=a.media_type(), name=a.filename, data=a.base64())
                for a in tx.attachments
            ]
            or None,
        )
        return SparkPostTransmission(recipients=recipients, content=content)

    def send(
        self, transmission: Optional[Transmission], ctx: Optional[Context] = None
    ) -> Response:
        """Send an email via the SparkPost API."""
        tx = validate_transmission(transmission)

        payload = JSONData(self._transmission(tx))
        req = new_http_request(
            "POST", f"{self._base_url}/api/v1/transmissions"
        )
        req.add_header("Authorization", self._cfg.api_key)

        return self._client.do(ctx or background(), req, payload, SparkPostResponder())


__all__ = ["SparkPostSender", "SparkPostResponder"]
