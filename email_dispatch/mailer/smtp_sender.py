"""SMTP-based email sender implementation.

This module provides ``SMTPSender``, a concrete implementation of
``Mailer`` that uses Python's ``smtplib`` to deliver messages via an SMTP
server.  Unlike the API drivers it never touches the HTTP pipeline: the
transmission is composed into a MIME document and handed to the server in a
single session.

Configuration used:

* ``url`` – hostname of the SMTP server (also the PLAIN auth host)
* ``port`` – port number; defaults to 587 (STARTTLS).  Port 465 connects
  with implicit TLS.
* ``from_address`` / ``password`` – PLAIN credentials and envelope sender
* ``from_name`` – display name used in the ``From`` header

When :func:`email_dispatch.debug.set_debug` is on, the ``smtplib`` client
prints its protocol exchange to stderr.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.header import Header
from typing import Callable, List, Optional

from urllib3.filepost import choose_boundary

from email_dispatch.config import Config, invalid_config
from email_dispatch.debug import is_debug
from email_dispatch.errors import API, MailError
from email_dispatch.mailer import Mailer
from email_dispatch.models import Response, Transmission, validate_transmission
from email_dispatch.transport.context import Context, ContextError

LOGGER = logging.getLogger(__name__)

DEFAULT_PORT = 587
SSL_PORT = 465

# Hosts that may receive credentials over an unencrypted session.
LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}

SUCCESS_MESSAGE = "Email sent successfully"

CRLF = "\r\n"

SendFunc = Callable[[Config, str, List[str], bytes, Optional[float]], None]


def send_mail(
    cfg: Config,
    from_addr: str,
    to_addrs: List[str],
    msg: bytes,
    timeout: Optional[float] = None,
) -> None:
    """Deliver ``msg`` in one SMTP session authenticated with PLAIN.

    Off the implicit TLS port the session is upgraded with STARTTLS before
    credentials are sent.  A remote server that does not offer STARTTLS is
    refused with ``SMTPNotSupportedError``; only a local host may
    authenticate over the plain session.
    """
    port = cfg.port or DEFAULT_PORT
    kwargs = {} if timeout is None else {"timeout": timeout}
    if port == SSL_PORT:
        smtp_conn: smtplib.SMTP = smtplib.SMTP_SSL(
            cfg.url, port, context=ssl.create_default_context(), **kwargs
        )
    else:
        smtp_conn = smtplib.SMTP(cfg.url, port, **kwargs)

    with smtp_conn as smtp:
        if is_debug():
            smtp.set_debuglevel(1)
        smtp.ehlo()
        if port != SSL_PORT:
            if smtp.has_extn("starttls"):
                smtp.starttls(context=ssl.create_default_context())
                smtp.ehlo()
            elif cfg.url not in LOCAL_HOSTS:
                raise smtplib.SMTPNotSupportedError(
                    f"{cfg.url} does not offer STARTTLS, refusing to send credentials"
                )
        smtp.user, smtp.password = cfg.from_address, cfg.password
        smtp.auth("PLAIN", smtp.auth_plain)
        smtp.sendmail(from_addr, to_addrs, msg)


def _encode_header(value: str) -> str:
    if value.isascii():
        return value
    return Header(value, "utf-8").encode()


def envelope_recipients(tx: Transmission) -> List[str]:
    """Return recipients, CC and BCC addresses in order, duplicates kept."""
    return [*tx.recipients, *tx.cc, *tx.bcc]


def compose(tx: Transmission, cfg: Config, boundary: Optional[str] = None) -> bytes:
    """Render ``tx`` as a MIME message with CRLF line endings.

    Without attachments the message is a single ``text/html`` part.  With
    attachments it becomes ``multipart/mixed``: the plain text part (when
    present), the HTML part, then one base64 part per attachment.
    """
    boundary = boundary or choose_boundary()
    lines = [
        f"Subject: {_encode_header(tx.subject)}",
        f"To: {','.join(tx.recipients)}",
    ]
    if tx.has_cc():
        lines.append(f"Cc: {','.join(tx.cc)}")
    for name, value in tx.headers.items():
        lines.append(f"{name}: {_encode_header(value)}")
    lines.append(f"From: {_encode_header(cfg.from_name)} <{cfg.from_address}>")
    lines.append("MIME-Version: 1.0")

    if not tx.has_attachments():
        lines.extend(["Content-Type: text/html; charset=ascii", "", tx.html])
        return (CRLF.join(lines) + CRLF).encode("utf-8")

    lines.extend([f"Content-Type: multipart/mixed; boundary={boundary}", ""])

    if tx.plain_text:
        lines.extend(
            [
                f"--{boundary}",
                "Content-Type: text/plain; charset=utf-8",
                "",
                tx.plain_text,
            ]
        )

    lines.extend([f"--{boundary}", "Content-Type: text/html; charset=ascii", "", tx.html])

    for attachment in tx.attachments:
        encoded = attachment.base64()
        lines.extend(
            [
                f"--{boundary}",
                f"Content-Type: {attachment.media_type()}",
                "Content-Transfer-Encoding: base64",
                f"Content-Disposition: attachment; filename={attachment.filename}",
                "",
                *[encoded[i : i + 76] for i in range(0, len(encoded), 76)],
            ]
        )

    lines.append(f"--{boundary}--")
    return (CRLF.join(lines) + CRLF).encode("utf-8")


class SMTPSender(Mailer):
    """SMTP implementation of the ``Mailer`` interface."""

    def __init__(self, cfg: Config, send: SendFunc = send_mail) -> None:
        if not cfg.url:
            raise invalid_config("driver requires a url")
        if not cfg.from_address:
            raise invalid_config("driver requires from address")
        if not cfg.from_name:
            raise invalid_config("driver requires from name")
        if not cfg.password:
            raise invalid_config("driver requires a password")
        self._cfg = cfg
        self._send = send

    def send(
        self, transmission: Optional[Transmission], ctx: Optional[Context] = None
    ) -> Response:
        """Send an email via SMTP.

        Raises:
            MailError: ``invalid`` when the transmission fails validation,
                ``api`` wrapping the ``smtplib`` or socket error otherwise.
        """
        tx = validate_transmission(transmission)

        timeout = ctx.remaining() if ctx is not None else None
        recipients = envelope_recipients(tx)
        message = compose(tx, self._cfg)
        LOGGER.debug(
            "Sending %d bytes to %d recipients via %s:%s",
            len(message),
            len(recipients),
            self._cfg.url,
            self._cfg.port or DEFAULT_PORT,
        )

        try:
            err = ctx.err() if ctx is not None else None
            if err is not None:
                raise err
            self._send(self._cfg, self._cfg.from_address, recipients, message, timeout)
        except (smtplib.SMTPException, OSError, ContextError) as exc:
            raise MailError(
                kind=API,
                message="Error sending smtp email",
                operation="SMTP.Send",
                cause=exc,
            ) from exc

        return Response(status_code=200, message=SUCCESS_MESSAGE)


__all__ = ["SMTPSender", "compose", "envelope_recipients", "send_mail"]
