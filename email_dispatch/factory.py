"""Driver selection by name.

Configuration is validated by each driver's constructor rather than here,
since every driver layers its own rules on top of :meth:`Config.validate`.
"""

from __future__ import annotations

from typing import Callable, Dict

from email_dispatch.config import Config
from email_dispatch.errors import INVALID, MailError
from email_dispatch.mailer import Mailer
from email_dispatch.mailer.mailgun_sender import MailgunSender
from email_dispatch.mailer.postal_sender import PostalSender
from email_dispatch.mailer.postmark_sender import PostmarkSender
from email_dispatch.mailer.sendgrid_sender import SendGridSender
from email_dispatch.mailer.smtp_sender import SMTPSender
from email_dispatch.mailer.sparkpost_sender import SparkPostSender

SPARKPOST = "sparkpost"
MAILGUN = "mailgun"
SENDGRID = "sendgrid"
POSTAL = "postal"
POSTMARK = "postmark"
SMTP = "smtp"

_DRIVERS: Dict[str, Callable[[Config], Mailer]] = {
    SPARKPOST: SparkPostSender,
    MAILGUN: MailgunSender,
    SENDGRID: SendGridSender,
    POSTAL: PostalSender,
    POSTMARK: PostmarkSender,
    SMTP: SMTPSender,
}


def new_driver(kind: str, cfg: Config) -> Mailer:
    """Return the driver registered under ``kind`` built from ``cfg``.

    Raises:
        MailError: ``invalid`` for an unknown kind, or whatever the driver's
            constructor raises for a bad configuration.
    """
    factory = _DRIVERS.get(kind)
    if factory is None:
        raise MailError(
            kind=INVALID, message=f"{kind} not supported", operation="NewDriver"
        )
    return factory(cfg)


__all__ = [
    "MAILGUN",
    "POSTAL",
    "POSTMARK",
    "SENDGRID",
    "SMTP",
    "SPARKPOST",
    "new_driver",
]
