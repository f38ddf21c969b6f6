"""Top-level package for email_dispatch.

This package sends a single email through one of several providers behind
the same call:

.. code-block:: python

    from email_dispatch import Config, Transmission, new_driver

    mailer = new_driver("postmark", Config(api_key="...", from_address="a@b.c",
                                           from_name="Acme"))
    response = mailer.send(Transmission(recipients=["r@x"], subject="Hi",
                                        html="<p>Hi</p>"))

Subpackages handle specific concerns: :mod:`email_dispatch.mailer` holds
one driver per provider and :mod:`email_dispatch.transport` the HTTP
pipeline they share.  Every failure is raised as :class:`MailError`.
"""

from __future__ import annotations

from email_dispatch.config import Config
from email_dispatch.debug import is_debug, set_debug
from email_dispatch.errors import (
    API,
    CONFLICT,
    INTERNAL,
    INVALID,
    MailError,
    kind_of,
    message_of,
)
from email_dispatch.factory import (
    MAILGUN,
    POSTAL,
    POSTMARK,
    SENDGRID,
    SMTP,
    SPARKPOST,
    new_driver,
)
from email_dispatch.mailer import Mailer
from email_dispatch.mailer.mailgun_sender import MailgunSender
from email_dispatch.mailer.postal_sender import PostalSender
from email_dispatch.mailer.postmark_sender import PostmarkSender
from email_dispatch.mailer.sendgrid_sender import SendGridSender
from email_dispatch.mailer.smtp_sender import SMTPSender
from email_dispatch.mailer.sparkpost_sender import SparkPostSender
from email_dispatch.models import Attachment, Response, Transmission

__all__ = [
    "API",
    "Attachment",
    "CONFLICT",
    "Config",
    "INTERNAL",
    "INVALID",
    "MAILGUN",
    "MailError",
    "Mailer",
    "MailgunSender",
    "POSTAL",
    "POSTMARK",
    "PostalSender",
    "PostmarkSender",
    "Response",
    "SENDGRID",
    "SMTP",
    "SMTPSender",
    "SPARKPOST",
    "SendGridSender",
    "SparkPostSender",
    "Transmission",
    "is_debug",
    "kind_of",
    "message_of",
    "new_driver",
    "set_debug",
]

# SemVer version of the package
__version__: str = "0.1.0"
