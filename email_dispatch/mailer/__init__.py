"""Abstract interface and implementations for sending email messages.

This subpackage defines the common :class:`Mailer` interface along with one
concrete implementation per provider: plain SMTP plus the Mailgun, Postal,
Postmark, SendGrid and SparkPost HTTP APIs.  Client code selects an
implementation by configuration (see :func:`email_dispatch.new_driver`)
without changing the calling semantics.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from email_dispatch.models import Response, Transmission
from email_dispatch.transport.context import Context


class Mailer(ABC):
    """Abstract base class for mail drivers.

    Drivers hold only read-only configuration and a thread-safe HTTP session
    once constructed, so a single instance may serve concurrent callers.
    """

    @abstractmethod
    def send(
        self, transmission: Optional[Transmission], ctx: Optional[Context] = None
    ) -> Response:
        """Send a single email.

        Args:
            transmission: The message to send; it is validated first.
            ctx: Optional cancellation context bounding the network I/O.

        Returns:
            The provider's outcome normalised into a :class:`Response`.

        Raises:
            MailError: ``invalid`` when the transmission fails validation,
                ``api`` when the provider or transport rejects it.
        """
        raise NotImplementedError


__all__ = ["Mailer"]
