"""Driver configuration.

One :class:`Config` is handed to a driver constructor.  Which fields are
required depends on the driver: :meth:`Config.validate` checks the rules
common to the HTTP API drivers and each driver adds its own on top.

Configuration can also be read from the environment with
:meth:`Config.from_env`.  Variables are looked up under a prefix
(``MAIL_`` by default):

* ``MAIL_URL`` – API base URL, or the SMTP host
* ``MAIL_API_KEY`` – provider API key
* ``MAIL_DOMAIN`` – sending domain (Mailgun)
* ``MAIL_FROM_ADDRESS`` / ``MAIL_FROM_NAME`` – sender identity
* ``MAIL_PASSWORD`` – SMTP password
* ``MAIL_PORT`` – SMTP port
* ``MAIL_TIMEOUT`` – HTTP timeout in seconds

For SMTP the conventional ``SMTP_HOST``/``SMTP_SERVER``,
``SMTP_PORT``/``SMTP_SERVER_PORT`` and ``SMTP_PASSWORD``/``SMTP_APP_PWD``
aliases are honoured when the prefixed variable is unset.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

import requests

from email_dispatch.errors import INVALID, MailError

# Overall deadline applied to HTTP requests when none is configured.
DEFAULT_TIMEOUT = 10.0


@dataclass
class Config:
    url: str = ""
    api_key: str = ""
    domain: str = ""
    from_address: str = ""
    from_name: str = ""
    password: str = ""
    port: int = 0
    http_client: Optional[requests.Session] = None
    timeout: float = DEFAULT_TIMEOUT

    def validate(self) -> None:
        """Run the sanity checks shared by the API drivers.

        Raises:
            MailError: ``invalid`` when the sender identity or API key is missing.
        """
        if not self.from_address:
            raise invalid_config("driver requires from address")
        if not self.from_name:
            raise invalid_config("driver requires from name")
        if not self.api_key:
            raise invalid_config("driver requires api key")

    @classmethod
    def from_env(cls, prefix: str = "MAIL_") -> "Config":
        """Build a configuration from environment variables."""

        def _get(name: str, *aliases: str) -> str:
            for key in (prefix + name, *aliases):
                value = os.environ.get(key)
                if value:
                    return value
            return ""

        port = _get("PORT", "SMTP_PORT", "SMTP_SERVER_PORT") or "0"
        timeout = _get("TIMEOUT") or str(DEFAULT_TIMEOUT)
        try:
            return cls(
                url=_get("URL", "SMTP_HOST", "SMTP_SERVER"),
                api_key=_get("API_KEY"),
                domain=_get("DOMAIN"),
                from_address=_get("FROM_ADDRESS"),
                from_name=_get("FROM_NAME"),
                password=_get("PASSWORD", "SMTP_PASSWORD", "SMTP_APP_PWD"),
                port=int(port),
                timeout=float(timeout),
            )
        except ValueError as exc:
            raise MailError(
                kind=INVALID,
                message="invalid numeric configuration value",
                operation="Config.FromEnv",
                cause=exc,
            ) from exc


def invalid_config(message: str) -> MailError:
    return MailError(kind=INVALID, message=message, operation="Config.Validate")


__all__ = ["Config", "DEFAULT_TIMEOUT", "invalid_config"]
