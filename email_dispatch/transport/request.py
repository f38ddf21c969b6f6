"""Client-independent description of an outbound HTTP request."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class Request:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    basic_auth_user: str = ""
    basic_auth_password: str = ""

    def add_header(self, name: str, value: str) -> None:
        """Set ``name`` to ``value``, replacing any previous value."""
        self.headers[name] = value

    def set_basic_auth(self, user: str, password: str) -> None:
        """Send HTTP Basic credentials; both must be non-empty to be used."""
        self.basic_auth_user = user
        self.basic_auth_password = password

    def has_basic_auth(self) -> bool:
        return bool(self.basic_auth_user and self.basic_auth_password)


def new_http_request(method: str, url: str) -> Request:
    return Request(method=method, url=url)


__all__ = ["Request", "new_http_request"]
