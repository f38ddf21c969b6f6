"""HTTP pipeline shared by every API driver.

:meth:`Client.do` turns a :class:`~email_dispatch.transport.request.Request`,
an optional :class:`~email_dispatch.transport.payload.Payload` and a driver's
:class:`~email_dispatch.transport.responder.Responder` into a uniform
:class:`~email_dispatch.models.Response`:

1. the payload is materialised and a ``requests`` request is prepared;
2. with debugging on, an equivalent ``curl`` command is printed;
3. headers are attached: payload content type, basic auth, then the
   driver's own headers (which win on conflicts);
4. the request is sent under the earlier of the context's deadline and
   the client timeout;
5. the body is drained;
6. the responder decodes, classifies and extracts metadata.

Every error raised after the round-trip carries the status code and body
obtained so far on ``MailError.response``.
"""

from __future__ import annotations

import base64
import logging
import shlex
from typing import Callable, Dict, List, Optional

import requests

from email_dispatch.config import DEFAULT_TIMEOUT
from email_dispatch.debug import is_debug
from email_dispatch.errors import API, INTERNAL, INVALID, MailError
from email_dispatch.models import Response
from email_dispatch.transport.context import (
    Context,
    ContextError,
    DeadlineExceeded,
    with_timeout,
)
from email_dispatch.transport.payload import Payload
from email_dispatch.transport.request import Request
from email_dispatch.transport.responder import Responder

LOGGER = logging.getLogger(__name__)

# Size of the chunks pulled from the socket while draining a body.
CHUNK_SIZE = 8192

BodyReader = Callable[[requests.Response, Context], bytes]


def read_body(response: requests.Response, ctx: Context) -> bytes:
    """Drain ``response`` chunk by chunk, stopping when ``ctx`` is done."""
    chunks = []
    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
        err = ctx.err()
        if err is not None:
            raise err
        chunks.append(chunk)
    return b"".join(chunks)


def basic_auth_header(user: str, password: str) -> str:
    credentials = base64.b64encode(f"{user}:{password}".encode()).decode()
    return f"Basic {credentials}"


def curl_command(
    method: str,
    url: str,
    headers: Dict[str, str],
    payload: Optional[Payload] = None,
) -> str:
    """Render a ``curl`` invocation equivalent to the outbound request."""
    parts = ["curl", "-i", "-X", method, shlex.quote(url)]
    for key, value in headers.items():
        parts.extend(["-H", shlex.quote(f"{key}: {value}")])
    if payload is not None:
        for key, value in payload.values():
            parts.extend(["-F", f"{key}={shlex.quote(value)}"])
    return " ".join(parts)


def _multi_headers(response: requests.Response) -> Dict[str, List[str]]:
    raw_headers = getattr(response.raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "getlist"):
        return {key: list(raw_headers.getlist(key)) for key in raw_headers.keys()}
    return {key: [value] for key, value in response.headers.items()}


class Client:
    """Synchronous HTTP pipeline.

    Args:
        session: ``requests.Session`` used for every call; a private one is
            created when omitted.  Sessions are safe to share across sends.
        timeout: Overall deadline in seconds for each send, covering the
            connection, the request and the body drain.  A shorter deadline
            on the caller's context wins.
        body_reader: Function draining a streamed response.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        body_reader: BodyReader = read_body,
    ) -> None:
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.body_reader = body_reader

    def make_request(
        self, request: Request, payload: Optional[Payload] = None
    ) -> requests.PreparedRequest:
        """Build the prepared ``requests`` request for ``request``."""
        try:
            data = payload.buffer() if payload is not None else None
            native = requests.Request(method=request.method, url=request.url, data=data)

            if is_debug():
                print(
                    curl_command(
                        request.method, request.url, dict(self.session.headers), payload
                    )
                )

            headers: Dict[str, str] = {}
            content_type = payload.content_type() if payload is not None else ""
            if content_type:
                headers["Content-Type"] = content_type
            if request.has_basic_auth():
                headers["Authorization"] = basic_auth_header(
                    request.basic_auth_user, request.basic_auth_password
                )
            headers.update(request.headers)
            native.headers = headers

            return self.session.prepare_request(native)
        except (MailError, requests.RequestException, ValueError) as exc:
            raise MailError(
                kind=INVALID,
                message="Error creating http request",
                operation="Client.MakeRequest",
                cause=exc,
            ) from exc

    def do(
        self,
        ctx: Context,
        request: Request,
        payload: Optional[Payload],
        responder: Responder,
    ) -> Response:
        """Send ``request`` and decode the reply with ``responder``.

        Raises:
            MailError: ``invalid`` when the request cannot be built or the
                body cannot be decoded, ``api`` on transport failures and
                provider-reported errors, ``internal`` when the body cannot
                be read.
        """
        ctx = with_timeout(self.timeout, parent=ctx)
        prepared = self.make_request(request, payload)

        try:
            err = ctx.err()
            if err is not None:
                raise err
            LOGGER.debug("Sending %s %s", prepared.method, prepared.url)
            native = self.session.send(prepared, timeout=self._timeout(ctx), stream=True)
        except (requests.RequestException, ContextError) as exc:
            raise MailError(
                kind=API,
                message="Error doing request",
                operation="Client.Do",
                cause=exc,
            ) from exc

        result = Response(status_code=native.status_code, headers=_multi_headers(native))
        LOGGER.debug("Received %s from %s", native.status_code, prepared.url)

        try:
            result.body = self.body_reader(native, ctx)
        except (requests.RequestException, ContextError, OSError) as exc:
            raise MailError(
                kind=INTERNAL,
                message="Error reading response body",
                operation="Client.Do",
                cause=exc,
                response=result,
            ) from exc
        finally:
            native.close()

        try:
            responder.unmarshal(result.body)
        except (ValueError, TypeError) as exc:
            raise MailError(
                kind=INVALID,
                message="Error unmarshalling response error",
                operation="Client.Do",
                cause=exc,
                response=result,
            ) from exc

        try:
            responder.check_error(native, result.body)
        except Exception as exc:
            LOGGER.warning(
                "Mail request to %s failed with status %s", prepared.url, native.status_code
            )
            raise MailError(
                kind=API,
                message="Error performing mail request",
                operation="Client.Do",
                cause=exc,
                response=result,
            ) from exc

        meta = responder.meta()
        result.id = meta.id
        result.message = meta.message
        return result

    def _timeout(self, ctx: Context) -> float:
        remaining = ctx.remaining()
        if remaining is None:
            return self.timeout
        if remaining <= 0:
            raise DeadlineExceeded()
        return min(self.timeout, remaining)


__all__ = ["Client", "basic_auth_header", "curl_command", "read_body"]
