"""Request body builders.

Two interchangeable payloads share the :class:`Payload` interface:

* :class:`JSONData` serialises an object (a ``pydantic`` model or anything
  ``json`` can encode) into compact JSON with sorted keys.
* :class:`FormData` collects text fields and file parts and renders them as
  ``multipart/form-data`` with a random boundary.

``values()`` exists for debug tracing only and never exposes file bytes.
"""

from __future__ import annotations

import io
import json
from abc import ABC, abstractmethod
from typing import IO, Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel
from urllib3.fields import RequestField
from urllib3.filepost import choose_boundary

from email_dispatch.errors import INTERNAL, MailError

JSON_CONTENT_TYPE = "application/json"


class Payload(ABC):
    """A request body that knows its own media type."""

    @abstractmethod
    def buffer(self) -> bytes:
        """Materialise and return the encoded body."""
        raise NotImplementedError

    @abstractmethod
    def content_type(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def values(self) -> List[Tuple[str, str]]:
        """Return the textual key/value pairs carried by the body."""
        raise NotImplementedError


def _dumps(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class JSONData(Payload):
    """JSON payload built once from ``obj``.

    Raises:
        MailError: ``internal`` when ``obj`` cannot be encoded, or does not
            encode to a JSON object.
    """

    def __init__(self, obj: Any) -> None:
        self.original = obj
        try:
            if isinstance(obj, BaseModel):
                obj = obj.model_dump(mode="json", by_alias=True, exclude_none=True)
            encoded = _dumps(obj)
        except (TypeError, ValueError) as exc:
            raise MailError(
                kind=INTERNAL,
                message="Error marshalling payload",
                operation="JSONData.New",
                cause=exc,
            ) from exc

        decoded = json.loads(encoded)
        if not isinstance(decoded, dict):
            raise MailError(
                kind=INTERNAL,
                message="Error unmarshalling payload",
                operation="JSONData.New",
                cause=TypeError(
                    f"cannot unmarshal {type(decoded).__name__} into an object"
                ),
            )
        self._values: Dict[str, Any] = decoded

    def buffer(self) -> bytes:
        try:
            return _dumps(self._values).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise MailError(
                kind=INTERNAL,
                message="Error marshalling values",
                operation="JSONData.Buffer",
                cause=exc,
            ) from exc

    def content_type(self) -> str:
        return JSON_CONTENT_TYPE

    def values(self) -> List[Tuple[str, str]]:
        pairs = []
        for key, value in self._values.items():
            pairs.append((key, value if isinstance(value, str) else _dumps(value)))
        return pairs


class MultipartWriter:
    """Write ``multipart/form-data`` parts to a byte stream.

    Parts are rendered the way ``urllib3.encode_multipart_formdata`` renders
    them; file parts are typed ``application/octet-stream``.
    """

    def __init__(self, stream: IO[bytes], boundary: Optional[str] = None) -> None:
        self._stream = stream
        self.boundary = boundary or choose_boundary()

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    def write_field(self, name: str, value: str) -> None:
        part = RequestField(name=name, data=value)
        part.make_multipart()
        self._write_part(part, value.encode("utf-8"))

    def write_file(self, name: str, filename: str, data: bytes) -> None:
        part = RequestField(name=name, data=data, filename=filename)
        part.make_multipart(content_type="application/octet-stream")
        self._write_part(part, data)

    def close(self) -> None:
        self._stream.write(f"--{self.boundary}--\r\n".encode("latin-1"))

    def _write_part(self, part: RequestField, data: bytes) -> None:
        self._stream.write(f"--{self.boundary}\r\n".encode("latin-1"))
        self._stream.write(part.render_headers().encode("utf-8"))
        self._stream.write(data)
        self._stream.write(b"\r\n")


class FormData(Payload):
    """Multipart payload; text fields are written before file parts.

    ``writer_factory`` builds the :class:`MultipartWriter` around the output
    stream and can be swapped to exercise write failures.
    """

    def __init__(
        self, writer_factory: Callable[[IO[bytes]], MultipartWriter] = MultipartWriter
    ) -> None:
        self._writer_factory = writer_factory
        self._content_type = ""
        self._values: List[Tuple[str, str]] = []
        self._files: List[Tuple[str, str, bytes]] = []

    def add_value(self, key: str, value: str) -> None:
        self._values.append((key, value))

    def add_buffer(self, key: str, filename: str, data: bytes) -> None:
        self._files.append((key, filename, data))

    def buffer(self) -> bytes:
        stream = io.BytesIO()
        writer = self._writer_factory(stream)

        for key, value in self._values:
            try:
                writer.write_field(key, value)
            except (OSError, ValueError) as exc:
                raise _form_error("Error creating form field", exc) from exc

        for key, filename, data in self._files:
            try:
                writer.write_file(key, filename, data)
            except (OSError, ValueError) as exc:
                raise _form_error("Error creating form file", exc) from exc

        try:
            writer.close()
        except (OSError, ValueError) as exc:
            raise _form_error("Error closing form writer", exc) from exc

        self._content_type = writer.content_type
        return stream.getvalue()

    def content_type(self) -> str:
        if not self._content_type:
            try:
                self.buffer()
            except MailError:
                return ""
        return self._content_type

    def values(self) -> List[Tuple[str, str]]:
        return list(self._values)


def _form_error(message: str, cause: BaseException) -> MailError:
    return MailError(
        kind=INTERNAL, message=message, operation="FormData.Buffer", cause=cause
    )


__all__ = [
    "FormData",
    "JSONData",
    "JSON_CONTENT_TYPE",
    "MultipartWriter",
    "Payload",
]
