"""Media type detection for attachment bytes."""

from __future__ import annotations

import filetype

# Number of leading bytes inspected when sniffing.
SNIFF_LENGTH = 512

DEFAULT_TYPE = "application/octet-stream"
HTML_TYPE = "text/html; charset=utf-8"
XML_TYPE = "text/xml; charset=utf-8"

_WHITESPACE = b"\t\n\x0c\r "

# Matched case-insensitively and only when followed by a space or ``>``.
_HTML_SIGNATURES = (
    b"<!DOCTYPE HTML",
    b"<HTML",
    b"<HEAD",
    b"<SCRIPT",
    b"<IFRAME",
    b"<H1",
    b"<DIV",
    b"<FONT",
    b"<TABLE",
    b"<A",
    b"<STYLE",
    b"<TITLE",
    b"<B",
    b"<BODY",
    b"<BR",
    b"<P",
    b"<!--",
)


def _is_html(data: bytes) -> bool:
    for signature in _HTML_SIGNATURES:
        end = len(signature)
        if len(data) > end and data[:end].upper() == signature and data[end] in b" >":
            return True
    return False


def detect(data: bytes) -> str:
    """Return the media type of ``data``.

    Only the first :data:`SNIFF_LENGTH` bytes are inspected, zero padded when
    the input is shorter.  SVG documents are reported as ``image/svg+xml``,
    HTML and XML documents by their leading markup (after any whitespace),
    and binary formats by their magic numbers.  The result is always a valid
    media type; ``application/octet-stream`` is returned when the data could
    not be identified.
    """
    header = bytearray(SNIFF_LENGTH)
    window = bytes(data[:SNIFF_LENGTH])
    header[: len(window)] = window

    if b"<svg" in header:
        return "image/svg+xml"

    text = bytes(header).lstrip(_WHITESPACE)
    if _is_html(text):
        return HTML_TYPE
    if text.startswith(b"<?xml"):
        return XML_TYPE

    return filetype.guess_mime(bytes(header)) or DEFAULT_TYPE


__all__ = ["detect", "SNIFF_LENGTH"]
