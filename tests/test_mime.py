from email_dispatch.mime import SNIFF_LENGTH, detect


def test_empty_input_is_octet_stream() -> None:
    assert detect(b"") == "application/octet-stream"


def test_png_signature() -> None:
    data = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
    assert detect(data) == "image/png"


def test_pdf_signature() -> None:
    assert detect(b"%PDF-1.7\n%\xe2\xe3\xcf\xd3\n") == "application/pdf"


def test_svg_anywhere_in_window() -> None:
    data = b'<?xml version="1.0" encoding="UTF-8"?>\n<svg xmlns="http://www.w3.org/2000/svg"/>'
    assert detect(data) == "image/svg+xml"


def test_svg_outside_window_is_ignored() -> None:
    data = b" " * SNIFF_LENGTH + b"<svg></svg>"
    assert detect(data) != "image/svg+xml"


def test_unknown_bytes_fall_back() -> None:
    assert detect(b"just some words") == "application/octet-stream"


def test_html_document() -> None:
    assert detect(b"<html><body>hi</body></html>") == "text/html; charset=utf-8"


def test_html_after_leading_whitespace() -> None:
    data = b"\n\t  <!DOCTYPE html>\n<html lang=\"en\"></html>"
    assert detect(data) == "text/html; charset=utf-8"


def test_html_tag_needs_terminator() -> None:
    assert detect(b"<pre>not matched</pre>") == "application/octet-stream"
    assert detect(b"<p>para</p>") == "text/html; charset=utf-8"


def test_xml_document() -> None:
    data = b'<?xml version="1.0" encoding="UTF-8"?><invoice/>'
    assert detect(data) == "text/xml; charset=utf-8"
