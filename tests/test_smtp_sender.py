import base64
import smtplib
from typing import List, Optional
from unittest import mock

import pytest

from email_dispatch.config import Config
from email_dispatch.debug import set_debug
from email_dispatch.errors import API, INVALID, MailError
from email_dispatch.mailer.smtp_sender import SMTPSender, compose
from email_dispatch.models import Attachment, Transmission
from email_dispatch.transport.context import Context


class RecordingSend:
    def __init__(self, error: Optional[BaseException] = None) -> None:
        self.calls: List[tuple] = []
        self.error = error

    def __call__(
        self,
        cfg: Config,
        from_addr: str,
        to_addrs: List[str],
        msg: bytes,
        timeout: Optional[float] = None,
    ) -> None:
        self.calls.append((cfg, from_addr, to_addrs, msg, timeout))
        if self.error is not None:
            raise self.error


@pytest.fixture
def smtp_config() -> Config:
    return Config(
        url="smtp.example.com",
        port=587,
        from_address="a@b.c",
        from_name="N",
        password="p",
    )


def full_transmission() -> Transmission:
    return Transmission(
        recipients=["r@x"],
        subject="S",
        html="<h1>H</h1>",
        plain_text="H",
        cc=["c@x"],
        bcc=["b@x"],
        attachments=[Attachment("a.pdf", b"%PDF-1.4")],
    )


def test_send_success(smtp_config: Config) -> None:
    send = RecordingSend()

    result = SMTPSender(smtp_config, send=send).send(full_transmission())

    assert result.status_code == 200
    assert result.message == "Email sent successfully"
    assert len(send.calls) == 1
    _, from_addr, to_addrs, msg, _ = send.calls[0]
    assert from_addr == "a@b.c"
    assert to_addrs == ["r@x", "c@x", "b@x"]
    assert msg.startswith(b"Subject: S\r\nTo: r@x\r\nCc: c@x\r\n")
    assert b"Content-Type: multipart/mixed; boundary=" in msg
    assert b"Content-Transfer-Encoding: base64\r\n" in msg
    assert b"Content-Disposition: attachment; filename=a.pdf\r\n\r\nJVBERi0xLjQ=\r\n" in msg
    assert b"b@x" not in msg


def test_compose_single_part(smtp_config: Config) -> None:
    tx = Transmission(
        recipients=["r@x", "s@x"],
        subject="S",
        html="<h1>H</h1>",
        headers={"X-Campaign": "spring"},
    )
    assert compose(tx, smtp_config) == (
        b"Subject: S\r\n"
        b"To: r@x,s@x\r\n"
        b"X-Campaign: spring\r\n"
        b"From: N <a@b.c>\r\n"
        b"MIME-Version: 1.0\r\n"
        b"Content-Type: text/html; charset=ascii\r\n"
        b"\r\n"
        b"<h1>H</h1>\r\n"
    )


def test_compose_multipart_layout(smtp_config: Config) -> None:
    msg = compose(full_transmission(), smtp_config, boundary="XYZ").decode()
    assert msg.split("\r\n\r\n", 1)[0].endswith(
        "MIME-Version: 1.0\r\nContent-Type: multipart/mixed; boundary=XYZ"
    )
    assert msg.index("text/plain; charset=utf-8") < msg.index("text/html; charset=ascii")
    assert msg.index("text/html; charset=ascii") < msg.index("Content-Type: application/pdf")
    assert msg.count("--XYZ\r\n") == 3
    assert msg.endswith("--XYZ--\r\n")


def test_compose_wraps_long_attachments(smtp_config: Config) -> None:
    data = bytes(range(256)) * 2
    tx = Transmission(
        recipients=["r@x"], subject="S", html="<p/>", attachments=[Attachment("blob.bin", data)]
    )
    msg = compose(tx, smtp_config, boundary="B").decode()
    block = msg.split("filename=blob.bin\r\n\r\n", 1)[1].split("\r\n--B--", 1)[0]
    lines = block.split("\r\n")
    assert all(len(line) <= 76 for line in lines)
    assert base64.b64decode("".join(lines)) == data


def test_non_ascii_subject_is_encoded(smtp_config: Config) -> None:
    tx = Transmission(recipients=["r@x"], subject="Grüße", html="<p/>")
    msg = compose(tx, smtp_config)
    assert msg.startswith(b"Subject: =?utf-8?")


def test_transport_failure(smtp_config: Config, transmission: Transmission) -> None:
    send = RecordingSend(error=smtplib.SMTPAuthenticationError(535, b"bad credentials"))

    with pytest.raises(MailError) as exc:
        SMTPSender(smtp_config, send=send).send(transmission)

    assert exc.value.kind == API
    assert isinstance(exc.value.cause, smtplib.SMTPAuthenticationError)


def test_cancelled_context_skips_session(smtp_config: Config, transmission: Transmission) -> None:
    send = RecordingSend()
    ctx = Context()
    ctx.cancel()

    with pytest.raises(MailError):
        SMTPSender(smtp_config, send=send).send(transmission, ctx)
    assert send.calls == []


def test_invalid_transmission_skips_session(smtp_config: Config) -> None:
    send = RecordingSend()
    with pytest.raises(MailError) as exc:
        SMTPSender(smtp_config, send=send).send(None)
    assert exc.value.kind == INVALID
    assert send.calls == []


@pytest.mark.parametrize(
    "field, message",
    [
        ("url", "driver requires a url"),
        ("from_address", "driver requires from address"),
        ("from_name", "driver requires from name"),
        ("password", "driver requires a password"),
    ],
)
def test_config_validation(smtp_config: Config, field: str, message: str) -> None:
    setattr(smtp_config, field, "")
    with pytest.raises(MailError) as exc:
        SMTPSender(smtp_config)
    assert exc.value.kind == INVALID
    assert exc.value.message == message


def test_api_key_not_required(smtp_config: Config) -> None:
    assert smtp_config.api_key == ""
    SMTPSender(smtp_config)


def test_default_send_uses_starttls(smtp_config: Config, transmission: Transmission) -> None:
    smtp_config.port = 0
    with mock.patch("email_dispatch.mailer.smtp_sender.smtplib.SMTP") as smtp_cls:
        smtp = smtp_cls.return_value.__enter__.return_value
        smtp.has_extn.return_value = True

        SMTPSender(smtp_config).send(transmission)

    smtp_cls.assert_called_once_with("smtp.example.com", 587)
    smtp.starttls.assert_called_once()
    smtp.auth.assert_called_once_with("PLAIN", smtp.auth_plain)
    assert smtp.user == "a@b.c"
    assert smtp.password == "p"
    from_addr, to_addrs, _ = smtp.sendmail.call_args[0]
    assert from_addr == "a@b.c"
    assert to_addrs == ["r@x"]
    smtp.set_debuglevel.assert_not_called()


def test_default_send_implicit_tls(smtp_config: Config, transmission: Transmission) -> None:
    smtp_config.port = 465
    set_debug(True)
    with mock.patch("email_dispatch.mailer.smtp_sender.smtplib.SMTP_SSL") as smtp_cls:
        smtp = smtp_cls.return_value.__enter__.return_value

        SMTPSender(smtp_config).send(transmission)

    assert smtp_cls.call_args[0] == ("smtp.example.com", 465)
    smtp.starttls.assert_not_called()
    smtp.set_debuglevel.assert_called_once_with(1)
    smtp.sendmail.assert_called_once()


def test_refuses_auth_without_starttls(smtp_config: Config, transmission: Transmission) -> None:
    with mock.patch("email_dispatch.mailer.smtp_sender.smtplib.SMTP") as smtp_cls:
        smtp = smtp_cls.return_value.__enter__.return_value
        smtp.has_extn.return_value = False

        with pytest.raises(MailError) as exc:
            SMTPSender(smtp_config).send(transmission)

    assert exc.value.kind == API
    assert isinstance(exc.value.cause, smtplib.SMTPNotSupportedError)
    smtp.starttls.assert_not_called()
    smtp.auth.assert_not_called()
    smtp.sendmail.assert_not_called()


def test_localhost_may_skip_starttls(smtp_config: Config, transmission: Transmission) -> None:
    smtp_config.url = "localhost"
    smtp_config.port = 1025
    with mock.patch("email_dispatch.mailer.smtp_sender.smtplib.SMTP") as smtp_cls:
        smtp = smtp_cls.return_value.__enter__.return_value
        smtp.has_extn.return_value = False

        SMTPSender(smtp_config).send(transmission)

    smtp_cls.assert_called_once_with("localhost", 1025)
    smtp.starttls.assert_not_called()
    smtp.auth.assert_called_once()
    smtp.sendmail.assert_called_once()
