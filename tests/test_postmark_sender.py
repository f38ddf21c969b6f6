import json

import pytest
import responses

from email_dispatch.config import Config
from email_dispatch.errors import API, MailError
from email_dispatch.mailer.postmark_sender import ENDPOINT, PostmarkSender
from email_dispatch.models import Attachment, Transmission


@responses.activate
def test_send_success(config: Config, transmission: Transmission) -> None:
    responses.add(
        responses.POST,
        ENDPOINT,
        json={
            "To": "r@x",
            "SubmittedAt": "2024-01-01T00:00:00Z",
            "MessageID": "b7bc2f4a",
            "ErrorCode": 0,
            "Message": "OK",
        },
        status=200,
    )

    result = PostmarkSender(config).send(transmission)

    assert result.id == "b7bc2f4a"
    assert result.message == "OK"

    request = responses.calls[0].request
    assert request.headers["X-Postmark-Server-Token"] == "k"
    assert request.headers["Accept"] == "application/json"
    assert json.loads(request.body) == {
        "From": "N <a@b.c>",
        "To": "r@x",
        "Subject": "S",
        "HtmlBody": "<h1>H</h1>",
        "MessageStream": "outbound",
    }


@responses.activate
def test_optional_fields(config: Config) -> None:
    responses.add(responses.POST, ENDPOINT, json={"MessageID": "1", "ErrorCode": 0})
    tx = Transmission(
        recipients=["r@x", "s@x"],
        subject="S",
        html="<h1>H</h1>",
        plain_text="H",
        cc=["c@x"],
        bcc=["b@x", "d@x"],
        headers={"X-Campaign": "spring"},
        attachments=[Attachment("a.pdf", b"%PDF-1.4")],
    )

    PostmarkSender(config).send(tx)

    sent = json.loads(responses.calls[0].request.body)
    assert sent["To"] == "r@x,s@x"
    assert sent["Cc"] == "c@x"
    assert sent["Bcc"] == "b@x,d@x"
    assert sent["TextBody"] == "H"
    assert sent["Headers"] == [{"Name": "X-Campaign", "Value": "spring"}]
    assert sent["Attachments"] == [
        {"Name": "a.pdf", "Content": "JVBERi0xLjQ=", "ContentType": "application/pdf"}
    ]


@responses.activate
def test_validation_error_keeps_response(config: Config, transmission: Transmission) -> None:
    body = b'{"ErrorCode":10,"Message":"Invalid token"}'
    responses.add(responses.POST, ENDPOINT, body=body, status=422)

    with pytest.raises(MailError) as exc:
        PostmarkSender(config).send(transmission)

    assert exc.value.kind == API
    assert "code: 10, message: Invalid token" in str(exc.value)
    assert exc.value.response is not None
    assert exc.value.response.status_code == 422
    assert exc.value.response.body == body


@responses.activate
def test_server_error_without_error_code(config: Config, transmission: Transmission) -> None:
    responses.add(responses.POST, ENDPOINT, json={}, status=500)

    with pytest.raises(MailError) as exc:
        PostmarkSender(config).send(transmission)

    assert exc.value.kind == API
    assert exc.value.response is not None
    assert exc.value.response.status_code == 500
