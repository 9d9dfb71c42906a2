"""Tests for the best-effort mail dispatcher."""

from __future__ import annotations

import logging
import smtplib
import threading

import pytest

from utils import mail
from utils.mail import Message, SMTPSettings, deliver, mailer

SETTINGS = SMTPSettings(
    host="smtp.test", port=2525, username="user", password="secret", use_tls=True
)
MESSAGE = Message(
    sender="verification@reviewapp.com",
    recipient="a@x.com",
    subject="Email Verification",
    html="<h1>123456</h1>",
)


class _RecordingSMTP:
    instances: list["_RecordingSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls: list[tuple] = []
        _RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append(("starttls",))

    def login(self, username, password):
        self.calls.append(("login", username, password))

    def sendmail(self, sender, recipients, body):
        self.calls.append(("sendmail", sender, recipients, body))


class _RefusingSMTP:
    def __init__(self, host, port, timeout=None):
        raise ConnectionRefusedError("connection refused")


class _RejectingSMTP(_RecordingSMTP):
    def sendmail(self, sender, recipients, body):
        raise smtplib.SMTPRecipientsRefused({recipients[0]: (550, b"no such user")})


class _BlockingSMTP(_RecordingSMTP):
    release = threading.Event()

    def sendmail(self, sender, recipients, body):
        _BlockingSMTP.release.wait(timeout=5)
        super().sendmail(sender, recipients, body)


@pytest.fixture(autouse=True)
def _reset_recorder():
    _RecordingSMTP.instances = []


def test_deliver_sends_html_message(monkeypatch):
    monkeypatch.setattr(mail.smtplib, "SMTP", _RecordingSMTP)

    assert deliver(SETTINGS, MESSAGE) is True

    server = _RecordingSMTP.instances[0]
    assert (server.host, server.port) == ("smtp.test", 2525)
    assert server.calls[0] == ("starttls",)
    assert server.calls[1] == ("login", "user", "secret")
    _, sender, recipients, body = server.calls[2]
    assert sender == "verification@reviewapp.com"
    assert recipients == ["a@x.com"]
    assert "Subject: Email Verification" in body


@pytest.mark.parametrize("smtp_class", [_RefusingSMTP, _RejectingSMTP])
def test_deliver_failure_is_logged_not_raised(monkeypatch, caplog, smtp_class):
    monkeypatch.setattr(mail.smtplib, "SMTP", smtp_class)

    with caplog.at_level(logging.ERROR, logger="utils.mail"):
        assert deliver(SETTINGS, MESSAGE) is False

    assert "Mail delivery failed to='a@x.com'" in caplog.text


def test_header_injection_in_recipient_is_logged_not_sent(monkeypatch, caplog):
    monkeypatch.setattr(mail.smtplib, "SMTP", _RecordingSMTP)
    message = Message(
        sender="verification@reviewapp.com",
        recipient="a@x.com\nBcc: evil@y.com",
        subject="Email Verification",
        html="<h1>123456</h1>",
    )

    with caplog.at_level(logging.ERROR, logger="utils.mail"):
        assert deliver(SETTINGS, message) is False

    assert "Mail delivery failed" in caplog.text
    sent = [call for server in _RecordingSMTP.instances for call in server.calls if call[0] == "sendmail"]
    assert sent == []


def test_suppressed_send_records_outbox(app, mail_outbox):
    with app.app_context():
        result = mailer.send("from@x.com", "to@x.com", "Hi", "<p>hi</p>")

    assert result is None
    assert mail_outbox == [Message("from@x.com", "to@x.com", "Hi", "<p>hi</p>")]


def test_send_dispatches_in_background(app, monkeypatch):
    monkeypatch.setattr(mail.smtplib, "SMTP", _RecordingSMTP)
    app.config["MAIL_SUPPRESS_SEND"] = False

    with app.app_context():
        future = mailer.send("from@x.com", "to@x.com", "Hi", "<p>hi</p>")

    assert future.result(timeout=5) is True
    assert _RecordingSMTP.instances[0].calls[-1][0] == "sendmail"


def test_failed_dispatch_does_not_fail_request(app, client, monkeypatch):
    monkeypatch.setattr(mail.smtplib, "SMTP", _RefusingSMTP)
    app.config["MAIL_SUPPRESS_SEND"] = False

    response = client.post(
        "/api/user/create", json={"name": "A", "email": "a@x.com", "password": "p1"}
    )

    assert response.status_code == 201
    app.extensions["mailer"].executor.shutdown(wait=True)


def test_send_drops_messages_when_queue_is_full(app, monkeypatch, caplog):
    monkeypatch.setattr(mail.smtplib, "SMTP", _BlockingSMTP)
    _BlockingSMTP.release = threading.Event()
    app.config.update(MAIL_SUPPRESS_SEND=False, MAIL_QUEUE_SIZE=1)
    mailer.init_app(app)

    with app.app_context(), caplog.at_level(logging.WARNING, logger="utils.mail"):
        first = mailer.send("from@x.com", "one@x.com", "Hi", "<p>1</p>")
        second = mailer.send("from@x.com", "two@x.com", "Hi", "<p>2</p>")

    _BlockingSMTP.release.set()
    assert first.result(timeout=5) is True
    assert second is None
    assert "Mail queue full, dropped to='two@x.com'" in caplog.text

    with app.app_context():
        third = mailer.send("from@x.com", "three@x.com", "Hi", "<p>3</p>")
    assert third.result(timeout=5) is True
    app.extensions["mailer"].executor.shutdown(wait=True)
