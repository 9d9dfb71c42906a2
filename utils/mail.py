"""Best-effort outbound mail.

``Mailer.send`` hands each message to a small thread pool and returns at once.
Delivery failures are logged and otherwise dropped: there is no retry and the
caller never learns the outcome. With ``MAIL_SUPPRESS_SEND`` enabled messages
are recorded on the per-app outbox instead of being delivered.
"""

from __future__ import annotations

import logging
import smtplib
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from email.mime.text import MIMEText

from flask import Flask, current_app

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Message:
    sender: str
    recipient: str
    subject: str
    html: str


@dataclass(frozen=True)
class SMTPSettings:
    host: str
    port: int
    username: str | None
    password: str | None
    use_tls: bool

    @classmethod
    def from_config(cls, config) -> "SMTPSettings":
        return cls(
            host=config["MAIL_SERVER"],
            port=int(config["MAIL_PORT"]),
            username=config.get("MAIL_USERNAME"),
            password=config.get("MAIL_PASSWORD"),
            use_tls=bool(config.get("MAIL_USE_TLS")),
        )


class _MailState:
    def __init__(self, app: Flask):
        self.executor = ThreadPoolExecutor(
            max_workers=int(app.config["MAIL_MAX_WORKERS"]),
            thread_name_prefix="mailer",
        )
        # Caps queued plus in-flight deliveries; sends beyond it are dropped.
        self.slots = threading.BoundedSemaphore(int(app.config["MAIL_QUEUE_SIZE"]))
        self.outbox: list[Message] = []


def deliver(settings: SMTPSettings, message: Message) -> bool:
    """Send one message over SMTP, logging instead of raising on failure."""

    try:
        mime = MIMEText(message.html, "html", "utf-8")
        mime["Subject"] = message.subject
        mime["From"] = message.sender
        mime["To"] = message.recipient

        with smtplib.SMTP(settings.host, settings.port, timeout=15) as server:
            if settings.use_tls:
                server.starttls()
            if settings.username and settings.password:
                server.login(settings.username, settings.password)
            server.sendmail(message.sender, [message.recipient], mime.as_string())
    except Exception:
        logger.exception(
            "Mail delivery failed to=%r subject=%r", message.recipient, message.subject
        )
        return False

    logger.info("Mail delivered to=%r subject=%r", message.recipient, message.subject)
    return True


class Mailer:
    """Flask extension owning the dispatch pool."""

    def __init__(self, app: Flask | None = None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        app.config.setdefault("MAIL_SUPPRESS_SEND", False)
        app.config.setdefault("MAIL_MAX_WORKERS", 2)
        app.config.setdefault("MAIL_QUEUE_SIZE", 100)
        app.extensions["mailer"] = _MailState(app)

    @property
    def outbox(self) -> list[Message]:
        return current_app.extensions["mailer"].outbox

    def send(self, sender: str, to: str, subject: str, html: str) -> Future | None:
        """Queue a message for delivery without waiting for it.

        Returns ``None`` when sending is suppressed or the queue is full.
        """

        app = current_app._get_current_object()
        state: _MailState = app.extensions["mailer"]
        message = Message(sender=sender, recipient=to, subject=subject, html=html)

        if app.config["MAIL_SUPPRESS_SEND"]:
            state.outbox.append(message)
            app.logger.debug("Mail suppressed to=%r subject=%r", to, subject)
            return None

        if not state.slots.acquire(blocking=False):
            logger.warning("Mail queue full, dropped to=%r subject=%r", to, subject)
            return None

        settings = SMTPSettings.from_config(app.config)

        def dispatch() -> bool:
            try:
                return deliver(settings, message)
            finally:
                state.slots.release()

        return state.executor.submit(dispatch)


mailer = Mailer()


def send_verification_otp(email: str, otp: str) -> None:
    mailer.send(
        current_app.config["MAIL_VERIFICATION_SENDER"],
        email,
        "Email Verification",
        f"""
      <p>Your verification OTP</p>
      <h1>{otp}</h1>
    """,
    )


def send_welcome(email: str) -> None:
    mailer.send(
        current_app.config["MAIL_VERIFICATION_SENDER"],
        email,
        "Welcome Email",
        "<h1>Welcome to our app and thanks for choosing us.</h1>",
    )


def send_reset_link(email: str, reset_url: str) -> None:
    mailer.send(
        current_app.config["MAIL_SECURITY_SENDER"],
        email,
        "Reset Password Link",
        f"""
      <p>Click here to reset password</p>
      <a href='{reset_url}'>Change Password</a>
    """,
    )


def send_reset_confirmation(email: str) -> None:
    mailer.send(
        current_app.config["MAIL_SECURITY_SENDER"],
        email,
        "Password Reset Successfully",
        """
      <h1>Password Reset Successfully</h1>
      <p>Now you can use new password.</p>
    """,
    )
