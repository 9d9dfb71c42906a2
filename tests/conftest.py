"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import re
import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402


class AppTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "test-signing-key-0123456789abcdef0123456789"
    MAIL_SUPPRESS_SEND = True
    RESET_PASSWORD_URL = "https://client.example/auth/reset-password"


@pytest.fixture()
def app() -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(AppTestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def mail_outbox(app: Flask) -> list:
    """Messages recorded instead of sent while MAIL_SUPPRESS_SEND is on."""

    return app.extensions["mailer"].outbox


def otp_from(message) -> str:
    match = re.search(r"<h1>(\d+)</h1>", message.html)
    assert match, message.html
    return match.group(1)


def reset_link_params(message) -> dict[str, str]:
    match = re.search(r"\?token=([0-9a-f]+)&id=(\d+)", message.html)
    assert match, message.html
    return {"token": match.group(1), "id": match.group(2)}
