"""HTTP errors raised by the account flows and the JSON envelope they render to."""

from __future__ import annotations

import uuid
from http import HTTPStatus

from flask import g, jsonify
from werkzeug.exceptions import BadRequest


class DuplicateEmail(BadRequest):
    """Signup with an email that is already registered."""

    name = "Conflict"
    description = "This email is already in use!"


class TokenAlreadyIssued(BadRequest):
    """A live one-time token already exists for the owner."""

    name = "Conflict"
    description = "Only after one hour you can request for another token!"


class PasswordReused(BadRequest):
    """A reset attempted to set the password the user already has."""

    name = "Conflict"
    description = "The new password must be different from the old one!"


class InvalidCredential(BadRequest):
    """An OTP, reset secret or password did not match."""

    name = "Invalid Credential"
    description = "Invalid credentials."


def current_request_id() -> str:
    return g.get("request_id") or str(uuid.uuid4())


def error_response(status: int, error: str, message: str):
    """Build the JSON error envelope shared by every failure path."""

    request_id = current_request_id()
    response = jsonify({"error": error, "message": message, "request_id": request_id})
    response.status_code = int(status)
    response.headers.setdefault("X-Request-ID", request_id)
    return response

