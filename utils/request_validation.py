"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

from typing import Iterable

from flask import Request
from werkzeug.exceptions import BadRequest


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if _is_blank(data.get(key))]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(
                    ", ".join(sorted(missing))
                )
            )

    return data


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def get_text(data: dict, key: str, *, strip: bool = True) -> str:
    """Return ``data[key]`` as text; numbers are accepted for codes."""

    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise BadRequest(f"{key} must be a string.")
    text = str(value)
    return text.strip() if strip else text


def get_email(data: dict, key: str = "email") -> str:
    """Return a stripped email address, refusing embedded line breaks."""

    value = data.get(key)
    if isinstance(value, str) and ("\r" in value or "\n" in value):
        raise BadRequest("Invalid email!")
    return get_text(data, key)


def parse_user_id(value: object) -> int:
    """Coerce a client supplied user id, rejecting anything non-numeric."""

    if isinstance(value, bool):
        raise BadRequest("Invalid user!")
    try:
        user_id = int(value)
    except (TypeError, ValueError):
        raise BadRequest("Invalid user!")
    if user_id <= 0:
        raise BadRequest("Invalid user!")
    return user_id
