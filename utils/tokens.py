"""One-time code, reset secret and bearer token helpers."""

from __future__ import annotations

import random
import secrets

from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import InvalidTokenError
from werkzeug.exceptions import Unauthorized

RESET_SECRET_BYTES = 30


def generate_otp(length: int = 6) -> str:
    """Return ``length`` independently drawn decimal digits.

    Uses the non-cryptographic ``random`` module; an OTP is short-lived and
    only one can be outstanding per user.
    """

    return "".join(str(random.randint(0, 9)) for _ in range(length))


def generate_random_secret(nbytes: int = RESET_SECRET_BYTES) -> str:
    """Return a hex secret for password reset links."""

    return secrets.token_hex(nbytes)


def issue_bearer_token(user_id: int) -> str:
    """Sign an access token whose subject is the user id."""

    return create_access_token(identity=str(user_id))


def verify_bearer_token(token: str) -> dict:
    """Check the token signature and return ``{"user_id": ...}``."""

    try:
        claims = decode_token(token)
    except (InvalidTokenError, JWTExtendedException) as exc:
        raise Unauthorized("Invalid token!") from exc

    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise Unauthorized("Invalid token!") from exc
    return {"user_id": user_id}
