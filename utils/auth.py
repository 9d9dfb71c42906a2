"""Bearer token authentication and role gates for blueprint views."""

from __future__ import annotations

from functools import wraps

from flask import g, request
from flask_jwt_extended import JWTManager
from werkzeug.exceptions import Forbidden, Unauthorized

from models.user import User
from utils.tokens import verify_bearer_token

jwt = JWTManager()

BEARER_PREFIX = "Bearer "


def authenticate_request() -> User:
    """Resolve the user behind the request's ``Authorization`` header."""

    header = request.headers.get("Authorization")
    if not header:
        raise Unauthorized("Invalid token!")

    if not header.startswith(BEARER_PREFIX):
        raise Unauthorized("Invalid token!")
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthorized("Invalid token!")

    claims = verify_bearer_token(token)
    user = User.find_by_id(claims["user_id"])
    if user is None:
        raise Unauthorized("unauthorized access!")

    g.user = user
    return user


def auth_required(view):
    """Reject the request unless it carries a valid bearer token for a live user."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        authenticate_request()
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    """Run ``auth_required`` and then require the admin role."""

    @wraps(view)
    @auth_required
    def wrapper(*args, **kwargs):
        if not g.user.is_admin:
            raise Forbidden("unauthorized access!")
        return view(*args, **kwargs)

    return wrapper
