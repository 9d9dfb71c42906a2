"""Account blueprint: signup, email verification, password reset and sign-in."""

from __future__ import annotations

from functools import wraps
from http import HTTPStatus
from urllib.parse import urlencode

from flask import Blueprint, current_app, g, jsonify, request
from werkzeug.exceptions import BadRequest, NotFound

from models.one_time_token import EmailVerificationToken, PasswordResetToken
from models.user import User
from utils.auth import auth_required
from utils.errors import InvalidCredential, PasswordReused
from utils.mail import (
    send_reset_confirmation,
    send_reset_link,
    send_verification_otp,
    send_welcome,
)
from utils.request_validation import (
    get_email,
    get_text,
    parse_json_request,
    parse_user_id,
)
from utils.tokens import generate_otp, generate_random_secret, issue_bearer_token

user_bp = Blueprint("user", __name__)


def _get_password(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise BadRequest(f"{key} is missing!")
    return value


def _get_user_or_404(user_id: int) -> User:
    user = User.find_by_id(user_id)
    if user is None:
        raise NotFound("user not found!")
    return user


def _issue_verification_otp(user: User) -> None:
    otp = generate_otp(current_app.config["OTP_LENGTH"])
    EmailVerificationToken.issue(user.id, otp)
    send_verification_otp(user.email, otp)


def reset_token_required(view):
    """Validate the ``token``/``userId`` pair from a reset link.

    The matching ``PasswordResetToken`` is stored on ``g.reset_token``.
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        payload = parse_json_request(request, required_keys=("token", "userId"))
        secret = get_text(payload, "token")
        user_id = parse_user_id(payload.get("userId"))

        reset_token = PasswordResetToken.find_by_owner(user_id)
        if reset_token is None:
            raise NotFound("Unauthorized access, invalid request!")
        if not reset_token.compare_token(secret):
            raise InvalidCredential("Unauthorized access, invalid request!")

        g.reset_token = reset_token
        g.payload = payload
        return view(*args, **kwargs)

    return wrapper


@user_bp.route("/create", methods=["POST"])
def create():
    """Register a user and mail them a verification OTP."""

    payload = parse_json_request(request, required_keys=("name", "email", "password"))
    name = get_text(payload, "name")
    email = get_email(payload)
    password = _get_password(payload, "password")

    user = User.create(name=name, email=email, password=password)
    _issue_verification_otp(user)
    current_app.logger.info("User %s registered, verification OTP issued", user.id)

    return (
        jsonify({"user": {"id": user.id, "name": user.name, "email": user.email}}),
        HTTPStatus.CREATED,
    )


@user_bp.route("/verify-email", methods=["POST"])
def verify_email():
    """Match a submitted OTP, mark the user verified and sign them in."""

    payload = parse_json_request(request, required_keys=("userId", "OTP"))
    user_id = parse_user_id(payload.get("userId"))
    otp = get_text(payload, "OTP", strip=False)

    user = _get_user_or_404(user_id)
    if user.is_verified:
        raise BadRequest("user is already verified!")

    token = EmailVerificationToken.find_by_owner(user.id)
    if token is None:
        raise NotFound("token not found!")

    if not token.compare_token(otp):
        raise InvalidCredential("Please submit a valid OTP!")

    user.mark_verified()
    token.consume()
    send_welcome(user.email)
    current_app.logger.info("User %s verified email", user.id)

    return jsonify(
        {
            "user": user.to_dict(token=issue_bearer_token(user.id)),
            "message": "Your email is verified.",
        }
    )


@user_bp.route("/resend-email-verification-token", methods=["POST"])
def resend_email_verification_token():
    """Issue a fresh OTP once the previous one has expired or been used."""

    payload = parse_json_request(request, required_keys=("userId",))
    user = _get_user_or_404(parse_user_id(payload.get("userId")))

    if user.is_verified:
        raise BadRequest("This email id is already verified!")

    _issue_verification_otp(user)

    return jsonify({"message": "New OTP has been sent to your registered email account."})


@user_bp.route("/forget-password", methods=["POST"])
def forget_password():
    """Mail a password reset link carrying a one-time secret."""

    payload = parse_json_request(request, allow_empty=True)
    email = get_email(payload)
    if not email:
        raise BadRequest("email is missing!")

    user = User.find_by_email(email)
    if user is None:
        raise NotFound("User not found!")

    secret = generate_random_secret()
    PasswordResetToken.issue(user.id, secret)

    query = urlencode({"token": secret, "id": user.id})
    reset_url = f"{current_app.config['RESET_PASSWORD_URL']}?{query}"
    send_reset_link(user.email, reset_url)
    current_app.logger.info("Password reset link issued for user %s", user.id)

    return jsonify({"message": "Link sent to your email!"})


@user_bp.route("/verify-pass-reset-token", methods=["POST"])
@reset_token_required
def send_reset_password_token_status():
    return jsonify({"valid": True})


@user_bp.route("/reset-password", methods=["POST"])
@reset_token_required
def reset_password():
    """Replace the password and consume the reset token."""

    new_password = _get_password(g.payload, "newPassword")
    user = _get_user_or_404(g.reset_token.owner_id)

    if user.check_password(new_password):
        raise PasswordReused()

    user.update_password(new_password)
    g.reset_token.consume()
    send_reset_confirmation(user.email)
    current_app.logger.info("User %s reset password", user.id)

    return jsonify({"message": "Password reset successfully, now you can use new password."})


@user_bp.route("/sign-in", methods=["POST"])
def sign_in():
    """Check email and password and return a bearer token."""

    payload = parse_json_request(request, required_keys=("email", "password"))
    email = get_email(payload)
    password = _get_password(payload, "password")

    user = User.find_by_email(email)
    if user is None:
        raise NotFound("User not found!")

    if not user.check_password(password):
        raise InvalidCredential("Password mismatch!")

    return jsonify({"user": user.to_dict(token=issue_bearer_token(user.id))})


@user_bp.route("/is-auth", methods=["GET"])
@auth_required
def is_auth():
    """Return the user behind the presented bearer token."""

    data = g.user.to_dict()
    data["verificationState"] = g.user.verification_state
    return jsonify({"user": data})
