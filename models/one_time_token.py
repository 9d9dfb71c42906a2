"""Single-use tokens bound to a user: email verification OTPs and password reset secrets."""

from __future__ import annotations

import hmac
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from utils.errors import TokenAlreadyIssued

from . import db


class OneTimeTokenMixin:
    """Shared columns and lifecycle for the one-time token tables.

    Each table holds at most one row per owner. ``issue`` checks for a live
    row before inserting, and the unique index on ``owner_id`` rejects the
    second of two racing inserts. Rows older than the configured TTL are
    treated as absent and removed lazily by ``find_by_owner`` or in bulk by
    ``purge_expired``.
    """

    ttl_config_key = ""
    default_ttl_seconds = 3600

    id = db.Column(db.Integer, primary_key=True)
    # Lookup-only reference to users.id; removing a user does not cascade.
    owner_id = db.Column(db.Integer, nullable=False, unique=True, index=True)
    token = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @classmethod
    def ttl(cls) -> timedelta:
        seconds = current_app.config.get(cls.ttl_config_key, cls.default_ttl_seconds)
        return timedelta(seconds=int(seconds))

    @classmethod
    def _cutoff(cls, now: datetime | None = None) -> datetime:
        return (now or datetime.utcnow()) - cls.ttl()

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.created_at <= self._cutoff(now)

    def set_token(self, secret: str) -> None:
        self.token = secret

    def compare_token(self, candidate: str) -> bool:
        raise NotImplementedError

    @classmethod
    def find_by_owner(cls, owner_id: int):
        """Return the owner's live token, deleting it first if it has expired."""

        token = cls.query.filter_by(owner_id=owner_id).first()
        if token is None:
            return None
        if token.is_expired():
            db.session.delete(token)
            db.session.commit()
            return None
        return token

    @classmethod
    def issue(cls, owner_id: int, secret: str):
        """Store a new token for ``owner_id`` unless a live one already exists."""

        if cls.find_by_owner(owner_id) is not None:
            raise TokenAlreadyIssued()

        token = cls(owner_id=owner_id)
        token.set_token(secret)
        db.session.add(token)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.warning(
                "Concurrent %s issue for owner %s rejected", cls.__tablename__, owner_id
            )
            raise TokenAlreadyIssued()
        return token

    def consume(self) -> None:
        db.session.delete(self)
        db.session.commit()

    @classmethod
    def purge_expired(cls, now: datetime | None = None) -> int:
        """Delete every expired row and return how many were removed."""

        removed = cls.query.filter(cls.created_at <= cls._cutoff(now)).delete(
            synchronize_session=False
        )
        db.session.commit()
        return removed


class EmailVerificationToken(OneTimeTokenMixin, db.Model):
    """Numeric OTP mailed at signup; only its hash is stored."""

    __tablename__ = "email_verification_tokens"

    ttl_config_key = "EMAIL_VERIFICATION_TOKEN_TTL"

    def set_token(self, secret: str) -> None:
        self.token = generate_password_hash(secret)

    def compare_token(self, candidate: str) -> bool:
        return check_password_hash(self.token, candidate)

    def __repr__(self) -> str:
        return f"<EmailVerificationToken owner_id={self.owner_id}>"


class PasswordResetToken(OneTimeTokenMixin, db.Model):
    """Random secret embedded in the reset link, stored as issued."""

    __tablename__ = "password_reset_tokens"

    ttl_config_key = "PASSWORD_RESET_TOKEN_TTL"

    def compare_token(self, candidate: str) -> bool:
        return hmac.compare_digest(self.token.encode(), candidate.encode())

    def __repr__(self) -> str:
        return f"<PasswordResetToken owner_id={self.owner_id}>"

