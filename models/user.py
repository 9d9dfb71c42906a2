"""User model definition."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from utils.errors import DuplicateEmail

from . import db


USER_ROLES = ("user", "admin")


class User(db.Model):
    """Represents a registered account."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    is_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    role = db.Column(
        db.Enum(*USER_ROLES, name="user_role"),
        nullable=False,
        default="user",
        server_default=db.text("'user'"),
    )
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @property
    def password(self) -> str:
        raise AttributeError("password is write-only")

    @password.setter
    def password(self, raw_password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(raw_password)

    @classmethod
    def find_by_email(cls, email: str) -> Optional["User"]:
        # Exact match: "A@x.com" and "a@x.com" are different accounts.
        return cls.query.filter_by(email=email).first()

    @classmethod
    def find_by_id(cls, user_id: int) -> Optional["User"]:
        return db.session.get(cls, user_id)

    @classmethod
    def create(cls, name: str, email: str, password: str) -> "User":
        """Persist a new unverified user, refusing an email already in use."""

        if cls.find_by_email(email) is not None:
            raise DuplicateEmail()

        user = cls(name=name, email=email, password=password)
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise DuplicateEmail()
        return user

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return check_password_hash(self.password_hash, password)

    def mark_verified(self) -> None:
        self.is_verified = True
        db.session.commit()

    def update_password(self, raw_password: str) -> None:
        self.password = raw_password
        db.session.commit()

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def verification_state(self) -> str:
        """Return ``verified``, ``pending`` (live OTP outstanding) or ``unverified``."""

        from .one_time_token import EmailVerificationToken

        if self.is_verified:
            return "verified"
        if EmailVerificationToken.find_by_owner(self.id) is not None:
            return "pending"
        return "unverified"

    def to_dict(self, token: str | None = None) -> dict:
        """Serialize the public view of the user."""

        data = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "isVerified": self.is_verified,
        }
        if token is not None:
            data["token"] = token
        return data

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
