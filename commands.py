"""Flask CLI commands for token housekeeping and admin bootstrap."""

from __future__ import annotations

import click
from flask import Flask
from flask.cli import with_appcontext

from models import db
from models.one_time_token import EmailVerificationToken, PasswordResetToken
from models.user import User


@click.command("purge-expired-tokens")
@with_appcontext
def purge_expired_tokens() -> None:
    """Delete expired email verification and password reset tokens."""

    for model in (EmailVerificationToken, PasswordResetToken):
        removed = model.purge_expired()
        click.echo(f"{model.__tablename__}: removed {removed}")


@click.command("seed-admin")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", default="Admin", show_default=True)
@with_appcontext
def seed_admin(email: str, password: str, name: str) -> None:
    """Create an administrator, or promote and reset an existing account."""

    admin = User.find_by_email(email)
    if admin is None:
        admin = User(name=name, email=email, role="admin", is_verified=True)
        admin.password = password
        db.session.add(admin)
        action = "created"
    else:
        admin.role = "admin"
        admin.is_verified = True
        admin.password = password
        action = "updated"
    db.session.commit()
    click.echo(f"Admin user {action}: {email}")


def register_commands(app: Flask) -> None:
    app.cli.add_command(purge_expired_tokens)
    app.cli.add_command(seed_admin)
