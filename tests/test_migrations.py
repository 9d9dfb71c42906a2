"""Tests that the Alembic revisions build the schema the models expect."""

from __future__ import annotations

import sqlalchemy as sa
from flask_migrate import downgrade, upgrade

from app import create_app
from conftest import AppTestConfig
from models import db
from models.user import User


def _migrated_app(tmp_path):
    class MigratedConfig(AppTestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'accounts.db'}"

    application = create_app(MigratedConfig)
    with application.app_context():
        upgrade()
    return application


def test_upgrade_creates_account_tables(tmp_path):
    application = _migrated_app(tmp_path)

    with application.app_context():
        inspector = sa.inspect(db.engine)
        tables = set(inspector.get_table_names())
        assert {"users", "email_verification_tokens", "password_reset_tokens"} <= tables

        user_columns = {column["name"] for column in inspector.get_columns("users")}
        assert user_columns == {
            "id",
            "name",
            "email",
            "password_hash",
            "is_verified",
            "role",
            "created_at",
        }

        for table_name in ("email_verification_tokens", "password_reset_tokens"):
            indexes = {ix["name"]: ix for ix in inspector.get_indexes(table_name)}
            owner_index = indexes[f"ix_{table_name}_owner_id"]
            assert owner_index["column_names"] == ["owner_id"]
            assert owner_index["unique"]


def test_migrated_schema_serves_signup(tmp_path):
    application = _migrated_app(tmp_path)
    client = application.test_client()

    response = client.post(
        "/api/user/create", json={"name": "A", "email": "a@x.com", "password": "p1"}
    )

    assert response.status_code == 201
    duplicate = client.post(
        "/api/user/create", json={"name": "B", "email": "a@x.com", "password": "p2"}
    )
    assert duplicate.status_code == 400
    with application.app_context():
        user = User.find_by_email("a@x.com")
        assert user.is_verified is False
        assert user.role == "user"


def test_downgrade_drops_account_tables(tmp_path):
    application = _migrated_app(tmp_path)

    with application.app_context():
        downgrade(revision="base")
        tables = set(sa.inspect(db.engine).get_table_names())

    assert not tables & {"users", "email_verification_tokens", "password_reset_tokens"}
