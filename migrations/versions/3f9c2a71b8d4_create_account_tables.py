"""Create user and one-time token tables."""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f9c2a71b8d4"
down_revision = None
branch_labels = None
depends_on = None


USER_ROLE_ENUM = "user_role"
USER_ROLE_VALUES = ("user", "admin")
TOKEN_TABLES = ("email_verification_tokens", "password_reset_tokens")


def upgrade() -> None:
    """Create the accounts schema."""

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column(
            "is_verified",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column(
            "role",
            sa.Enum(*USER_ROLE_VALUES, name=USER_ROLE_ENUM),
            nullable=False,
            server_default=sa.text("'user'"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    for table_name in TOKEN_TABLES:
        op.create_table(
            table_name,
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("owner_id", sa.Integer(), nullable=False),
            sa.Column("token", sa.String(length=255), nullable=False),
            sa.Column(
                "created_at",
                sa.DateTime(),
                nullable=False,
                server_default=sa.func.now(),
            ),
            sa.PrimaryKeyConstraint("id"),
        )
        # One live token per owner; racing inserts fail on this index.
        op.create_index(
            op.f(f"ix_{table_name}_owner_id"), table_name, ["owner_id"], unique=True
        )


def downgrade() -> None:
    """Drop the accounts schema."""

    for table_name in reversed(TOKEN_TABLES):
        op.drop_index(op.f(f"ix_{table_name}_owner_id"), table_name=table_name)
        op.drop_table(table_name)

    op.drop_table("users")
    sa.Enum(name=USER_ROLE_ENUM).drop(op.get_bind(), checkfirst=True)
