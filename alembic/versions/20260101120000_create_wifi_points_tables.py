"""create users, wifi_sessions and point_transactions

Revision ID: 20260101120000
Revises:
Create Date: 2026-01-01 12:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20260101120000"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("student_id", sa.String(length=64), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("TRUE"), nullable=False),
        sa.Column("points", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("all_time_points", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("total_time_connected", sa.BigInteger(), server_default=sa.text("0"), nullable=False),
        sa.Column("day_time_connected", sa.BigInteger(), server_default=sa.text("0"), nullable=False),
        sa.Column("week_time_connected", sa.BigInteger(), server_default=sa.text("0"), nullable=False),
        sa.Column("month_time_connected", sa.BigInteger(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_day_reset", sa.DateTime(), nullable=True),
        sa.Column("last_week_reset", sa.DateTime(), nullable=True),
        sa.Column("last_month_reset", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("student_id"),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "wifi_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("ssid", sa.String(length=255), nullable=True),
        sa.Column("bssid", sa.String(length=64), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("location_accuracy", sa.Float(), nullable=True),
        sa.Column("location_timestamp", sa.DateTime(), nullable=True),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=True),
        sa.Column("duration", sa.BigInteger(), server_default=sa.text("0"), nullable=False),
        sa.Column("points_earned", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("TRUE"), nullable=False),
        sa.Column("session_date", sa.DateTime(), nullable=False),
        sa.Column("source", sa.String(length=32), server_default=sa.text("'foreground'"), nullable=False),
        sa.Column("background_session_id", sa.String(length=128), nullable=True),
        sa.Column("meta", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("background_session_id"),
    )
    op.create_index("ix_wifi_sessions_id", "wifi_sessions", ["id"], unique=False)
    op.create_index("ix_wifi_sessions_user_id", "wifi_sessions", ["user_id"], unique=False)
    op.create_index("ix_wifi_sessions_user_active", "wifi_sessions", ["user_id", "is_active"], unique=False)
    op.create_index("ix_wifi_sessions_user_date", "wifi_sessions", ["user_id", "session_date"], unique=False)
    op.create_index("ix_wifi_sessions_active_start", "wifi_sessions", ["is_active", "start_time"], unique=False)
    op.create_index(
        "uq_wifi_sessions_one_active_per_user",
        "wifi_sessions",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active"),
    )

    op.create_table(
        "point_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("session_start_time", sa.DateTime(), nullable=True),
        sa.Column("session_end_time", sa.DateTime(), nullable=True),
        sa.Column("meta", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id",
            "type",
            "session_start_time",
            "session_end_time",
            name="uq_point_transactions_session_interval",
        ),
    )
    op.create_index("ix_point_transactions_id", "point_transactions", ["id"], unique=False)
    op.create_index("ix_point_transactions_user_id", "point_transactions", ["user_id"], unique=False)
    op.create_index(
        "ix_point_transactions_user_created",
        "point_transactions",
        ["user_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_point_transactions_user_created", table_name="point_transactions")
    op.drop_index("ix_point_transactions_user_id", table_name="point_transactions")
    op.drop_index("ix_point_transactions_id", table_name="point_transactions")
    op.drop_table("point_transactions")

    op.drop_index("uq_wifi_sessions_one_active_per_user", table_name="wifi_sessions")
    op.drop_index("ix_wifi_sessions_active_start", table_name="wifi_sessions")
    op.drop_index("ix_wifi_sessions_user_date", table_name="wifi_sessions")
    op.drop_index("ix_wifi_sessions_user_active", table_name="wifi_sessions")
    op.drop_index("ix_wifi_sessions_user_id", table_name="wifi_sessions")
    op.drop_index("ix_wifi_sessions_id", table_name="wifi_sessions")
    op.drop_table("wifi_sessions")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
