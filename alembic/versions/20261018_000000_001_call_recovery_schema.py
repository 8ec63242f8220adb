"""Call recovery schema: checkouts, call jobs, shop settings.

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

checkout_status = postgresql.ENUM(
    "open", "abandoned", "converted", "recovered", name="checkout_status", create_type=False
)
call_job_status = postgresql.ENUM(
    "queued", "calling", "completed", "failed", "canceled", name="call_job_status", create_type=False
)


def _timestamps() -> list[sa.Column]:  # type: ignore[type-arg]
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    op.execute("CREATE TYPE checkout_status AS ENUM ('open', 'abandoned', 'converted', 'recovered')")
    op.execute(
        "CREATE TYPE call_job_status AS ENUM "
        "('queued', 'calling', 'completed', 'failed', 'canceled')"
    )

    # Checkouts
    op.create_table(
        "checkouts",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("shop", sa.String(255), nullable=False),
        sa.Column("checkout_id", sa.String(255), nullable=False),
        sa.Column("token", sa.String(255), nullable=True),
        sa.Column("status", checkout_status, nullable=False, server_default="open"),
        sa.Column("value", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("abandoned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("items", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("raw", postgresql.JSONB(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_checkouts")),
        sa.UniqueConstraint("shop", "checkout_id", name="uq_checkouts_shop_checkout"),
    )
    op.create_index(op.f("ix_checkouts_shop"), "checkouts", ["shop"])
    op.create_index("ix_checkouts_shop_status", "checkouts", ["shop", "status"])

    # Call jobs
    op.create_table(
        "call_jobs",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("shop", sa.String(255), nullable=False),
        sa.Column("checkout_id", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", call_job_status, nullable=False, server_default="queued"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("outcome", sa.String(64), nullable=True),
        sa.Column("provider_call_id", sa.String(255), nullable=True),
        sa.Column("recording_url", sa.String(2048), nullable=True),
        sa.Column("ended_reason", sa.String(255), nullable=True),
        sa.Column("transcript", sa.Text(), nullable=True),
        sa.Column("attributed_order_id", sa.String(255), nullable=True),
        sa.Column("attributed_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("attributed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_call_jobs")),
    )
    # At most one in-flight job per checkout
    op.create_index(
        "uq_call_jobs_in_flight",
        "call_jobs",
        ["shop", "checkout_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('queued', 'calling')"),
    )
    op.create_index(
        "ix_call_jobs_shop_checkout_created",
        "call_jobs",
        ["shop", "checkout_id", "created_at"],
    )
    op.create_index(
        "ix_call_jobs_status_scheduled_for",
        "call_jobs",
        ["status", "scheduled_for"],
    )

    # Shop settings
    op.create_table(
        "shop_settings",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("shop", sa.String(255), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("delay_minutes", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("max_attempts", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("retry_minutes", sa.Integer(), nullable=False, server_default="180"),
        sa.Column("min_order_value", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("call_window_start", sa.String(5), nullable=False, server_default="09:00"),
        sa.Column("call_window_end", sa.String(5), nullable=False, server_default="19:00"),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("shopify_access_token", sa.String(1024), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_shop_settings")),
        sa.UniqueConstraint("shop", name=op.f("uq_shop_settings_shop")),
    )


def downgrade() -> None:
    op.drop_table("shop_settings")
    op.drop_index("ix_call_jobs_status_scheduled_for", table_name="call_jobs")
    op.drop_index("ix_call_jobs_shop_checkout_created", table_name="call_jobs")
    op.drop_index("uq_call_jobs_in_flight", table_name="call_jobs")
    op.drop_table("call_jobs")
    op.drop_index("ix_checkouts_shop_status", table_name="checkouts")
    op.drop_index(op.f("ix_checkouts_shop"), table_name="checkouts")
    op.drop_table("checkouts")
    op.execute("DROP TYPE call_job_status")
    op.execute("DROP TYPE checkout_status")
