"""m1_referral_core_data_model

Revision ID: 3a7c91e05b2d
Revises:
Create Date: 2026-10-12 09:30:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "3a7c91e05b2d"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "is_referral_activated",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
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
    )
    op.create_index("idx_users_referral_activated", "users", ["is_referral_activated"])
    op.create_index("idx_users_created_at", "users", ["created_at"])

    op.create_table(
        "general_referral_codes",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "length(btrim(code)) > 0",
            name="ck_general_referral_codes_code_not_blank",
        ),
    )
    op.create_index(
        "idx_general_referral_codes_created_at",
        "general_referral_codes",
        ["created_at"],
    )
    op.create_index(
        "uq_general_referral_codes_code_lower",
        "general_referral_codes",
        [sa.text("lower(code)")],
        unique=True,
    )

    op.create_table(
        "personal_referral_codes",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("owner_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("code", sa.String(16), nullable=False),
        sa.Column(
            "is_activated",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("code = upper(code)", name="ck_personal_referral_codes_code_upper"),
        sa.ForeignKeyConstraint(["owner_user_id"], ["users.id"]),
    )
    op.create_index(
        "idx_personal_referral_codes_owner_created",
        "personal_referral_codes",
        ["owner_user_id", "created_at", "id"],
    )
    op.create_index(
        "idx_personal_referral_codes_unactivated",
        "personal_referral_codes",
        ["id"],
        postgresql_where=sa.text("is_activated = false"),
    )
    op.create_index(
        "uq_personal_referral_codes_code_lower",
        "personal_referral_codes",
        [sa.text("lower(code)")],
        unique=True,
    )

    op.create_table(
        "referral_redemptions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("redeemed_by_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("code_type", sa.String(16), nullable=False),
        sa.Column("code_id", sa.BigInteger(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "code_type IN ('GENERAL','PERSONAL')",
            name="ck_referral_redemptions_code_type",
        ),
        sa.ForeignKeyConstraint(["redeemed_by_user_id"], ["users.id"]),
    )
    op.create_index(
        "uq_referral_redemptions_redeemed_by",
        "referral_redemptions",
        ["redeemed_by_user_id"],
        unique=True,
    )
    op.create_index(
        "uq_referral_redemptions_personal_code",
        "referral_redemptions",
        ["code_id"],
        unique=True,
        postgresql_where=sa.text("code_type = 'PERSONAL'"),
    )
    op.create_index(
        "idx_referral_redemptions_general_code",
        "referral_redemptions",
        ["code_id"],
        postgresql_where=sa.text("code_type = 'GENERAL'"),
    )
    op.create_index("idx_referral_redemptions_created_at", "referral_redemptions", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_referral_redemptions_created_at", table_name="referral_redemptions")
    op.drop_index("idx_referral_redemptions_general_code", table_name="referral_redemptions")
    op.drop_index("uq_referral_redemptions_personal_code", table_name="referral_redemptions")
    op.drop_index("uq_referral_redemptions_redeemed_by", table_name="referral_redemptions")
    op.drop_table("referral_redemptions")

    op.drop_index("uq_personal_referral_codes_code_lower", table_name="personal_referral_codes")
    op.drop_index("idx_personal_referral_codes_unactivated", table_name="personal_referral_codes")
    op.drop_index("idx_personal_referral_codes_owner_created", table_name="personal_referral_codes")
    op.drop_table("personal_referral_codes")

    op.drop_index("uq_general_referral_codes_code_lower", table_name="general_referral_codes")
    op.drop_index("idx_general_referral_codes_created_at", table_name="general_referral_codes")
    op.drop_table("general_referral_codes")

    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_index("idx_users_referral_activated", table_name="users")
    op.drop_table("users")
