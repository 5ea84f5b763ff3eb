"""m2_referral_redemptions_append_only

Revision ID: 8d2e4f6a1c37
Revises: 3a7c91e05b2d
Create Date: 2026-10-12 10:15:00.000000
"""

from collections.abc import Sequence

from alembic import op

revision: str = "8d2e4f6a1c37"
down_revision: str | None = "3a7c91e05b2d"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.execute(
        """
        CREATE OR REPLACE FUNCTION fn_referral_redemptions_append_only()
        RETURNS trigger
        LANGUAGE plpgsql
        AS $$
        BEGIN
            RAISE EXCEPTION 'referral_redemptions is append-only';
        END;
        $$;
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_referral_redemptions_append_only
        BEFORE UPDATE OR DELETE ON referral_redemptions
        FOR EACH ROW
        EXECUTE FUNCTION fn_referral_redemptions_append_only();
        """
    )


def downgrade() -> None:
    op.execute(
        "DROP TRIGGER IF EXISTS trg_referral_redemptions_append_only ON referral_redemptions;"
    )
    op.execute("DROP FUNCTION IF EXISTS fn_referral_redemptions_append_only();")
