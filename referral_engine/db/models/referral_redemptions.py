from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, String, event, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from referral_engine.db.models.base import Base

CODE_TYPE_GENERAL = "GENERAL"
CODE_TYPE_PERSONAL = "PERSONAL"


class ReferralRedemption(Base):
    """Append-only; UPDATE and DELETE are rejected by the ORM and by a table trigger."""

    __tablename__ = "referral_redemptions"
    __table_args__ = (
        CheckConstraint(
            "code_type IN ('GENERAL','PERSONAL')",
            name="ck_referral_redemptions_code_type",
        ),
        Index("uq_referral_redemptions_redeemed_by", "redeemed_by_user_id", unique=True),
        Index(
            "uq_referral_redemptions_personal_code",
            "code_id",
            unique=True,
            postgresql_where=text("code_type = 'PERSONAL'"),
        ),
        Index(
            "idx_referral_redemptions_general_code",
            "code_id",
            postgresql_where=text("code_type = 'GENERAL'"),
        ),
        Index("idx_referral_redemptions_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    redeemed_by_user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
    )
    code_type: Mapped[str] = mapped_column(String(16), nullable=False)
    # Points into general_referral_codes or personal_referral_codes depending on code_type.
    code_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


@event.listens_for(ReferralRedemption, "before_update")
def _reject_update(mapper, connection, target: ReferralRedemption) -> None:
    raise ValueError("referral_redemptions is append-only")


@event.listens_for(ReferralRedemption, "before_delete")
def _reject_delete(mapper, connection, target: ReferralRedemption) -> None:
    raise ValueError("referral_redemptions is append-only")
