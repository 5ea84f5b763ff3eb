from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from referral_engine.db.models.base import Base


class GeneralReferralCode(Base):
    __tablename__ = "general_referral_codes"
    __table_args__ = (
        CheckConstraint("length(btrim(code)) > 0", name="ck_general_referral_codes_code_not_blank"),
        Index("idx_general_referral_codes_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


Index(
    "uq_general_referral_codes_code_lower",
    func.lower(GeneralReferralCode.code),
    unique=True,
)
