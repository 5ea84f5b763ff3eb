from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BOOLEAN,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from referral_engine.db.models.base import Base


class PersonalReferralCode(Base):
    __tablename__ = "personal_referral_codes"
    __table_args__ = (
        CheckConstraint("code = upper(code)", name="ck_personal_referral_codes_code_upper"),
        Index("idx_personal_referral_codes_owner_created", "owner_user_id", "created_at", "id"),
        Index(
            "idx_personal_referral_codes_unactivated",
            "id",
            postgresql_where=text("is_activated = false"),
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    owner_user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
    )
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    is_activated: Mapped[bool] = mapped_column(
        BOOLEAN, nullable=False, server_default=text("false")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


Index(
    "uq_personal_referral_codes_code_lower",
    func.lower(PersonalReferralCode.code),
    unique=True,
)
