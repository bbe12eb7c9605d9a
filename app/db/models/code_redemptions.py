from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CHAR, BigInteger, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class CodeRedemption(Base):
    __tablename__ = "code_redemptions"
    __table_args__ = (
        UniqueConstraint("student_id", "code_pool_id", name="uq_code_redemptions_student_pool"),
        UniqueConstraint("access_code_id", name="uq_code_redemptions_access_code"),
        Index("idx_code_redemptions_pool", "code_pool_id"),
        Index("idx_code_redemptions_student_redeemed_at", "student_id", "redeemed_at"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    student_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("students.id"), nullable=False)
    code_pool_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("code_pools.id"),
        nullable=False,
    )
    access_code_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("access_codes.id"),
        nullable=False,
    )
    code_value: Mapped[str] = mapped_column(CHAR(12), nullable=False)
    redeemed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
