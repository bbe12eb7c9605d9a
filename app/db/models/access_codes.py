from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BOOLEAN,
    CHAR,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class AccessCode(Base):
    __tablename__ = "access_codes"
    __table_args__ = (
        CheckConstraint(
            "is_used = (used_at IS NOT NULL)",
            name="ck_access_codes_used_at_consistency",
        ),
        CheckConstraint("value ~ '^[A-Z0-9]{12}$'", name="ck_access_codes_value_format"),
        UniqueConstraint("value", name="uq_access_codes_value"),
        Index("idx_access_codes_pool_used", "code_pool_id", "is_used"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    code_pool_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("code_pools.id"),
        nullable=False,
    )
    value: Mapped[str] = mapped_column(CHAR(12), nullable=False)
    is_used: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, server_default=text("false"))
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
