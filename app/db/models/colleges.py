from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, SmallInteger, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class College(Base):
    __tablename__ = "colleges"
    __table_args__ = (Index("idx_colleges_university", "university_id"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    university_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("universities.id"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    num_of_years: Mapped[int] = mapped_column(SmallInteger, nullable=False, server_default=text("5"))
    icon_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
