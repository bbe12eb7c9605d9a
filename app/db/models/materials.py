from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, SmallInteger, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Material(Base):
    __tablename__ = "materials"
    __table_args__ = (Index("idx_materials_college", "college_id"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    college_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("colleges.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    year: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    icon_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
