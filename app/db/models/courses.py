from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (Index("idx_courses_material", "material_id"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    material_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("materials.id"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    promo_video_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
