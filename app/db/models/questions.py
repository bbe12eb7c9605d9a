from __future__ import annotations

from sqlalchemy import BOOLEAN, BigInteger, ForeignKey, Index, Text
from sqlalchemy import text as sa_text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (Index("idx_questions_material", "material_id"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    material_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("materials.id"), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    is_multiple_choice: Mapped[bool] = mapped_column(
        BOOLEAN, nullable=False, server_default=sa_text("false")
    )
    choices: Mapped[list[dict[str, object]]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=sa_text("'[]'::jsonb"),
    )
    information: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
