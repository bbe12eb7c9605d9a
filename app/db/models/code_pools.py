from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BOOLEAN,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class CodePool(Base):
    __tablename__ = "code_pools"
    __table_args__ = (
        CheckConstraint("expiration > created_at", name="ck_code_pools_expiration_future"),
        CheckConstraint("length(btrim(name)) > 0", name="ck_code_pools_name_not_blank"),
        Index("idx_code_pools_name", "name"),
        Index("idx_code_pools_expiration", "expiration"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    expiration: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class CodePoolMaterial(Base):
    __tablename__ = "code_pool_materials"
    __table_args__ = (
        CheckConstraint(
            "grants_questions OR grants_lectures",
            name="ck_code_pool_materials_grants_something",
        ),
        Index("idx_code_pool_materials_material", "material_id"),
    )

    code_pool_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("code_pools.id"),
        primary_key=True,
    )
    material_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("materials.id"),
        primary_key=True,
    )
    grants_questions: Mapped[bool] = mapped_column(
        BOOLEAN, nullable=False, server_default=text("true")
    )
    grants_lectures: Mapped[bool] = mapped_column(
        BOOLEAN, nullable=False, server_default=text("true")
    )


class CodePoolCourse(Base):
    __tablename__ = "code_pool_courses"
    __table_args__ = (Index("idx_code_pool_courses_course", "course_id"),)

    code_pool_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("code_pools.id"),
        primary_key=True,
    )
    course_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("courses.id"),
        primary_key=True,
    )
