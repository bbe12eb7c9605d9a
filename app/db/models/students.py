from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE','BLOCKED','DELETED')",
            name="ck_students_status",
        ),
        UniqueConstraint("phone", name="uq_students_phone"),
        UniqueConstraint("email", name="uq_students_email"),
        Index("idx_students_college", "college_id"),
        Index("idx_students_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    fname: Mapped[str] = mapped_column(String(64), nullable=False)
    lname: Mapped[str] = mapped_column(String(64), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    university_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("universities.id"),
        nullable=True,
    )
    college_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("colleges.id"),
        nullable=True,
    )
    year: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'ACTIVE'"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
