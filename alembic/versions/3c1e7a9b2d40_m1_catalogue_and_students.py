"""m1_catalogue_and_students

Revision ID: 3c1e7a9b2d40
Revises:
Create Date: 2026-10-12 09:30:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "3c1e7a9b2d40"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "universities",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("icon_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("name", name="uq_universities_name"),
    )

    op.create_table(
        "colleges",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("university_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("num_of_years", sa.SmallInteger(), nullable=False, server_default=sa.text("5")),
        sa.Column("icon_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["university_id"], ["universities.id"]),
    )
    op.create_index("idx_colleges_university", "colleges", ["university_id"])

    op.create_table(
        "materials",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("college_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("year", sa.SmallInteger(), nullable=False),
        sa.Column("color", sa.String(16), nullable=True),
        sa.Column("icon_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["college_id"], ["colleges.id"]),
    )
    op.create_index("idx_materials_college", "materials", ["college_id"])

    op.create_table(
        "courses",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("material_id", sa.BigInteger(), nullable=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("promo_video_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["material_id"], ["materials.id"]),
    )
    op.create_index("idx_courses_material", "courses", ["material_id"])

    op.create_table(
        "lectures",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("material_id", sa.BigInteger(), nullable=False),
        sa.Column("num", sa.Integer(), nullable=False),
        sa.Column("filename", sa.String(255), nullable=True),
        sa.Column("access_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("num > 0", name="ck_lectures_num_positive"),
        sa.ForeignKeyConstraint(["material_id"], ["materials.id"]),
        sa.UniqueConstraint("material_id", "num", name="uq_lectures_material_num"),
    )

    op.create_table(
        "course_files",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("course_id", sa.BigInteger(), nullable=False),
        sa.Column("num", sa.Integer(), nullable=False),
        sa.Column("filename", sa.String(255), nullable=True),
        sa.Column("access_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("num > 0", name="ck_course_files_num_positive"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"]),
        sa.UniqueConstraint("course_id", "num", name="uq_course_files_course_num"),
    )

    op.create_table(
        "videos",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("course_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("public_id", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"]),
    )
    op.create_index("idx_videos_course", "videos", ["course_id"])

    op.create_table(
        "questions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("material_id", sa.BigInteger(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("is_multiple_choice", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "choices",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("information", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["material_id"], ["materials.id"]),
    )
    op.create_index("idx_questions_material", "questions", ["material_id"])

    op.create_table(
        "students",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("fname", sa.String(64), nullable=False),
        sa.Column("lname", sa.String(64), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("university_id", sa.BigInteger(), nullable=True),
        sa.Column("college_id", sa.BigInteger(), nullable=True),
        sa.Column("year", sa.SmallInteger(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'ACTIVE'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("status IN ('ACTIVE','BLOCKED','DELETED')", name="ck_students_status"),
        sa.ForeignKeyConstraint(["university_id"], ["universities.id"]),
        sa.ForeignKeyConstraint(["college_id"], ["colleges.id"]),
        sa.UniqueConstraint("phone", name="uq_students_phone"),
        sa.UniqueConstraint("email", name="uq_students_email"),
    )
    op.create_index("idx_students_college", "students", ["college_id"])
    op.create_index("idx_students_created_at", "students", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_students_created_at", table_name="students")
    op.drop_index("idx_students_college", table_name="students")
    op.drop_table("students")
    op.drop_index("idx_questions_material", table_name="questions")
    op.drop_table("questions")
    op.drop_index("idx_videos_course", table_name="videos")
    op.drop_table("videos")
    op.drop_table("course_files")
    op.drop_table("lectures")
    op.drop_index("idx_courses_material", table_name="courses")
    op.drop_table("courses")
    op.drop_index("idx_materials_college", table_name="materials")
    op.drop_table("materials")
    op.drop_index("idx_colleges_university", table_name="colleges")
    op.drop_table("colleges")
    op.drop_table("universities")
