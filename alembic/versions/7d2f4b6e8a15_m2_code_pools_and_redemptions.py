"""m2_code_pools_and_redemptions

Revision ID: 7d2f4b6e8a15
Revises: 3c1e7a9b2d40
Create Date: 2026-10-12 11:10:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "7d2f4b6e8a15"
down_revision: str | None = "3c1e7a9b2d40"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "code_pools",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("expiration", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("expiration > created_at", name="ck_code_pools_expiration_future"),
        sa.CheckConstraint("length(btrim(name)) > 0", name="ck_code_pools_name_not_blank"),
    )
    op.create_index("idx_code_pools_name", "code_pools", ["name"])
    op.create_index("idx_code_pools_expiration", "code_pools", ["expiration"])

    op.create_table(
        "access_codes",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code_pool_id", sa.BigInteger(), nullable=False),
        sa.Column("value", sa.CHAR(12), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "is_used = (used_at IS NOT NULL)",
            name="ck_access_codes_used_at_consistency",
        ),
        sa.CheckConstraint("value ~ '^[A-Z0-9]{12}$'", name="ck_access_codes_value_format"),
        sa.ForeignKeyConstraint(["code_pool_id"], ["code_pools.id"]),
        sa.UniqueConstraint("value", name="uq_access_codes_value"),
    )
    op.create_index("idx_access_codes_pool_used", "access_codes", ["code_pool_id", "is_used"])

    op.create_table(
        "code_pool_materials",
        sa.Column("code_pool_id", sa.BigInteger(), nullable=False),
        sa.Column("material_id", sa.BigInteger(), nullable=False),
        sa.Column("grants_questions", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("grants_lectures", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.CheckConstraint(
            "grants_questions OR grants_lectures",
            name="ck_code_pool_materials_grants_something",
        ),
        sa.ForeignKeyConstraint(["code_pool_id"], ["code_pools.id"]),
        sa.ForeignKeyConstraint(["material_id"], ["materials.id"]),
        sa.PrimaryKeyConstraint("code_pool_id", "material_id"),
    )
    op.create_index("idx_code_pool_materials_material", "code_pool_materials", ["material_id"])

    op.create_table(
        "code_pool_courses",
        sa.Column("code_pool_id", sa.BigInteger(), nullable=False),
        sa.Column("course_id", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(["code_pool_id"], ["code_pools.id"]),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"]),
        sa.PrimaryKeyConstraint("code_pool_id", "course_id"),
    )
    op.create_index("idx_code_pool_courses_course", "code_pool_courses", ["course_id"])

    op.create_table(
        "code_redemptions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", sa.BigInteger(), nullable=False),
        sa.Column("code_pool_id", sa.BigInteger(), nullable=False),
        sa.Column("access_code_id", sa.BigInteger(), nullable=False),
        sa.Column("code_value", sa.CHAR(12), nullable=False),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"]),
        sa.ForeignKeyConstraint(["code_pool_id"], ["code_pools.id"]),
        sa.ForeignKeyConstraint(["access_code_id"], ["access_codes.id"]),
        sa.UniqueConstraint("student_id", "code_pool_id", name="uq_code_redemptions_student_pool"),
        sa.UniqueConstraint("access_code_id", name="uq_code_redemptions_access_code"),
    )
    op.create_index("idx_code_redemptions_pool", "code_redemptions", ["code_pool_id"])
    op.create_index(
        "idx_code_redemptions_student_redeemed_at",
        "code_redemptions",
        ["student_id", "redeemed_at"],
    )

    op.create_table(
        "reconciliation_runs",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("job_name", sa.String(64), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("diff_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "details",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.CheckConstraint("status IN ('OK','DIFF','FAILED')", name="ck_reconciliation_runs_status"),
        sa.CheckConstraint("diff_count >= 0", name="ck_reconciliation_runs_diff_non_negative"),
    )
    op.create_index(
        "idx_reconciliation_runs_job_started",
        "reconciliation_runs",
        ["job_name", "started_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_reconciliation_runs_job_started", table_name="reconciliation_runs")
    op.drop_table("reconciliation_runs")
    op.drop_index("idx_code_redemptions_student_redeemed_at", table_name="code_redemptions")
    op.drop_index("idx_code_redemptions_pool", table_name="code_redemptions")
    op.drop_table("code_redemptions")
    op.drop_index("idx_code_pool_courses_course", table_name="code_pool_courses")
    op.drop_table("code_pool_courses")
    op.drop_index("idx_code_pool_materials_material", table_name="code_pool_materials")
    op.drop_table("code_pool_materials")
    op.drop_index("idx_access_codes_pool_used", table_name="access_codes")
    op.drop_table("access_codes")
    op.drop_index("idx_code_pools_expiration", table_name="code_pools")
    op.drop_index("idx_code_pools_name", table_name="code_pools")
    op.drop_table("code_pools")
