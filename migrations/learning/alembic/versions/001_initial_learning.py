"""Learning schema: programs, structure, cohorts, progress, certificates, audit

Revision ID: 001
Revises:
Create Date: 2026-03-02

Tables created:
  - users                   Read-model of platform accounts (role drives policy)
  - programs / courses      Program tree roots; courses attach to a program
  - modules / lessons       Ordered content; lesson order unique per module
  - assignments             At most one mandatory assignment per module
  - cohorts / enrollments   Time-boxed offerings and per-trainee overrides
  - lesson_accesses         First-open records, unique per trainee and lesson
  - submissions             Assignment hand-ins and review state
  - progress                Per-module floor of recomputed progress
  - certificates            Issued certificates; revoked rows are kept
  - certificate_sequences   Per-program counter behind certificate codes
  - audit_logs              Privileged mutations

PostgreSQL-native ENUM types created:
  - user_role               ADMIN / MENTOR / TRAINEE
  - program_status          PENDING / INACTIVE / ACTIVE
  - progress_status         ACTIVE / PENDING_REVIEW / COMPLETED
  - submission_status       PENDING / PENDING_ADMIN_APPROVAL / APPROVED / REJECTED / RESUBMIT_REQUESTED

Downgrade: drops all tables and ENUM types in reverse dependency order.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    "user_role": ("ADMIN", "MENTOR", "TRAINEE"),
    "program_status": ("PENDING", "INACTIVE", "ACTIVE"),
    "progress_status": ("ACTIVE", "PENDING_REVIEW", "COMPLETED"),
    "submission_status": (
        "PENDING",
        "PENDING_ADMIN_APPROVAL",
        "APPROVED",
        "REJECTED",
        "RESUBMIT_REQUESTED",
    ),
}


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        nullable=False,
        server_default=sa.text("gen_random_uuid()"),
    )


def _fk(name: str, target: str, *, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("NOW()"),
    )


# ─────────────────────────────────────────────────────────────────────────────
#  UPGRADE
# ─────────────────────────────────────────────────────────────────────────────

def upgrade() -> None:
    # ── 1. PostgreSQL ENUM types ──────────────────────────────────────────────
    for name, values in ENUMS.items():
        labels = ", ".join(f"'{v}'" for v in values)
        op.execute(
            f"""
            DO $$ BEGIN
                CREATE TYPE {name} AS ENUM ({labels});
            EXCEPTION WHEN duplicate_object THEN NULL;
            END $$;
            """
        )

    # ── 2. users ──────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("role", postgresql.ENUM(name="user_role", create_type=False), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_role", "users", ["role"])

    # ── 3. programs & courses ─────────────────────────────────────────────────
    op.create_table(
        "programs",
        _uuid_pk(),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column(
            "status",
            postgresql.ENUM(name="program_status", create_type=False),
            nullable=False,
            server_default=sa.text("'INACTIVE'"),
        ),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_programs"),
        sa.UniqueConstraint("code", name="uq_programs_code"),
    )
    op.create_table(
        "courses",
        _uuid_pk(),
        _fk("program_id", "programs.id", nullable=True, ondelete="SET NULL"),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("sort_order", sa.SmallInteger(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_courses"),
    )
    op.create_index("ix_courses_program_id", "courses", ["program_id"])

    # ── 4. modules, lessons, assignments ──────────────────────────────────────
    op.create_table(
        "modules",
        _uuid_pk(),
        _fk("course_id", "courses.id"),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("sort_order", sa.SmallInteger(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_modules"),
        sa.UniqueConstraint("course_id", "sort_order", name="uq_modules_course_order"),
    )
    op.create_index("ix_modules_course_id", "modules", ["course_id"])

    op.create_table(
        "lessons",
        _uuid_pk(),
        _fk("module_id", "modules.id"),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("content_body", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.SmallInteger(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_lessons"),
        sa.UniqueConstraint("module_id", "sort_order", name="uq_lessons_module_order"),
    )
    op.create_index("ix_lessons_module_id", "lessons", ["module_id"])

    op.create_table(
        "assignments",
        _uuid_pk(),
        _fk("module_id", "modules.id"),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("mandatory", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_assignments"),
    )
    op.create_index("ix_assignments_module_id", "assignments", ["module_id"])
    op.create_index(
        "uq_assignments_module_mandatory",
        "assignments",
        ["module_id"],
        unique=True,
        postgresql_where=sa.text("mandatory"),
    )

    # ── 5. cohorts & enrollments ──────────────────────────────────────────────
    op.create_table(
        "cohorts",
        _uuid_pk(),
        sa.Column("name", sa.String(200), nullable=False),
        _fk("program_id", "programs.id", nullable=True, ondelete="SET NULL"),
        _fk("mentor_id", "users.id", nullable=True, ondelete="SET NULL"),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_cohorts"),
    )
    op.create_index("ix_cohorts_program_id", "cohorts", ["program_id"])
    op.create_index("ix_cohorts_mentor_id", "cohorts", ["mentor_id"])

    op.create_table(
        "enrollments",
        _uuid_pk(),
        _fk("trainee_id", "users.id"),
        _fk("cohort_id", "cohorts.id"),
        sa.Column("at_risk", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("extended_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_reminder_at", sa.DateTime(timezone=True), nullable=True),
        _created_at("enrolled_at"),
        sa.PrimaryKeyConstraint("id", name="pk_enrollments"),
        sa.UniqueConstraint("trainee_id", "cohort_id", name="uq_enrollments_trainee_cohort"),
    )
    op.create_index("ix_enrollments_cohort_id", "enrollments", ["cohort_id"])
    op.create_index("ix_enrollments_at_risk", "enrollments", ["at_risk"])

    # ── 6. lesson_accesses, submissions, progress ─────────────────────────────
    op.create_table(
        "lesson_accesses",
        _uuid_pk(),
        _fk("trainee_id", "users.id"),
        _fk("lesson_id", "lessons.id"),
        _created_at("accessed_at"),
        sa.PrimaryKeyConstraint("id", name="pk_lesson_accesses"),
        sa.UniqueConstraint("trainee_id", "lesson_id", name="uq_lesson_accesses_trainee_lesson"),
    )
    op.create_index("ix_lesson_accesses_lesson_id", "lesson_accesses", ["lesson_id"])

    op.create_table(
        "submissions",
        _uuid_pk(),
        _fk("assignment_id", "assignments.id"),
        _fk("trainee_id", "users.id"),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column(
            "status",
            postgresql.ENUM(name="submission_status", create_type=False),
            nullable=False,
            server_default=sa.text("'PENDING'"),
        ),
        sa.Column("feedback", sa.Text(), nullable=True),
        _created_at("submitted_at"),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        _fk("reviewed_by_id", "users.id", nullable=True, ondelete="SET NULL"),
        sa.Column("admin_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_submissions"),
    )
    op.create_index(
        "ix_submissions_assignment_trainee", "submissions", ["assignment_id", "trainee_id"]
    )
    op.create_index("ix_submissions_status", "submissions", ["status"])

    op.create_table(
        "progress",
        _uuid_pk(),
        _fk("trainee_id", "users.id"),
        _fk("module_id", "modules.id"),
        sa.Column(
            "status",
            postgresql.ENUM(name="progress_status", create_type=False),
            nullable=False,
            server_default=sa.text("'ACTIVE'"),
        ),
        sa.Column("percent_complete", sa.SmallInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_progress"),
        sa.UniqueConstraint("trainee_id", "module_id", name="uq_progress_trainee_module"),
        sa.CheckConstraint(
            "percent_complete BETWEEN 0 AND 100", name="ck_progress_percent_range"
        ),
    )
    op.create_index("ix_progress_module_id", "progress", ["module_id"])

    # ── 7. certificates ───────────────────────────────────────────────────────
    op.create_table(
        "certificates",
        _uuid_pk(),
        _fk("trainee_id", "users.id"),
        _fk("program_id", "programs.id"),
        sa.Column("certificate_code", sa.String(100), nullable=False),
        sa.Column("pdf_url", sa.String(500), nullable=True),
        _created_at("issued_at"),
        _fk("approved_by_id", "users.id", nullable=True, ondelete="SET NULL"),
        sa.Column("auto_issued", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.Text(), nullable=True),
        _fk("revoked_by_id", "users.id", nullable=True, ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id", name="pk_certificates"),
        sa.UniqueConstraint("certificate_code", name="uq_certificates_code"),
    )
    op.create_index("ix_certificates_program_id", "certificates", ["program_id"])
    # One active (non-revoked) certificate per trainee and program.
    op.create_index(
        "uq_certificates_active_trainee_program",
        "certificates",
        ["trainee_id", "program_id"],
        unique=True,
        postgresql_where=sa.text("revoked_at IS NULL"),
    )

    op.create_table(
        "certificate_sequences",
        _fk("program_id", "programs.id"),
        sa.Column("last_value", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.PrimaryKeyConstraint("program_id", name="pk_certificate_sequences"),
    )

    # ── 8. audit_logs ─────────────────────────────────────────────────────────
    op.create_table(
        "audit_logs",
        _uuid_pk(),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("entity_type", sa.String(64), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=False),
        sa.Column("details", postgresql.JSONB(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_audit_logs"),
    )
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


# ─────────────────────────────────────────────────────────────────────────────
#  DOWNGRADE
# ─────────────────────────────────────────────────────────────────────────────

def downgrade() -> None:
    # Drop tables in reverse FK dependency order
    op.drop_table("audit_logs")
    op.drop_table("certificate_sequences")
    op.drop_table("certificates")
    op.drop_table("progress")
    op.drop_table("submissions")
    op.drop_table("lesson_accesses")
    op.drop_table("enrollments")
    op.drop_table("cohorts")
    op.drop_table("assignments")
    op.drop_table("lessons")
    op.drop_table("modules")
    op.drop_table("courses")
    op.drop_table("programs")
    op.drop_table("users")

    # Drop ENUM types (must happen after tables are gone)
    for name in reversed(list(ENUMS)):
        op.execute(f"DROP TYPE IF EXISTS {name}")
