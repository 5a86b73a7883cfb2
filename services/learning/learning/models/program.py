import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, SmallInteger, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base
from shared.database.types import UTCDateTime, utcnow

from .enums import ProgramStatus, program_status_enum


class Program(Base):
    __tablename__ = "programs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    # Short stable slug embedded in certificate identifiers, e.g. "PROTO".
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    status: Mapped[ProgramStatus] = mapped_column(
        program_status_enum, nullable=False, default=ProgramStatus.INACTIVE
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    courses = relationship("Course", back_populates="program", lazy="noload")
    cohorts = relationship("Cohort", back_populates="program", lazy="noload")


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # NULL until an admin approves the course into a program.
    program_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("programs.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    sort_order: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    program = relationship("Program", back_populates="courses", lazy="select")
    modules = relationship("Module", back_populates="course", lazy="noload")

    __table_args__ = (
        Index("ix_courses_program_id", "program_id"),
    )
