import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, SmallInteger, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base
from shared.database.types import UTCDateTime, utcnow

from .enums import ProgressStatus, progress_status_enum


class Progress(Base):
    """Persisted per-module progress; acts as a floor for recomputed values."""

    __tablename__ = "progress"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    trainee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    module_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[ProgressStatus] = mapped_column(
        progress_status_enum, nullable=False, default=ProgressStatus.ACTIVE
    )
    percent_complete: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint("trainee_id", "module_id", name="uq_progress_trainee_module"),
        Index("ix_progress_module_id", "module_id"),
        CheckConstraint("percent_complete BETWEEN 0 AND 100", name="ck_progress_percent_range"),
    )
