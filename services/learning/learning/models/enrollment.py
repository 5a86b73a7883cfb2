import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base
from shared.database.types import UTCDateTime, utcnow


class Enrollment(Base):
    __tablename__ = "enrollments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    trainee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    cohort_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False
    )
    at_risk: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Per-trainee override of the cohort end date; only ever moves later.
    extended_end_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    last_reminder_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    enrolled_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    cohort = relationship("Cohort", back_populates="enrollments", lazy="select")
    trainee = relationship("User", lazy="select")

    __table_args__ = (
        UniqueConstraint("trainee_id", "cohort_id", name="uq_enrollments_trainee_cohort"),
        Index("ix_enrollments_cohort_id", "cohort_id"),
        Index("ix_enrollments_at_risk", "at_risk"),
    )
