import enum

from sqlalchemy import Enum as SAEnum

from shared.constants import Role


class ProgramStatus(str, enum.Enum):
    PENDING = "PENDING"
    INACTIVE = "INACTIVE"
    ACTIVE = "ACTIVE"


class ProgressStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    PENDING_REVIEW = "PENDING_REVIEW"
    COMPLETED = "COMPLETED"


class SubmissionStatus(str, enum.Enum):
    PENDING = "PENDING"
    PENDING_ADMIN_APPROVAL = "PENDING_ADMIN_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    RESUBMIT_REQUESTED = "RESUBMIT_REQUESTED"


# Submission states that mean "handed in, waiting on a reviewer".
AWAITING_REVIEW = frozenset({SubmissionStatus.PENDING, SubmissionStatus.PENDING_ADMIN_APPROVAL})


# Named SQL enum types (native ENUM on PostgreSQL, CHECK-constrained VARCHAR on SQLite).
user_role_enum = SAEnum(Role, name="user_role")
program_status_enum = SAEnum(ProgramStatus, name="program_status")
progress_status_enum = SAEnum(ProgressStatus, name="progress_status")
submission_status_enum = SAEnum(SubmissionStatus, name="submission_status")
