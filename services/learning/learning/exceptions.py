"""Domain exception classes for the learning service.

Raised by service-layer code. Public service operations convert them into
failed result models (see ``learning.results``); controllers then map the
error code onto an HTTP status.
"""

import enum


class ErrorCode(str, enum.Enum):
    NOT_FOUND = "not_found"
    NOT_ENROLLED = "not_enrolled"
    ACCESS_DENIED = "access_denied"
    SEQUENCING_VIOLATION = "sequencing_violation"
    INELIGIBLE = "ineligible"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"


class LearningError(Exception):
    code: ErrorCode = ErrorCode.CONFLICT
    default_message: str = "Operation not allowed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ── Not found ────────────────────────────────────────────────────────────────


class NotFoundError(LearningError):
    code = ErrorCode.NOT_FOUND
    resource = "Resource"

    def __init__(self, identifier: str = ""):
        self.identifier = identifier
        super().__init__(f"{self.resource} not found")


class UserNotFoundError(NotFoundError):
    resource = "User"


class ProgramNotFoundError(NotFoundError):
    resource = "Program"


class CohortNotFoundError(NotFoundError):
    resource = "Cohort"


class ModuleNotFoundError(NotFoundError):
    resource = "Module"


class LessonNotFoundError(NotFoundError):
    resource = "Lesson"


class AssignmentNotFoundError(NotFoundError):
    resource = "Assignment"


class SubmissionNotFoundError(NotFoundError):
    resource = "Submission"


class EnrollmentNotFoundError(NotFoundError):
    resource = "Enrollment"


class CertificateNotFoundError(NotFoundError):
    resource = "Certificate"


# ── Enrollment / access window ───────────────────────────────────────────────


class NotEnrolledError(LearningError):
    code = ErrorCode.NOT_ENROLLED
    default_message = "Not enrolled"


class LessonNotInProgramError(LearningError):
    """Raised when a lesson's course has not been attached to a program yet."""

    code = ErrorCode.ACCESS_DENIED
    default_message = "Lesson not in a program"


class CohortWindowClosedError(LearningError):
    """Raised when the cohort is inactive, not started, or past its effective end."""

    code = ErrorCode.ACCESS_DENIED
    default_message = "Access not allowed"


# ── Sequencing ───────────────────────────────────────────────────────────────


class LessonLockedError(LearningError):
    code = ErrorCode.SEQUENCING_VIOLATION
    default_message = "Complete the previous lesson first"


class AssignmentLockedError(LearningError):
    code = ErrorCode.SEQUENCING_VIOLATION
    default_message = "Access every lesson in the module before submitting"


# ── Eligibility ──────────────────────────────────────────────────────────────


class ProgramNotCompletedError(LearningError):
    """Raised when a certificate is requested before every module is completed."""

    code = ErrorCode.INELIGIBLE
    default_message = "Program not completed. Complete all modules to get certificate."


# ── Conflicts ────────────────────────────────────────────────────────────────


class MandatoryAssignmentExistsError(LearningError):
    default_message = "Module already has one mandatory assignment"


class DuplicateLessonOrderError(LearningError):
    def __init__(self, sort_order: int):
        self.sort_order = sort_order
        super().__init__(f"Another lesson in this module already uses order {sort_order}")


class DeadlineNotExtendedError(LearningError):
    default_message = "New deadline must be after current deadline"


class NoDeadlineToExtendError(LearningError):
    default_message = "Cohort has no end date to extend"


class CertificateAlreadyRevokedError(LearningError):
    default_message = "Certificate already revoked"


class CertificateRevokedError(LearningError):
    """Raised when approval is requested for a pair whose last certificate was revoked."""

    default_message = "Certificate was revoked"


class ProgramHasNoCohortError(LearningError):
    default_message = "Program cannot be activated until at least one cohort is created"


class InvalidSubmissionTransitionError(LearningError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move submission from {current} to {target}")


class InvalidCohortWindowError(LearningError):
    default_message = "Cohort end date must be after start date"


class NotAMentorError(LearningError):
    default_message = "Cohort mentor must have the MENTOR role"


class CertificateIssueConflictError(LearningError):
    """Raised when issuance keeps losing unique-constraint races without a visible winner."""

    default_message = "Could not allocate a certificate identifier"


# ── Authorization ────────────────────────────────────────────────────────────


class PermissionDeniedError(LearningError):
    code = ErrorCode.FORBIDDEN
    default_message = "Forbidden"
