# Import all models so Alembic can discover them via Base.metadata
from .assignment import Assignment
from .audit_log import AuditLog
from .certificate import Certificate, CertificateSequence
from .cohort import Cohort
from .course_module import Module
from .enrollment import Enrollment
from .lesson import Lesson
from .lesson_access import LessonAccess
from .program import Course, Program
from .progress import Progress
from .submission import Submission
from .user import User

__all__ = [
    "Assignment",
    "AuditLog",
    "Certificate",
    "CertificateSequence",
    "Cohort",
    "Course",
    "Enrollment",
    "Lesson",
    "LessonAccess",
    "Module",
    "Program",
    "Progress",
    "Submission",
    "User",
]
