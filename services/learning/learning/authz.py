"""Capability checks: the single place where role policy lives.

Every public service operation calls ``require_capability`` with the
request's ``ActorContext`` before touching data.
"""

from __future__ import annotations

import enum
from uuid import UUID

from learning.exceptions import PermissionDeniedError
from learning.models.cohort import Cohort
from shared.constants import Role
from shared.models.user import ActorContext


class Capability(str, enum.Enum):
    CONSUME_CONTENT = "consume_content"
    VIEW_PROGRESS = "view_progress"
    SUBMIT_ASSIGNMENT = "submit_assignment"
    GRADE_SUBMISSION = "grade_submission"
    ENROLL_TRAINEES = "enroll_trainees"
    FLAG_AT_RISK = "flag_at_risk"
    SEND_REMINDER = "send_reminder"
    EXTEND_DEADLINE = "extend_deadline"
    REQUEST_CERTIFICATE = "request_certificate"
    APPROVE_CERTIFICATE = "approve_certificate"
    REVOKE_CERTIFICATE = "revoke_certificate"
    VIEW_CERTIFICATES = "view_certificates"
    MANAGE_STRUCTURE = "manage_structure"
    MANAGE_COHORTS = "manage_cohorts"


# Roles granted a capability outright.
_ROLE_GRANTS: dict[Capability, frozenset[Role]] = {
    Capability.CONSUME_CONTENT: frozenset({Role.TRAINEE}),
    Capability.SUBMIT_ASSIGNMENT: frozenset({Role.TRAINEE}),
    Capability.VIEW_PROGRESS: frozenset({Role.ADMIN, Role.MENTOR}),
    Capability.GRADE_SUBMISSION: frozenset({Role.ADMIN}),
    Capability.ENROLL_TRAINEES: frozenset({Role.ADMIN}),
    Capability.FLAG_AT_RISK: frozenset({Role.ADMIN}),
    Capability.SEND_REMINDER: frozenset({Role.ADMIN}),
    Capability.EXTEND_DEADLINE: frozenset({Role.ADMIN}),
    Capability.REQUEST_CERTIFICATE: frozenset({Role.ADMIN}),
    Capability.APPROVE_CERTIFICATE: frozenset({Role.ADMIN}),
    Capability.REVOKE_CERTIFICATE: frozenset({Role.ADMIN}),
    Capability.VIEW_CERTIFICATES: frozenset({Role.ADMIN, Role.MENTOR}),
    Capability.MANAGE_STRUCTURE: frozenset({Role.ADMIN, Role.MENTOR}),
    Capability.MANAGE_COHORTS: frozenset({Role.ADMIN}),
}

# Capabilities a mentor holds only for cohorts they mentor.
_COHORT_MENTOR_GRANTS = frozenset({
    Capability.GRADE_SUBMISSION,
    Capability.FLAG_AT_RISK,
    Capability.SEND_REMINDER,
})

# Capabilities a trainee holds over their own records.
_SELF_GRANTS = frozenset({
    Capability.VIEW_PROGRESS,
    Capability.REQUEST_CERTIFICATE,
    Capability.VIEW_CERTIFICATES,
})


def has_capability(
    actor: ActorContext,
    capability: Capability,
    *,
    cohort: Cohort | None = None,
    trainee_id: UUID | None = None,
) -> bool:
    if actor.role in _ROLE_GRANTS.get(capability, frozenset()):
        return True
    if (
        actor.role == Role.MENTOR
        and capability in _COHORT_MENTOR_GRANTS
        and cohort is not None
        and cohort.mentor_id == actor.actor_id
    ):
        return True
    if (
        actor.role == Role.TRAINEE
        and capability in _SELF_GRANTS
        and trainee_id is not None
        and trainee_id == actor.actor_id
    ):
        return True
    return False


def require_capability(
    actor: ActorContext,
    capability: Capability,
    *,
    cohort: Cohort | None = None,
    trainee_id: UUID | None = None,
) -> None:
    if not has_capability(actor, capability, cohort=cohort, trainee_id=trainee_id):
        raise PermissionDeniedError()
