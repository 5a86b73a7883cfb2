from uuid import uuid4

import pytest

from learning.authz import Capability, has_capability, require_capability
from learning.exceptions import PermissionDeniedError
from learning.models import Cohort
from shared.constants import Role
from shared.models.user import ActorContext


def _actor(role: Role) -> ActorContext:
    return ActorContext(actor_id=uuid4(), role=role)


@pytest.mark.parametrize(
    ("capability", "allowed"),
    [
        (Capability.CONSUME_CONTENT, {Role.TRAINEE}),
        (Capability.SUBMIT_ASSIGNMENT, {Role.TRAINEE}),
        (Capability.ENROLL_TRAINEES, {Role.ADMIN}),
        (Capability.EXTEND_DEADLINE, {Role.ADMIN}),
        (Capability.APPROVE_CERTIFICATE, {Role.ADMIN}),
        (Capability.REVOKE_CERTIFICATE, {Role.ADMIN}),
        (Capability.MANAGE_COHORTS, {Role.ADMIN}),
        (Capability.MANAGE_STRUCTURE, {Role.ADMIN, Role.MENTOR}),
        (Capability.VIEW_PROGRESS, {Role.ADMIN, Role.MENTOR}),
    ],
)
def test_role_grants(capability, allowed) -> None:
    for role in Role:
        assert has_capability(_actor(role), capability) is (role in allowed), role


@pytest.mark.parametrize(
    "capability",
    [Capability.GRADE_SUBMISSION, Capability.FLAG_AT_RISK, Capability.SEND_REMINDER],
)
def test_mentor_grants_are_scoped_to_their_cohorts(capability) -> None:
    mentor = _actor(Role.MENTOR)
    own = Cohort(name="own", mentor_id=mentor.actor_id)
    other = Cohort(name="other", mentor_id=uuid4())

    assert has_capability(mentor, capability, cohort=own) is True
    assert has_capability(mentor, capability, cohort=other) is False
    assert has_capability(mentor, capability) is False
    assert has_capability(_actor(Role.ADMIN), capability, cohort=other) is True
    assert has_capability(_actor(Role.TRAINEE), capability, cohort=own) is False


@pytest.mark.parametrize(
    "capability",
    [Capability.VIEW_PROGRESS, Capability.REQUEST_CERTIFICATE, Capability.VIEW_CERTIFICATES],
)
def test_trainee_self_grants(capability) -> None:
    trainee = _actor(Role.TRAINEE)
    assert has_capability(trainee, capability, trainee_id=trainee.actor_id) is True
    assert has_capability(trainee, capability, trainee_id=uuid4()) is False
    assert has_capability(trainee, capability) is False


def test_require_capability_raises_forbidden() -> None:
    with pytest.raises(PermissionDeniedError):
        require_capability(_actor(Role.TRAINEE), Capability.ENROLL_TRAINEES)
    require_capability(_actor(Role.ADMIN), Capability.ENROLL_TRAINEES)
