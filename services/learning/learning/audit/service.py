"""Audit sink for privileged mutations.

Writes go through a SAVEPOINT so a failing audit insert never rolls back or
blocks the operation being audited.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from learning.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


class AuditAction:
    ENROLLMENT_AT_RISK = "ENROLLMENT_AT_RISK"
    ENROLLMENT_EXTEND_DEADLINE = "ENROLLMENT_EXTEND_DEADLINE"
    ENROLLMENT_REMINDER = "ENROLLMENT_REMINDER"
    TRAINEE_ENROLL = "TRAINEE_ENROLL"
    CERTIFICATE_APPROVE = "CERTIFICATE_APPROVE"
    CERTIFICATE_REVOKE = "CERTIFICATE_REVOKE"
    COHORT_CREATE = "COHORT_CREATE"
    PROGRAM_ACTIVATE = "PROGRAM_ACTIVATE"
    SUBMISSION_GRADE = "SUBMISSION_GRADE"


async def log_audit(
    db: AsyncSession,
    *,
    actor_id: UUID | None,
    action: str,
    entity_type: str,
    entity_id: UUID | str,
    details: dict[str, Any] | None = None,
) -> None:
    try:
        async with db.begin_nested():
            db.add(
                AuditLog(
                    actor_id=actor_id,
                    action=action,
                    entity_type=entity_type,
                    entity_id=str(entity_id),
                    details=details,
                )
            )
    except SQLAlchemyError:
        logger.warning(
            "Audit write failed action=%s entity=%s:%s", action, entity_type, entity_id,
            exc_info=True,
        )
