import logging

import pytest
from sqlalchemy import select, text

from conftest import actor_for
from learning.audit.service import AuditAction, log_audit
from learning.certificates.service import get_or_create_certificate, revoke_certificate
from learning.enrollments.service import set_enrollment_at_risk
from learning.models import AuditLog, Certificate, Enrollment


async def _drop_audit_table(db) -> None:
    await db.execute(text("DROP TABLE audit_logs"))
    await db.commit()


@pytest.mark.asyncio
async def test_log_audit_writes_row(db, factory) -> None:
    tree = await factory.program_tree()
    await log_audit(
        db,
        actor_id=tree.admin.id,
        action=AuditAction.ENROLLMENT_REMINDER,
        entity_type="Enrollment",
        entity_id=tree.enrollment.id,
        details={"note": "manual"},
    )
    row = await db.scalar(select(AuditLog).where(AuditLog.entity_id == str(tree.enrollment.id)))
    assert row.action == AuditAction.ENROLLMENT_REMINDER
    assert row.actor_id == tree.admin.id
    assert row.details == {"note": "manual"}


@pytest.mark.asyncio
async def test_failed_audit_write_keeps_at_risk_change(db, factory, session_factory, caplog) -> None:
    tree = await factory.program_tree()
    await _drop_audit_table(db)

    with caplog.at_level(logging.WARNING, logger="learning.audit.service"):
        result = await set_enrollment_at_risk(db, actor_for(tree.mentor), tree.enrollment.id, True)
    await db.commit()

    assert result.ok is True
    assert result.enrollment.at_risk is True
    assert "Audit write failed action=ENROLLMENT_AT_RISK" in caplog.text
    async with session_factory() as session:
        enrollment = await session.get(Enrollment, tree.enrollment.id)
        assert enrollment.at_risk is True


@pytest.mark.asyncio
async def test_failed_audit_write_keeps_revocation(db, factory, session_factory, settings) -> None:
    tree = await factory.program_tree(lessons=1)
    await factory.complete_module(tree.trainee, tree.modules[0])
    issued = await get_or_create_certificate(
        db, actor_for(tree.trainee), tree.trainee.id, tree.program.id, settings,
    )
    await db.commit()
    await _drop_audit_table(db)

    revoked = await revoke_certificate(db, actor_for(tree.admin), issued.certificate_code, "Issued in error")
    await db.commit()

    assert revoked.ok is True
    async with session_factory() as session:
        cert = await session.scalar(
            select(Certificate).where(Certificate.certificate_code == issued.certificate_code)
        )
        assert cert.revoked_at is not None
        assert cert.revoked_reason == "Issued in error"
