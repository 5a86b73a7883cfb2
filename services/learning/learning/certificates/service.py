"""Certificate service: eligibility, idempotent issuance, revocation and verification.

At most one non-revoked certificate exists per (trainee, program). The
database enforces it with a partial unique index; issuance inserts inside a
SAVEPOINT and, when it loses the race, returns the row that won. Certificate
codes take a per-program sequence value allocated with ``UPDATE ... RETURNING``
so they are strictly increasing within a program.

Pure business logic, no FastAPI imports.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from learning.audit.service import AuditAction, log_audit
from learning.authz import Capability, require_capability
from learning.certificates.pdf_generator import CertificatePDFData, generate_certificate_pdf
from learning.certificates.schemas import (
    CertificateEligibility,
    CertificateIssueResult,
    CertificateListResult,
    CertificateResponse,
    CertificateVerification,
    EligibilityResult,
)
from learning.certificates.storage import store_certificate_pdf
from learning.config import Settings
from learning.exceptions import (
    CertificateAlreadyRevokedError,
    CertificateIssueConflictError,
    CertificateNotFoundError,
    CertificateRevokedError,
    ProgramNotCompletedError,
    ProgramNotFoundError,
    UserNotFoundError,
)
from learning.models.certificate import Certificate, CertificateSequence
from learning.models.program import Program
from learning.models.user import User
from learning.progress.service import get_trainee_program_progress
from learning.results import returns_result
from shared.database.types import ensure_utc, utcnow
from shared.database.upsert import insert_ignore
from shared.models.user import ActorContext

logger = logging.getLogger(__name__)

NOT_COMPLETED_REASON = "All modules must be completed"


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


def compose_certificate_code(prefix: str, program_code: str, sequence: int, width: int = 5) -> str:
    """``UNIPOD-PROTO-00042``: prefix, program slug, zero-padded sequence."""
    return f"{prefix}-{program_code.upper()}-{sequence:0{width}d}"


async def next_sequence_value(db: AsyncSession, program_id: UUID) -> int:
    """Bump and return the program's certificate counter.

    The UPDATE takes a row lock that is held until the surrounding transaction
    ends, so concurrent issuers for one program are serialised here.
    """
    await insert_ignore(
        db,
        CertificateSequence,
        {"program_id": program_id, "last_value": 0},
        conflict_columns=["program_id"],
    )
    return await db.scalar(
        update(CertificateSequence)
        .where(CertificateSequence.program_id == program_id)
        .values(last_value=CertificateSequence.last_value + 1)
        .returning(CertificateSequence.last_value)
        .execution_options(synchronize_session=False)
    )


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


async def get_certificate_eligibility(
    db: AsyncSession,
    trainee_id: UUID,
    program_id: UUID,
) -> CertificateEligibility:
    progress = await get_trainee_program_progress(db, trainee_id, program_id)
    if progress.all_completed:
        return CertificateEligibility(eligible=True, progress=progress)
    return CertificateEligibility(eligible=False, reason=NOT_COMPLETED_REASON, progress=progress)


@returns_result(EligibilityResult)
async def check_certificate_eligibility(
    db: AsyncSession,
    actor: ActorContext,
    trainee_id: UUID,
    program_id: UUID,
) -> EligibilityResult:
    require_capability(actor, Capability.VIEW_PROGRESS, trainee_id=trainee_id)
    if await db.get(Program, program_id) is None:
        raise ProgramNotFoundError(str(program_id))
    return EligibilityResult(
        eligibility=await get_certificate_eligibility(db, trainee_id, program_id),
    )


# ---------------------------------------------------------------------------
# Issuance
# ---------------------------------------------------------------------------


async def _active_certificate(
    db: AsyncSession,
    trainee_id: UUID,
    program_id: UUID,
) -> Certificate | None:
    return await db.scalar(
        select(Certificate)
        .where(
            Certificate.trainee_id == trainee_id,
            Certificate.program_id == program_id,
            Certificate.revoked_at.is_(None),
        )
        .execution_options(populate_existing=True)
    )


async def _latest_certificate(
    db: AsyncSession,
    trainee_id: UUID,
    program_id: UUID,
) -> Certificate | None:
    return await db.scalar(
        select(Certificate)
        .where(Certificate.trainee_id == trainee_id, Certificate.program_id == program_id)
        .order_by(Certificate.issued_at.desc())
        .limit(1)
    )


def _render_and_store(
    cert: Certificate,
    trainee: User,
    program: Program,
    settings: Settings,
) -> str | None:
    verification_url = f"{settings.certificate_base_url}?cert={cert.certificate_code}"
    pdf_bytes = generate_certificate_pdf(
        CertificatePDFData(
            trainee_name=trainee.name,
            program_name=program.name,
            certificate_code=cert.certificate_code,
            issued_date=cert.issued_at,
            verification_url=verification_url,
        )
    )
    return store_certificate_pdf(pdf_bytes, f"{cert.certificate_code}.pdf", settings)


async def _issue(
    db: AsyncSession,
    trainee_id: UUID,
    program_id: UUID,
    settings: Settings,
    *,
    approved_by_id: UUID | None = None,
    auto_issued: bool = True,
) -> tuple[Certificate, bool]:
    """Return the active certificate for the pair, creating it if needed.

    The boolean is True when this call created the row.
    """
    eligibility = await get_certificate_eligibility(db, trainee_id, program_id)
    if not eligibility.eligible:
        raise ProgramNotCompletedError()

    existing = await _active_certificate(db, trainee_id, program_id)
    if existing is not None:
        return existing, False

    trainee = await db.get(User, trainee_id)
    if trainee is None:
        raise UserNotFoundError(str(trainee_id))
    program = await db.get(Program, program_id)
    if program is None:
        raise ProgramNotFoundError(str(program_id))

    for attempt in range(1, settings.certificate_issue_max_attempts + 1):
        sequence = await next_sequence_value(db, program_id)
        cert = Certificate(
            trainee_id=trainee_id,
            program_id=program_id,
            certificate_code=compose_certificate_code(
                settings.certificate_prefix, program.code, sequence,
                settings.certificate_sequence_width,
            ),
            issued_at=utcnow(),
            approved_by_id=approved_by_id,
            auto_issued=auto_issued,
        )
        try:
            async with db.begin_nested():
                db.add(cert)
        except IntegrityError:
            winner = await _active_certificate(db, trainee_id, program_id)
            if winner is not None:
                logger.info(
                    "Concurrent issuance for trainee=%s program=%s resolved to %s",
                    trainee_id, program_id, winner.certificate_code,
                )
                return winner, False
            logger.warning(
                "Certificate code %s collided (attempt %d/%d)",
                cert.certificate_code, attempt, settings.certificate_issue_max_attempts,
            )
            continue

        cert.pdf_url = _render_and_store(cert, trainee, program, settings)
        await db.flush()
        logger.info("Issued certificate %s to trainee %s", cert.certificate_code, trainee_id)
        return cert, True

    raise CertificateIssueConflictError()


def _issue_result(cert: Certificate, created: bool) -> CertificateIssueResult:
    return CertificateIssueResult(
        certificate_code=cert.certificate_code,
        pdf_url=cert.pdf_url,
        created=created,
        certificate=CertificateResponse.model_validate(cert),
    )


@returns_result(CertificateIssueResult)
async def get_or_create_certificate(
    db: AsyncSession,
    actor: ActorContext,
    trainee_id: UUID,
    program_id: UUID,
    settings: Settings,
) -> CertificateIssueResult:
    """Self-service issuance. Calling it again returns the same certificate."""
    require_capability(actor, Capability.REQUEST_CERTIFICATE, trainee_id=trainee_id)
    cert, created = await _issue(db, trainee_id, program_id, settings)
    return _issue_result(cert, created)


@returns_result(CertificateIssueResult)
async def approve_certificate_issuance(
    db: AsyncSession,
    actor: ActorContext,
    trainee_id: UUID,
    program_id: UUID,
    settings: Settings,
    *,
    allow_reissue: bool = False,
) -> CertificateIssueResult:
    """Admin issuance. Same eligibility and idempotency rules as self-service.

    A pair whose latest certificate was revoked is only re-issued when
    ``allow_reissue`` is set.
    """
    require_capability(actor, Capability.APPROVE_CERTIFICATE)

    if not allow_reissue and await _active_certificate(db, trainee_id, program_id) is None:
        latest = await _latest_certificate(db, trainee_id, program_id)
        if latest is not None and latest.is_revoked:
            raise CertificateRevokedError()

    cert, created = await _issue(
        db, trainee_id, program_id, settings,
        approved_by_id=actor.actor_id, auto_issued=False,
    )
    await log_audit(
        db,
        actor_id=actor.actor_id,
        action=AuditAction.CERTIFICATE_APPROVE,
        entity_type="Certificate",
        entity_id=cert.certificate_code,
        details={
            "trainee_id": str(trainee_id),
            "program_id": str(program_id),
            "created": created,
        },
    )
    return _issue_result(cert, created)


# ---------------------------------------------------------------------------
# Revocation
# ---------------------------------------------------------------------------


@returns_result(CertificateIssueResult)
async def revoke_certificate(
    db: AsyncSession,
    actor: ActorContext,
    certificate_code: str,
    reason: str,
    *,
    now: datetime | None = None,
) -> CertificateIssueResult:
    """Mark a certificate revoked. The row is kept so verification can report it."""
    require_capability(actor, Capability.REVOKE_CERTIFICATE)
    cert = await db.scalar(
        select(Certificate)
        .where(Certificate.certificate_code == certificate_code)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    if cert is None:
        raise CertificateNotFoundError(certificate_code)
    if cert.is_revoked:
        raise CertificateAlreadyRevokedError()

    cert.revoked_at = ensure_utc(now) if now is not None else utcnow()
    cert.revoked_reason = reason
    cert.revoked_by_id = actor.actor_id
    await db.flush()
    await log_audit(
        db,
        actor_id=actor.actor_id,
        action=AuditAction.CERTIFICATE_REVOKE,
        entity_type="Certificate",
        entity_id=cert.certificate_code,
        details={"reason": reason, "trainee_id": str(cert.trainee_id)},
    )
    return _issue_result(cert, False)


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


async def verify_certificate(db: AsyncSession, certificate_code: str) -> CertificateVerification:
    """Public verification, no auth required."""
    row = (
        await db.execute(
            select(Certificate, User.name, Program.name)
            .join(User, Certificate.trainee_id == User.id)
            .join(Program, Certificate.program_id == Program.id)
            .where(Certificate.certificate_code == certificate_code)
        )
    ).first()
    if row is None:
        return CertificateVerification(found=False, certificate_code=certificate_code)

    cert, trainee_name, program_name = row
    return CertificateVerification(
        found=True,
        valid=not cert.is_revoked,
        certificate_code=cert.certificate_code,
        trainee_name=trainee_name,
        program_name=program_name,
        issued_at=cert.issued_at,
        revoked_at=cert.revoked_at,
        revoked_reason=cert.revoked_reason,
    )


@returns_result(CertificateListResult)
async def list_certificates(
    db: AsyncSession,
    actor: ActorContext,
    *,
    program_id: UUID | None = None,
    trainee_id: UUID | None = None,
) -> CertificateListResult:
    if actor.is_trainee and trainee_id is None:
        trainee_id = actor.actor_id
    require_capability(actor, Capability.VIEW_CERTIFICATES, trainee_id=trainee_id)

    stmt = select(Certificate).order_by(Certificate.issued_at.desc())
    if program_id is not None:
        stmt = stmt.where(Certificate.program_id == program_id)
    if trainee_id is not None:
        stmt = stmt.where(Certificate.trainee_id == trainee_id)
    certs = (await db.execute(stmt)).scalars().all()
    return CertificateListResult(
        certificates=[CertificateResponse.model_validate(c) for c in certs],
    )
