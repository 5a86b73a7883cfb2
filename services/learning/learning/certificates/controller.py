"""Certificate controller: maps service results to HTTP responses."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from learning.certificates import service
from learning.certificates.schemas import (
    ApproveCertificateRequest,
    CertificateEligibility,
    CertificateIssueResult,
    CertificateResponse,
    CertificateVerification,
    IssueCertificateRequest,
    RevokeCertificateRequest,
)
from learning.config import Settings
from learning.http_errors import unwrap
from shared.models.user import ActorContext


async def request_certificate(
    db: AsyncSession,
    actor: ActorContext,
    body: IssueCertificateRequest,
    settings: Settings,
) -> CertificateIssueResult:
    trainee_id = body.trainee_id or actor.actor_id
    return unwrap(
        await service.get_or_create_certificate(db, actor, trainee_id, body.program_id, settings)
    )


async def approve_certificate(
    db: AsyncSession,
    actor: ActorContext,
    body: ApproveCertificateRequest,
    settings: Settings,
) -> CertificateIssueResult:
    return unwrap(
        await service.approve_certificate_issuance(
            db, actor, body.trainee_id, body.program_id, settings,
            allow_reissue=body.allow_reissue,
        )
    )


async def revoke_certificate(
    db: AsyncSession,
    actor: ActorContext,
    certificate_code: str,
    body: RevokeCertificateRequest,
) -> CertificateResponse:
    result = unwrap(await service.revoke_certificate(db, actor, certificate_code, body.reason))
    return result.certificate


async def get_eligibility(
    db: AsyncSession,
    actor: ActorContext,
    program_id: UUID,
    trainee_id: UUID | None,
) -> CertificateEligibility:
    result = unwrap(
        await service.check_certificate_eligibility(
            db, actor, trainee_id or actor.actor_id, program_id,
        )
    )
    return result.eligibility


async def list_certificates(
    db: AsyncSession,
    actor: ActorContext,
    program_id: UUID | None,
    trainee_id: UUID | None,
) -> list[CertificateResponse]:
    result = unwrap(
        await service.list_certificates(db, actor, program_id=program_id, trainee_id=trainee_id)
    )
    return result.certificates


async def verify_certificate(db: AsyncSession, certificate_code: str) -> CertificateVerification:
    return await service.verify_certificate(db, certificate_code)
