"""Certificate router: issuance, admin approval and revocation, public verification."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from learning.certificates import controller
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
from learning.database import get_db
from learning.dependencies import get_current_actor, get_settings
from shared.models.user import ActorContext

router = APIRouter(prefix="/certificates", tags=["Certificates"])


@router.post(
    "",
    response_model=CertificateIssueResult,
    summary="Get or create my certificate",
    description="Issues the certificate once every module of the program is completed. "
    "Repeat calls return the same certificate. Returns 400 while the program is incomplete.",
)
async def request_certificate(
    body: IssueCertificateRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
    settings: Settings = Depends(get_settings),
) -> CertificateIssueResult:
    return await controller.request_certificate(db, actor, body, settings)


@router.get(
    "",
    response_model=list[CertificateResponse],
    summary="List certificates",
    description="Trainees only see their own certificates. Newest first.",
)
async def list_certificates(
    program_id: UUID | None = Query(default=None),
    trainee_id: UUID | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> list[CertificateResponse]:
    return await controller.list_certificates(db, actor, program_id, trainee_id)


@router.get(
    "/eligibility",
    response_model=CertificateEligibility,
    summary="Certificate eligibility with the underlying progress",
)
async def get_eligibility(
    program_id: UUID = Query(...),
    trainee_id: UUID | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> CertificateEligibility:
    return await controller.get_eligibility(db, actor, program_id, trainee_id)


@router.post(
    "/approve",
    response_model=CertificateIssueResult,
    summary="Approve certificate issuance (admin)",
)
async def approve_certificate(
    body: ApproveCertificateRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
    settings: Settings = Depends(get_settings),
) -> CertificateIssueResult:
    return await controller.approve_certificate(db, actor, body, settings)


@router.post(
    "/{certificate_code}/revoke",
    response_model=CertificateResponse,
    summary="Revoke a certificate (admin)",
    description="The record is kept; verification reports it as invalid with the reason.",
)
async def revoke_certificate(
    certificate_code: str,
    body: RevokeCertificateRequest,
    db: AsyncSession = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> CertificateResponse:
    return await controller.revoke_certificate(db, actor, certificate_code, body)


@router.get(
    "/verify/{certificate_code}",
    response_model=CertificateVerification,
    summary="Verify a certificate (public)",
    description="Public endpoint, no authentication required.",
)
async def verify_certificate(
    certificate_code: str,
    db: AsyncSession = Depends(get_db),
) -> CertificateVerification:
    return await controller.verify_certificate(db, certificate_code)
