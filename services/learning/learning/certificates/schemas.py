"""Certificate domain Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learning.progress.schemas import ProgramProgress
from learning.results import OperationResult


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class IssueCertificateRequest(BaseModel):
    program_id: UUID
    trainee_id: UUID | None = Field(
        default=None,
        description="Defaults to the caller. Only admins may request for someone else.",
    )


class ApproveCertificateRequest(BaseModel):
    trainee_id: UUID
    program_id: UUID
    allow_reissue: bool = Field(
        default=False,
        description="Issue a fresh certificate even though the previous one was revoked.",
    )


class RevokeCertificateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reason: str = Field(min_length=1, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CertificateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    certificate_code: str
    trainee_id: UUID
    program_id: UUID
    pdf_url: str | None = None
    issued_at: datetime
    approved_by_id: UUID | None = None
    auto_issued: bool
    revoked_at: datetime | None = None
    revoked_reason: str | None = None


class CertificateIssueResult(OperationResult):
    certificate_code: str | None = None
    pdf_url: str | None = None
    created: bool = False
    certificate: CertificateResponse | None = None


class CertificateEligibility(BaseModel):
    eligible: bool
    reason: str | None = None
    progress: ProgramProgress


class EligibilityResult(OperationResult):
    eligibility: CertificateEligibility | None = None


class CertificateListResult(OperationResult):
    certificates: list[CertificateResponse] = Field(default_factory=list)


class CertificateVerification(BaseModel):
    """Public verification result. Revoked certificates are found but not valid."""

    found: bool
    valid: bool = False
    certificate_code: str
    trainee_name: str | None = None
    program_name: str | None = None
    issued_at: datetime | None = None
    revoked_at: datetime | None = None
    revoked_reason: str | None = None
