"""Maps failed core results onto HTTP errors. Used by every controller."""

from __future__ import annotations

from fastapi import HTTPException, status

from learning.exceptions import ErrorCode
from learning.results import OperationResult

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.NOT_ENROLLED: status.HTTP_403_FORBIDDEN,
    ErrorCode.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.SEQUENCING_VIOLATION: status.HTTP_403_FORBIDDEN,
    ErrorCode.INELIGIBLE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
}


def http_error(code: ErrorCode | None, message: str | None) -> HTTPException:
    status_code = STATUS_BY_CODE.get(code, status.HTTP_400_BAD_REQUEST)
    return HTTPException(
        status_code=status_code,
        detail={"code": code.value if code else "error", "message": message or "Request failed"},
    )


def unwrap(result: OperationResult):
    """Return the result unchanged when ok, otherwise raise the matching HTTPException."""
    if not result.ok:
        raise http_error(result.code, result.error)
    return result
