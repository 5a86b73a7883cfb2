"""Discriminated results returned across the service boundary.

Business-rule failures never escape a public operation as exceptions: the
``returns_result`` decorator turns any ``LearningError`` into
``result_cls(ok=False, error=..., code=...)``. Everything else (database
outages, unclassified integrity errors) propagates untouched.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from pydantic import BaseModel

from learning.exceptions import ErrorCode, LearningError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R", bound="OperationResult")


class OperationResult(BaseModel):
    ok: bool = True
    error: str | None = None
    code: ErrorCode | None = None

    @classmethod
    def failure(cls, exc: LearningError):
        return cls(ok=False, error=exc.message, code=exc.code)


def returns_result(
    result_cls: type[R],
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    def decorator(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await fn(*args, **kwargs)
            except LearningError as exc:
                logger.info("%s rejected: %s (%s)", fn.__name__, exc.message, exc.code.value)
                return result_cls.failure(exc)

        return wrapper

    return decorator
