import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from learning.access.router import router as access_router
from learning.certificates.router import router as certificates_router
from learning.database import init_db
from learning.dependencies import get_settings
from learning.enrollments.router import router as enrollments_router
from learning.progress.router import router as progress_router
from learning.structure.router import router as structure_router
from learning.submissions.router import router as submissions_router
from shared.middleware import (
    RequestIdLogFilter,
    error_envelope_middleware,
    http_exception_handler,
    request_id_middleware,
)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdLogFilter())
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    init_db(settings.learning_database_url)
    yield


SWAGGER_DESCRIPTION = """\
## Learning Progression Service

Sequential lesson gating, module/program progress, cohort access windows,
enrollment risk and deadline management, and certificate issuance with
public verification.

### Domain Tags

| Tag | Description |
|-----|-------------|
| **Access** | Lesson unlock checks, lesson access recording, cohort window checks |
| **Progress** | Per-module and per-program progress |
| **Submissions** | Assignment hand-in and grading |
| **Enrollments** | Bulk enrollment, at-risk flags, deadline extensions, reminders |
| **Certificates** | Issuance, approval, revocation, public verification |
| **Structure** | Lessons, assignments, cohorts, program activation |

### Authentication

All endpoints (except health check and certificate verification)
require a valid JWT Bearer token in the `Authorization` header.
Token structure: `{"sub": "<user_uuid>", "role": "ADMIN|MENTOR|TRAINEE", "email": "..."}`.

### Status Transitions

```
Program:    INACTIVE → ACTIVE (first cohort)
Progress:   ACTIVE → PENDING_REVIEW → COMPLETED
Submission: PENDING → PENDING_ADMIN_APPROVAL → APPROVED | REJECTED | RESUBMIT_REQUESTED
Certificate: issued → revoked (row retained)
```
"""


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title="UNIPOD Learning Progression",
        version="0.1.0",
        description=SWAGGER_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    app.middleware("http")(error_envelope_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(access_router, prefix="/api/v1")
    app.include_router(progress_router, prefix="/api/v1")
    app.include_router(submissions_router, prefix="/api/v1")
    app.include_router(enrollments_router, prefix="/api/v1")
    app.include_router(certificates_router, prefix="/api/v1")
    app.include_router(structure_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        return {"status": "ok", "service": "learning"}

    return app


app = create_app()
