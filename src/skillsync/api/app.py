"""FastAPI application factory."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from skillsync import __version__
from skillsync.api.routers import config, marketplace, skills, workspaces
from skillsync.core.context import SharedContext
from skillsync.core.exceptions import (
    ConflictError,
    FetchError,
    InstallFailedError,
    NoRepositoryError,
    ParseError,
    PartialInstallError,
    PathSafetyError,
    SkillNotFoundError,
    SkillSyncError,
    SourceNotFoundError,
    UnknownToolError,
    UpdateApplyError,
    WorkspaceNotFoundError,
)

ERROR_STATUS: list[tuple[type[SkillSyncError], int]] = [
    (SkillNotFoundError, status.HTTP_404_NOT_FOUND),
    (WorkspaceNotFoundError, status.HTTP_404_NOT_FOUND),
    (SourceNotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ParseError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (PathSafetyError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (UnknownToolError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NoRepositoryError, status.HTTP_400_BAD_REQUEST),
    (FetchError, status.HTTP_502_BAD_GATEWAY),
    (UpdateApplyError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for(exc: SkillSyncError) -> int:
    for exc_type, code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def handle_skillsync_error(request: Request, exc: SkillSyncError) -> JSONResponse:
    """Translate core errors into HTTP responses."""
    if isinstance(exc, (PartialInstallError, InstallFailedError)):
        code = (
            status.HTTP_207_MULTI_STATUS
            if isinstance(exc, PartialInstallError)
            else status.HTTP_422_UNPROCESSABLE_ENTITY
        )
        return JSONResponse(
            status_code=code,
            content={"detail": str(exc), "summary": exc.summary.model_dump(mode="json")},
        )
    return JSONResponse(status_code=status_for(exc), content={"detail": str(exc)})


def create_app(context: SharedContext) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="skillsync API",
        description="HTTP API for the skillsync engine",
        version=__version__,
    )
    app.state.context = context
    app.add_exception_handler(SkillSyncError, handle_skillsync_error)

    app.include_router(skills.router, prefix="/skills", tags=["skills"])
    app.include_router(workspaces.router, prefix="/workspaces", tags=["workspaces"])
    app.include_router(marketplace.router, prefix="/marketplace", tags=["marketplace"])
    app.include_router(config.router, prefix="/config", tags=["config"])

    return app
