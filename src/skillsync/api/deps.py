"""FastAPI dependencies for API routers."""

from fastapi import Request

from skillsync.core.context import SharedContext
from skillsync.core.service import SkillService


def get_context(request: Request) -> SharedContext:
    """Get SharedContext from app state."""
    return request.app.state.context


def get_service(request: Request) -> SkillService:
    return request.app.state.context.service
