"""Config resource router."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from skillsync.api.deps import get_context
from skillsync.api.schemas import ConfigUpdate
from skillsync.core.context import SharedContext
from skillsync.core.tools import ToolId

router = APIRouter()


class ConfigResponse(BaseModel):
    """Response model for the editable part of the config."""

    default_tools: list[ToolId]
    recent_limit: int
    git_timeout: int


def _response(ctx: SharedContext) -> dict:
    return {
        "default_tools": ctx.config.default_tools,
        "recent_limit": ctx.config.recent_limit,
        "git_timeout": ctx.config.git.timeout,
    }


@router.get("", response_model=ConfigResponse)
def get_config(ctx: SharedContext = Depends(get_context)) -> dict:
    """Get current config."""
    return _response(ctx)


@router.patch("", response_model=ConfigResponse)
def update_config(
    data: ConfigUpdate, ctx: SharedContext = Depends(get_context)
) -> dict:
    """Update config fields in config.user.yaml."""
    updates = {
        "default_tools": (
            [tool.value for tool in data.default_tools]
            if data.default_tools is not None
            else None
        ),
        "recent_limit": data.recent_limit,
        "git.timeout": data.git_timeout,
    }
    try:
        for key, value in updates.items():
            if value is not None:
                ctx.config.set_user(key, value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return _response(ctx)
