"""Workspace resource router."""

from fastapi import APIRouter, Depends, HTTPException, status

from skillsync.api.deps import get_context
from skillsync.api.schemas import (
    ScopeSwitch,
    SkillsDirRequest,
    WorkspaceCreate,
    WorkspaceUpdate,
)
from skillsync.core.context import SharedContext
from skillsync.core.tools import parse_tool
from skillsync.core.workspace import Workspace

router = APIRouter()


@router.get("", response_model=list[Workspace])
def list_workspaces(ctx: SharedContext = Depends(get_context)) -> list[Workspace]:
    """List all workspaces."""
    return ctx.workspace_store.list_workspaces()


@router.post("", response_model=Workspace, status_code=status.HTTP_201_CREATED)
def add_workspace(
    data: WorkspaceCreate, ctx: SharedContext = Depends(get_context)
) -> Workspace:
    """Register a project directory as a workspace."""
    try:
        return ctx.workspace_store.add(data.path)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/current", response_model=Workspace | None)
def get_current(ctx: SharedContext = Depends(get_context)) -> Workspace | None:
    """Current workspace, null in the global scope."""
    return ctx.workspace_store.current()


@router.put("/current", response_model=Workspace | None)
def switch_scope(
    data: ScopeSwitch, ctx: SharedContext = Depends(get_context)
) -> Workspace | None:
    """Switch to a workspace, or to the global scope with a null id."""
    return ctx.resolver.switch_scope(data.workspace_id)


@router.get("/{workspace_id}", response_model=Workspace)
def get_workspace(
    workspace_id: str, ctx: SharedContext = Depends(get_context)
) -> Workspace:
    return ctx.workspace_store.get(workspace_id)


@router.patch("/{workspace_id}", response_model=Workspace)
def update_workspace(
    workspace_id: str, data: WorkspaceUpdate, ctx: SharedContext = Depends(get_context)
) -> Workspace:
    return ctx.workspace_store.update(
        workspace_id, name=data.name, color=data.color, icon=data.icon
    )


@router.delete("/{workspace_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_workspace(workspace_id: str, ctx: SharedContext = Depends(get_context)) -> None:
    was_current = ctx.workspace_store.current_id() == workspace_id
    ctx.workspace_store.remove(workspace_id)
    if was_current:
        ctx.resolver.switch_scope(None)


@router.post("/{workspace_id}/refresh", response_model=Workspace)
def refresh_workspace(
    workspace_id: str, ctx: SharedContext = Depends(get_context)
) -> Workspace:
    return ctx.workspace_store.refresh(workspace_id)


@router.post("/{workspace_id}/skills-dir")
def init_skills_dir(
    workspace_id: str, data: SkillsDirRequest, ctx: SharedContext = Depends(get_context)
) -> dict:
    """Create <workspace>/.{tool}/skills."""
    path = ctx.workspace_store.init_skills_dir(workspace_id, parse_tool(data.tool))
    return {"path": str(path)}
