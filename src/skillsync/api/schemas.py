"""Pydantic schemas for API request/response models."""

from pydantic import BaseModel, Field

from skillsync.core.tools import ToolId


class ScanRequest(BaseModel):
    """Request body for scanning a repository."""

    url: str
    scope_root: str | None = None


class InstallRequest(BaseModel):
    """Request body for installing skills from a repository."""

    url: str
    skill_names: list[str] = Field(min_length=1)
    target_tools: list[str] | None = None
    scope_root: str | None = None


class ToggleRequest(BaseModel):
    enabled: bool


class ToolsRequest(BaseModel):
    """Request body naming the tools an operation applies to."""

    tools: list[str] = Field(min_length=1)


class RepositoryUpdate(BaseModel):
    url: str


class RemovalResponse(BaseModel):
    name: str
    removed_tools: list[ToolId]
    remaining_tools: list[ToolId]
    fully_uninstalled: bool


class SkillFileContent(BaseModel):
    path: str
    content: str


class WorkspaceCreate(BaseModel):
    path: str


class WorkspaceUpdate(BaseModel):
    """Request body for updating a workspace (partial updates)."""

    name: str | None = None
    color: str | None = None
    icon: str | None = None


class ScopeSwitch(BaseModel):
    """Request body for switching scope; null selects the global scope."""

    workspace_id: str | None = None


class SkillsDirRequest(BaseModel):
    tool: str


class SourceCreate(BaseModel):
    """Request body for adding a marketplace source."""

    name: str
    url: str
    tags: list[str] | None = None
    description: str | None = None


class SourceUpdate(BaseModel):
    """Request body for updating a marketplace source (partial updates)."""

    name: str | None = None
    tags: list[str] | None = None
    description: str | None = None
    priority: int | None = None


class MarketplaceInstall(BaseModel):
    skill_names: list[str] = Field(min_length=1)
    target_tools: list[str] | None = None
    scope_root: str | None = None


class ConfigUpdate(BaseModel):
    """Request body for updating config (partial updates)."""

    default_tools: list[ToolId] | None = None
    recent_limit: int | None = None
    git_timeout: int | None = None
