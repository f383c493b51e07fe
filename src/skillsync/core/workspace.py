"""Workspaces and resolution of the active skill root.

Two scopes exist:

    global   ~/.claude/skills, ~/.cursor/skills, ...   (state in ~/.skillsync/)
    project  <workspace>/.claude/skills, ...           (state in <workspace>/.skillsync/)

Operations never read an ambient "current scope"; they receive a Scope built
by the WorkspaceResolver for that single call.
"""

import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Literal

from pydantic import BaseModel, ConfigDict, Field

from skillsync.core.exceptions import WorkspaceNotFoundError
from skillsync.core.manifest import write_json_atomic
from skillsync.core.tools import (
    ToolId,
    global_skills_dir,
    project_config_dir,
    project_skills_dir,
)
from skillsync.utils.frontmatter import DESCRIPTOR_FILENAME

logger = logging.getLogger(__name__)

PROJECT_STATE_DIR = ".skillsync"
REGISTRY_FILENAME = "skill-registry.json"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Scope(BaseModel):
    """The set of skill roots one operation resolves against."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["global", "project"]
    root: Path
    state_dir: Path
    workspace_id: str | None = None
    tool_paths: dict[ToolId, Path] = Field(default_factory=dict)

    @property
    def registry_path(self) -> Path:
        return self.state_dir / REGISTRY_FILENAME

    @property
    def label(self) -> str:
        return "global" if self.kind == "global" else f"project:{self.root}"

    def skills_dir(self, tool: ToolId) -> Path:
        if self.kind == "global":
            return self.tool_paths.get(tool) or global_skills_dir(tool, self.root)
        return project_skills_dir(tool, self.root)

    def skill_dir(self, tool: ToolId, name: str) -> Path:
        return self.skills_dir(tool) / name


class Workspace(BaseModel):
    """A project directory with its own skill roots."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    path: str
    icon: str | None = None
    color: str | None = None
    last_opened: str = Field(default_factory=_now_iso, alias="lastOpened")
    created_at: str = Field(default_factory=_now_iso, alias="createdAt")
    skill_count: int = Field(default=0, alias="skillCount")
    has_tool_config: bool = Field(default=False, alias="hasToolConfig")


class WorkspaceConfig(BaseModel):
    """Contents of workspaces.json."""

    model_config = ConfigDict(populate_by_name=True)

    current_workspace: str | None = Field(default=None, alias="currentWorkspace")
    recent_limit: int = Field(default=10, alias="recentLimit")
    workspaces: list[Workspace] = Field(default_factory=list)


def count_workspace_skills(workspace_path: Path) -> int:
    """Number of distinct skills materialized in a workspace's tool roots."""
    names: set[str] = set()
    for tool in ToolId:
        skills_dir = project_skills_dir(tool, workspace_path)
        if not skills_dir.is_dir():
            continue
        for entry in skills_dir.iterdir():
            if entry.is_dir() and (entry / DESCRIPTOR_FILENAME).exists():
                names.add(entry.name)
    return len(names)


def has_tool_config(workspace_path: Path) -> bool:
    return any((workspace_path / project_config_dir(tool)).exists() for tool in ToolId)


class WorkspaceStore:
    """
    JSON file-based workspace list.

    Stored at ~/.skillsync/workspaces.json together with the id of the
    current workspace (null for the global scope).
    """

    def __init__(self, path: Path, recent_limit: int = 10):
        self.path = Path(path)
        self.recent_limit = recent_limit
        self._lock = threading.RLock()

    def _read(self) -> WorkspaceConfig:
        if not self.path.exists():
            return WorkspaceConfig(recent_limit=self.recent_limit)
        return WorkspaceConfig.model_validate_json(self.path.read_text(encoding="utf-8"))

    def _write(self, config: WorkspaceConfig) -> None:
        write_json_atomic(self.path, config.model_dump_json(by_alias=True, indent=2) + "\n")

    def _find(self, config: WorkspaceConfig, workspace_id: str) -> Workspace:
        for workspace in config.workspaces:
            if workspace.id == workspace_id:
                return workspace
        raise WorkspaceNotFoundError(f"Workspace not found: {workspace_id}")

    def list_workspaces(self) -> list[Workspace]:
        with self._lock:
            return self._read().workspaces

    def get(self, workspace_id: str) -> Workspace:
        with self._lock:
            return self._find(self._read(), workspace_id)

    def find_by_path(self, path: Path) -> Workspace | None:
        resolved = Path(path).expanduser().resolve()
        for workspace in self.list_workspaces():
            if Path(workspace.path).resolve() == resolved:
                return workspace
        return None

    def current_id(self) -> str | None:
        with self._lock:
            return self._read().current_workspace

    def current(self) -> Workspace | None:
        with self._lock:
            config = self._read()
            if config.current_workspace is None:
                return None
            try:
                return self._find(config, config.current_workspace)
            except WorkspaceNotFoundError:
                return None

    def add(self, path: str | Path) -> Workspace:
        """
        Register a project directory as a workspace.

        Raises:
            WorkspaceNotFoundError: If the path does not exist or is not a directory
            ValueError: If the workspace is already registered
        """
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.exists():
            raise WorkspaceNotFoundError(f"Path does not exist: {path}")
        if not path_obj.is_dir():
            raise WorkspaceNotFoundError(f"Path is not a directory: {path}")

        with self._lock:
            config = self._read()
            if any(Path(w.path).resolve() == path_obj for w in config.workspaces):
                raise ValueError(f"Workspace already exists: {path_obj}")

            workspace = Workspace(
                id=str(uuid.uuid4()),
                name=path_obj.name or "workspace",
                path=str(path_obj),
                skill_count=count_workspace_skills(path_obj),
                has_tool_config=has_tool_config(path_obj),
            )
            config.workspaces.append(workspace)
            self._write(config)

        logger.info(f"Added workspace {workspace.name} ({workspace.path})")
        return workspace

    def remove(self, workspace_id: str) -> None:
        with self._lock:
            config = self._read()
            self._find(config, workspace_id)
            config.workspaces = [w for w in config.workspaces if w.id != workspace_id]
            if config.current_workspace == workspace_id:
                config.current_workspace = None
            self._write(config)
        logger.info(f"Removed workspace {workspace_id}")

    def update(
        self,
        workspace_id: str,
        name: str | None = None,
        color: str | None = None,
        icon: str | None = None,
    ) -> Workspace:
        with self._lock:
            config = self._read()
            workspace = self._find(config, workspace_id)
            if name is not None:
                workspace.name = name
            if color is not None:
                workspace.color = color
            if icon is not None:
                workspace.icon = icon
            self._write(config)
            return workspace

    def refresh(self, workspace_id: str) -> Workspace:
        """Recount skills and re-detect tool directories."""
        with self._lock:
            config = self._read()
            workspace = self._find(config, workspace_id)
            path = Path(workspace.path)
            workspace.skill_count = count_workspace_skills(path)
            workspace.has_tool_config = has_tool_config(path)
            self._write(config)
            return workspace

    def set_current(self, workspace_id: str | None) -> Workspace | None:
        with self._lock:
            config = self._read()
            if workspace_id is None:
                config.current_workspace = None
                self._write(config)
                return None

            workspace = self._find(config, workspace_id)
            path = Path(workspace.path)
            workspace.last_opened = _now_iso()
            workspace.skill_count = count_workspace_skills(path)
            workspace.has_tool_config = has_tool_config(path)
            config.current_workspace = workspace_id
            self._write(config)
            return workspace

    def recent(self) -> list[Workspace]:
        """Workspaces ordered by last use, capped at the recent limit."""
        with self._lock:
            config = self._read()
        ordered = sorted(config.workspaces, key=lambda w: w.last_opened, reverse=True)
        return ordered[: config.recent_limit]

    def init_skills_dir(self, workspace_id: str, tool: ToolId) -> Path:
        workspace = self.get(workspace_id)
        skills_dir = project_skills_dir(tool, Path(workspace.path))
        skills_dir.mkdir(parents=True, exist_ok=True)
        return skills_dir


ScopeListener = Callable[[Scope], None]


class WorkspaceResolver:
    """Decides whether operations run against global or project skill roots."""

    def __init__(
        self,
        store: WorkspaceStore,
        home: Path,
        state_dir: Path,
        tool_paths: dict[ToolId, Path] | None = None,
    ):
        self.store = store
        self.home = home
        self.state_dir = state_dir
        self.tool_paths = dict(tool_paths or {})
        self._lock = threading.Lock()
        self._listeners: list[ScopeListener] = []

    def global_scope(self) -> Scope:
        return Scope(
            kind="global",
            root=self.home,
            state_dir=self.state_dir,
            tool_paths=self.tool_paths,
        )

    def project_scope(self, path: Path, workspace_id: str | None = None) -> Scope:
        root = Path(path).expanduser().resolve()
        return Scope(
            kind="project",
            root=root,
            state_dir=root / PROJECT_STATE_DIR,
            workspace_id=workspace_id,
        )

    def current_scope(self) -> Scope:
        with self._lock:
            workspace = self.store.current()
        if workspace is None:
            return self.global_scope()
        return self.project_scope(Path(workspace.path), workspace.id)

    def scope_for_root(self, root: Path | str | None) -> Scope:
        """Explicit scope for one call; None means the current scope."""
        if root is None:
            return self.current_scope()
        path = Path(root).expanduser().resolve()
        if path == self.home.expanduser().resolve():
            return self.global_scope()
        workspace = self.store.find_by_path(path)
        return self.project_scope(path, workspace.id if workspace else None)

    def resolve_skills_root(self, tool: ToolId = ToolId.CLAUDE_CODE) -> Path:
        return self.current_scope().skills_dir(tool)

    def subscribe(self, listener: ScopeListener) -> Callable[[], None]:
        """Register a scope-changed callback; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def switch_scope(self, workspace_id: str | None) -> Workspace | None:
        """
        Make a workspace current (or the global scope when None).

        The new scope is persisted before listeners are notified, so a
        listener that reloads sees the new root.

        Raises:
            WorkspaceNotFoundError: If workspace_id is unknown
        """
        with self._lock:
            workspace = self.store.set_current(workspace_id)
            scope = (
                self.global_scope()
                if workspace is None
                else self.project_scope(Path(workspace.path), workspace.id)
            )
        logger.info(f"Switched to {scope.label} scope")
        for listener in list(self._listeners):
            listener(scope)
        return workspace
