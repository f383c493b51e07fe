"""Supported AI coding tools and where each one keeps its skills."""

from enum import StrEnum
from pathlib import Path
from typing import Iterable

from skillsync.core.exceptions import UnknownToolError


class ToolId(StrEnum):
    """Closed set of tool ecosystems a skill can be installed into."""

    CLAUDE_CODE = "claude-code"
    CURSOR = "cursor"
    CODEX = "codex"
    OPENCODE = "opencode"
    ANTIGRAVITY = "antigravity"
    DROID = "droid"


def parse_tool(value: "str | ToolId") -> ToolId:
    """Convert a string to a ToolId, raising UnknownToolError on typos."""
    if isinstance(value, ToolId):
        return value
    try:
        return ToolId(value.strip().lower())
    except ValueError:
        raise UnknownToolError(value) from None


def parse_tools(values: Iterable["str | ToolId"]) -> list[ToolId]:
    """Parse and de-duplicate tool identifiers, keeping the caller's order."""
    tools: list[ToolId] = []
    for value in values:
        tool = parse_tool(value)
        if tool not in tools:
            tools.append(tool)
    return tools


def global_skills_dir(tool: ToolId, home: Path) -> Path:
    """Home-level skills directory of a tool."""
    match tool:
        case ToolId.CLAUDE_CODE:
            return home / ".claude" / "skills"
        case ToolId.CURSOR:
            return home / ".cursor" / "skills"
        case ToolId.CODEX:
            return home / ".codex" / "skills"
        case ToolId.OPENCODE:
            return home / ".config" / "opencode" / "skills"
        case ToolId.ANTIGRAVITY:
            return home / ".gemini" / "antigravity" / "global_skills" / "skills"
        case ToolId.DROID:
            return home / ".droid" / "skills"


def project_config_dir(tool: ToolId) -> str:
    """Name of the tool's hidden directory inside a project."""
    match tool:
        case ToolId.CLAUDE_CODE:
            return ".claude"
        case ToolId.CURSOR:
            return ".cursor"
        case ToolId.CODEX:
            return ".codex"
        case ToolId.OPENCODE:
            return ".opencode"
        case ToolId.ANTIGRAVITY:
            return ".antigravity"
        case ToolId.DROID:
            return ".droid"


def project_skills_dir(tool: ToolId, workspace_path: Path) -> Path:
    """Project-scoped skills directory: <workspace>/.{tool}/skills."""
    return workspace_path / project_config_dir(tool) / "skills"
