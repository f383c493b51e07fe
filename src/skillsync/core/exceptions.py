"""Custom exceptions for skillsync."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from skillsync.core.installer import InstallSummary


class SkillSyncError(Exception):
    """Base class for all skillsync errors."""

    pass


class FetchError(SkillSyncError):
    """Repository is unreachable or the URL is not a recognized Git form."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class ParseError(SkillSyncError):
    """Skill descriptor is malformed or absent."""

    pass


class PathSafetyError(SkillSyncError):
    """A path escapes the skill directory it belongs to."""

    def __init__(self, path: str, reason: str = "path escapes skill directory"):
        super().__init__(f"Unsafe path '{path}': {reason}")
        self.path = path
        self.reason = reason


class ConflictError(SkillSyncError):
    """Skill name is already registered from a different source."""

    def __init__(self, name: str, existing: str | None, incoming: str):
        super().__init__(
            f"Skill '{name}' is already installed from {existing or 'a local source'}, "
            f"refusing to overwrite it with {incoming}"
        )
        self.name = name
        self.existing = existing
        self.incoming = incoming


class SkillNotFoundError(SkillSyncError):
    """Raised when a skill is not found."""

    def __init__(self, name: str, where: str = "registry"):
        super().__init__(f"Skill '{name}' not found in {where}")
        self.name = name
        self.where = where


class UnknownToolError(SkillSyncError, ValueError):
    """Tool identifier is not one of the supported tools."""

    def __init__(self, value: str):
        super().__init__(f"Unknown tool: {value}")
        self.value = value


class NoRepositoryError(SkillSyncError):
    """Update requested for a skill with no recorded source repository."""

    def __init__(self, name: str):
        super().__init__(f"Skill '{name}' has no recorded repository")
        self.name = name


class PartialInstallError(SkillSyncError):
    """Some requested skills were installed, others failed."""

    def __init__(self, summary: "InstallSummary"):
        super().__init__(summary.message)
        self.summary = summary


class InstallFailedError(SkillSyncError):
    """None of the requested skills could be installed."""

    def __init__(self, summary: "InstallSummary"):
        super().__init__(summary.message)
        self.summary = summary


class UpdateApplyError(SkillSyncError):
    """Applying an update failed part way through."""

    def __init__(self, name: str, tool: str, path: str, applied: list[str], reason: str):
        super().__init__(
            f"Update of '{name}' failed on {tool} at '{path}' "
            f"after {len(applied)} file(s) were applied: {reason}"
        )
        self.name = name
        self.tool = tool
        self.path = path
        self.applied = applied
        self.reason = reason


class WorkspaceNotFoundError(SkillSyncError):
    """Workspace id is unknown or its path is invalid."""

    pass


class SourceNotFoundError(SkillSyncError):
    """Marketplace source id is unknown."""

    def __init__(self, source_id: str):
        super().__init__(f"Marketplace source not found: {source_id}")
        self.source_id = source_id
