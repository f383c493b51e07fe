"""Skill resource router."""

from dataclasses import asdict

from fastapi import APIRouter, Depends

from skillsync.api.deps import get_service
from skillsync.api.schemas import (
    InstallRequest,
    RemovalResponse,
    RepositoryUpdate,
    ScanRequest,
    SkillFileContent,
    ToggleRequest,
    ToolsRequest,
)
from skillsync.core.installer import InstallSummary
from skillsync.core.registry import InstalledSkillEntry
from skillsync.core.scanner import ScannedSkillInfo
from skillsync.core.service import SkillDetail, SkillFile, SkillService
from skillsync.core.updater import SkillUpdateCheckResult, UpdateSummary

router = APIRouter()


@router.get("", response_model=list[InstalledSkillEntry])
async def list_skills(
    scope_root: str | None = None, service: SkillService = Depends(get_service)
) -> list[InstalledSkillEntry]:
    """List installed skills of the current (or given) scope."""
    return await service.list_installed_skills(scope_root)


@router.post("/scan", response_model=list[ScannedSkillInfo])
async def scan_repository(
    data: ScanRequest, service: SkillService = Depends(get_service)
) -> list[ScannedSkillInfo]:
    """List the skills of a repository."""
    return await service.scan_repo_skills(data.url, data.scope_root)


@router.post("/install", response_model=InstallSummary)
async def install_skills(
    data: InstallRequest, service: SkillService = Depends(get_service)
) -> InstallSummary:
    """Install skills from a repository."""
    return await service.install_skill_from_repo(
        data.url, data.skill_names, data.target_tools, data.scope_root
    )


@router.get("/{name}", response_model=SkillDetail)
async def get_skill(name: str, service: SkillService = Depends(get_service)) -> SkillDetail:
    """Get an installed skill with its descriptor body and files."""
    return await service.get_skill_detail(name)


@router.put("/{name}/enabled", response_model=InstalledSkillEntry)
async def toggle_skill(
    name: str, data: ToggleRequest, service: SkillService = Depends(get_service)
) -> InstalledSkillEntry:
    return await service.toggle_skill(name, data.enabled)


@router.delete("/{name}", response_model=RemovalResponse)
async def uninstall_skill(
    name: str, service: SkillService = Depends(get_service)
) -> dict:
    """Delete every installed copy of a skill and its registry entry."""
    return asdict(await service.uninstall_skill(name))


@router.post("/{name}/remove", response_model=RemovalResponse)
async def remove_from_tools(
    name: str, data: ToolsRequest, service: SkillService = Depends(get_service)
) -> dict:
    """Remove a skill from some tools; fully_uninstalled reports the last one."""
    return asdict(await service.remove_skill_from_tools(name, data.tools))


@router.post("/{name}/apply", response_model=InstallSummary)
async def apply_to_tools(
    name: str, data: ToolsRequest, service: SkillService = Depends(get_service)
) -> InstallSummary:
    return await service.apply_skill_to_tools(name, data.tools)


@router.get("/{name}/update", response_model=SkillUpdateCheckResult)
async def check_update(
    name: str, service: SkillService = Depends(get_service)
) -> SkillUpdateCheckResult:
    return await service.check_skill_update(name)


@router.post("/{name}/update", response_model=UpdateSummary)
async def apply_update(
    name: str, service: SkillService = Depends(get_service)
) -> UpdateSummary:
    return await service.update_skill(name)


@router.put("/{name}/repository", response_model=InstalledSkillEntry)
async def set_repository(
    name: str, data: RepositoryUpdate, service: SkillService = Depends(get_service)
) -> InstalledSkillEntry:
    return await service.set_skill_repository(name, data.url)


@router.get("/{name}/files", response_model=list[SkillFile])
async def list_files(
    name: str, service: SkillService = Depends(get_service)
) -> list[SkillFile]:
    return await service.list_skill_files(name)


@router.get("/{name}/files/{relative_path:path}", response_model=SkillFileContent)
async def read_file(
    name: str, relative_path: str, service: SkillService = Depends(get_service)
) -> SkillFileContent:
    content = await service.read_skill_file(name, relative_path)
    return SkillFileContent(path=relative_path, content=content)
