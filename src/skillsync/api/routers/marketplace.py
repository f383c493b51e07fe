"""Marketplace source router."""

from fastapi import APIRouter, Depends, HTTPException, status

from skillsync.api.deps import get_context
from skillsync.api.schemas import (
    MarketplaceInstall,
    SourceCreate,
    SourceUpdate,
    ToggleRequest,
)
from skillsync.core.context import SharedContext
from skillsync.core.installer import InstallSummary
from skillsync.core.marketplace import MarketplaceCache, MarketplaceSource

router = APIRouter()


@router.get("", response_model=list[MarketplaceSource])
def list_sources(ctx: SharedContext = Depends(get_context)) -> list[MarketplaceSource]:
    return ctx.marketplace.list_sources()


@router.post("", response_model=MarketplaceSource, status_code=status.HTTP_201_CREATED)
def add_source(
    data: SourceCreate, ctx: SharedContext = Depends(get_context)
) -> MarketplaceSource:
    """Add a custom source."""
    try:
        return ctx.marketplace.add(
            data.name, data.url, tags=data.tags, description=data.description
        )
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/defaults", response_model=list[MarketplaceSource])
def init_defaults(ctx: SharedContext = Depends(get_context)) -> list[MarketplaceSource]:
    """Add the built-in sources that are missing."""
    return ctx.marketplace.init_default_sources()


@router.post("/refresh", response_model=list[MarketplaceCache])
async def refresh_all(ctx: SharedContext = Depends(get_context)) -> list[MarketplaceCache]:
    return await ctx.service.refresh_all_marketplace()


@router.patch("/{source_id}", response_model=MarketplaceSource)
def update_source(
    source_id: str, data: SourceUpdate, ctx: SharedContext = Depends(get_context)
) -> MarketplaceSource:
    return ctx.marketplace.update(
        source_id,
        name=data.name,
        tags=data.tags,
        description=data.description,
        priority=data.priority,
    )


@router.put("/{source_id}/enabled", response_model=MarketplaceSource)
def toggle_source(
    source_id: str, data: ToggleRequest, ctx: SharedContext = Depends(get_context)
) -> MarketplaceSource:
    return ctx.marketplace.toggle(source_id, data.enabled)


@router.delete("/{source_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_source(source_id: str, ctx: SharedContext = Depends(get_context)) -> None:
    ctx.marketplace.remove(source_id)


@router.post("/{source_id}/refresh", response_model=MarketplaceCache)
async def refresh_source(
    source_id: str, ctx: SharedContext = Depends(get_context)
) -> MarketplaceCache:
    return await ctx.service.refresh_marketplace(source_id)


@router.get("/{source_id}/skills", response_model=MarketplaceCache)
def cached_skills(
    source_id: str, ctx: SharedContext = Depends(get_context)
) -> MarketplaceCache:
    """Skills of a source as of its last refresh."""
    return ctx.marketplace.cached_skills(source_id)


@router.post("/{source_id}/install", response_model=InstallSummary)
async def install_from_source(
    source_id: str, data: MarketplaceInstall, ctx: SharedContext = Depends(get_context)
) -> InstallSummary:
    return await ctx.service.install_from_marketplace(
        source_id, data.skill_names, data.target_tools, data.scope_root
    )
