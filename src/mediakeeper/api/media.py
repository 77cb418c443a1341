"""
API endpoints backing the media memory debug overlay.

Provides endpoints for:
- Memory usage and tracked resource counts
- Listing tracked media resources
- Forcing a cleanup of every tracked resource
- Forwarding page visibility changes
"""

from fastapi import APIRouter, Depends

from mediakeeper.config.logging_config import get_logger
from mediakeeper.media.lifecycle_manager import MediaLifecycleManager, get_lifecycle_manager
from mediakeeper.types.media import (
    MediaCleanupResult,
    MediaMemoryStats,
    TrackedResourceInfo,
    TrackedResourcesResponse,
)

log = get_logger(__name__)
router = APIRouter(prefix="/api/media", tags=["media"])

_MB = 1024 * 1024


@router.get("/memory", response_model=MediaMemoryStats)
async def get_memory_stats(
    manager: MediaLifecycleManager = Depends(get_lifecycle_manager),
) -> MediaMemoryStats:
    """
    Get current memory statistics.

    Memory fields are null when the host does not expose heap introspection.
    """
    stats = manager.memory_stats()
    result = MediaMemoryStats(
        active_resources=stats.active_resources,
        max_active_resources=manager.max_active,
        estimated_footprint_mb=stats.total_estimated_bytes / _MB,
    )
    if stats.heap is not None:
        result.used_mb = round(stats.heap.used_mb, 2)
        result.total_mb = round(stats.heap.total_mb, 2)
        result.limit_mb = round(stats.heap.limit_mb, 2)
        result.status = "high" if stats.heap.used_mb > manager.limits.high_memory_warning_mb else "normal"
    return result


@router.get("/resources", response_model=TrackedResourcesResponse)
async def list_resources(
    manager: MediaLifecycleManager = Depends(get_lifecycle_manager),
) -> TrackedResourcesResponse:
    """List every tracked media resource."""
    now = manager.now()
    resources = [
        TrackedResourceInfo(
            id=entry.identity,
            src=entry.handle.src,
            paused=entry.handle.paused,
            loop_count=entry.loop_count,
            idle_seconds=round(entry.idle_for(now), 3),
            footprint_mb=entry.footprint_bytes / _MB,
            reloading=entry.reloading,
        )
        for entry in manager.all_stats()
    ]
    return TrackedResourcesResponse(
        resources=resources,
        total_footprint_mb=sum(r.footprint_mb for r in resources),
    )


@router.post("/cleanup", response_model=MediaCleanupResult)
async def force_cleanup(
    manager: MediaLifecycleManager = Depends(get_lifecycle_manager),
) -> MediaCleanupResult:
    """Tear down every tracked resource and request garbage collection."""
    released = manager.active_count
    manager.force_cleanup()
    return MediaCleanupResult(
        success=True,
        message=f"Released {released} media resources",
        resources_released=released,
    )


@router.post("/visibility", response_model=TrackedResourcesResponse)
async def visibility_change(
    hidden: bool,
    manager: MediaLifecycleManager = Depends(get_lifecycle_manager),
) -> TrackedResourcesResponse:
    """Forward a page visibility change; hiding pauses every playing resource."""
    manager.on_visibility_change(hidden)
    return await list_resources(manager)
