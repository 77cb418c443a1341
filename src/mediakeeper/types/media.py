"""
Types for the media memory debug API responses.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class MediaMemoryStats(BaseModel):
    """Current memory statistics for the debug overlay."""

    used_mb: Optional[float] = Field(default=None, description="Used memory in MB, if the host reports it")
    total_mb: Optional[float] = Field(default=None, description="Reserved memory in MB")
    limit_mb: Optional[float] = Field(default=None, description="Memory limit in MB")
    active_resources: int = Field(default=0, description="Number of tracked media resources")
    max_active_resources: int = Field(description="Configured maximum of tracked resources")
    estimated_footprint_mb: float = Field(default=0.0, description="Sum of footprint estimates in MB")
    status: Literal["normal", "high", "unknown"] = Field(default="unknown")


class TrackedResourceInfo(BaseModel):
    """A tracked media resource."""

    id: str
    src: Optional[str] = None
    paused: bool
    loop_count: int
    idle_seconds: float = Field(description="Seconds since the last play, pause or loop")
    footprint_mb: float
    reloading: bool = False


class TrackedResourcesResponse(BaseModel):
    resources: list[TrackedResourceInfo] = Field(default_factory=list)
    total_footprint_mb: float = 0.0


class MediaCleanupResult(BaseModel):
    """Result of a forced media cleanup."""

    success: bool = Field(default=True)
    message: str = Field(default="Cleanup completed")
    resources_released: int = Field(default=0)
