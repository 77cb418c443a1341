from .footprint import estimate_footprint_bytes
from .handle import MediaError, MediaEvent, MediaHandle, MediaListener, PlaybackDeniedError
from .lifecycle_manager import (
    MediaLifecycleManager,
    MediaMemoryStats,
    TrackedResource,
    get_lifecycle_manager,
    reset_lifecycle_manager,
)
from .memory_probe import (
    HeapUsage,
    MemoryProbe,
    NullMemoryProbe,
    ProcessMemoryProbe,
    format_bytes,
    get_memory_info,
)
from .simulated import SimulatedVideoElement

__all__ = [
    "HeapUsage",
    "MediaError",
    "MediaEvent",
    "MediaHandle",
    "MediaLifecycleManager",
    "MediaListener",
    "MediaMemoryStats",
    "MemoryProbe",
    "NullMemoryProbe",
    "PlaybackDeniedError",
    "ProcessMemoryProbe",
    "SimulatedVideoElement",
    "TrackedResource",
    "estimate_footprint_bytes",
    "format_bytes",
    "get_lifecycle_manager",
    "get_memory_info",
    "reset_lifecycle_manager",
]
