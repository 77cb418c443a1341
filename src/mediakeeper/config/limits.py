"""
Tunable limits for the media lifecycle manager.
"""

from pydantic import BaseModel, Field

from mediakeeper.config.environment import Environment


class LifecycleLimits(BaseModel):
    """Caps and timings used by MediaLifecycleManager.

    Durations are in seconds, memory sizes in megabytes.
    """

    max_active_resources: int = Field(default=3, ge=1, description="Maximum tracked resources")
    max_loops_before_reload: int = Field(
        default=10, ge=1, description="Loop completions before a forced reload"
    )
    max_memory_threshold_mb: float = Field(
        default=800.0, gt=0, description="Used heap above which idle resources are paused"
    )
    inactivity_threshold: float = Field(
        default=60.0, gt=0, description="Idle time before a resource is paused under memory pressure"
    )
    stale_threshold: float = Field(
        default=300.0, gt=0, description="Idle time before a paused resource is swept"
    )
    maintenance_interval: float = Field(default=30.0, gt=0, description="Seconds between maintenance ticks")
    reload_delay: float = Field(default=0.1, ge=0, description="Delay before reattaching a reloaded source")
    min_footprint_mb: float = Field(default=50.0, gt=0, description="Floor for footprint estimates")
    high_memory_warning_mb: float = Field(
        default=500.0, gt=0, description="Used heap above which the debug overlay reports high usage"
    )

    @classmethod
    def from_environment(cls) -> "LifecycleLimits":
        defaults = cls()
        values = {}
        for name, key in SETTING_KEYS.items():
            default = getattr(defaults, name)
            if isinstance(default, int):
                values[name] = Environment.get_int(key, default)
            else:
                values[name] = Environment.get_float(key, default)
        return cls(**values)

    def to_settings(self) -> dict[str, int | float]:
        """Return the limits keyed by their settings.yaml names."""
        return {key: getattr(self, name) for name, key in SETTING_KEYS.items()}


SETTING_KEYS = {
    "max_active_resources": "MEDIA_MAX_ACTIVE_RESOURCES",
    "max_loops_before_reload": "MEDIA_MAX_LOOPS_BEFORE_RELOAD",
    "max_memory_threshold_mb": "MEDIA_MAX_MEMORY_MB",
    "inactivity_threshold": "MEDIA_INACTIVITY_SECONDS",
    "stale_threshold": "MEDIA_STALE_SECONDS",
    "maintenance_interval": "MEDIA_MAINTENANCE_INTERVAL",
    "reload_delay": "MEDIA_RELOAD_DELAY",
}
