import math

DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
DEFAULT_DURATION = 60.0
ASSUMED_FPS = 30
SAMPLE_SECONDS = 10.0
COMPRESSION_RATIO = 50


def _known(value: float | None) -> bool:
    return value is not None and not math.isnan(value) and value > 0


def estimate_footprint_bytes(
    width: int | None,
    height: int | None,
    duration: float | None,
    min_mb: float = 50.0,
) -> int:
    """Rough decoded-memory estimate for a video resource.

    Uncompressed RGB frames at ASSUMED_FPS over at most SAMPLE_SECONDS of the
    clip, divided by COMPRESSION_RATIO. Unknown dimensions fall back to 1080p
    and an unknown duration to one minute. Never below ``min_mb`` MiB.
    """
    w = width if _known(width) else DEFAULT_WIDTH
    h = height if _known(height) else DEFAULT_HEIGHT
    d = duration if _known(duration) else DEFAULT_DURATION

    estimate = w * h * 3 * ASSUMED_FPS * min(d, SAMPLE_SECONDS) / COMPRESSION_RATIO
    floor = min_mb * 1024 * 1024
    return int(max(estimate, floor))
