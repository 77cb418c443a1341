import pytest

from mediakeeper.config.environment import Environment
from mediakeeper.media.lifecycle_manager import reset_lifecycle_manager
from mediakeeper.media.memory_probe import HeapUsage, MemoryProbe

MB = 1024 * 1024


class FakeClock:
    """Manually advanced clock for time-dependent manager behaviour."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMemoryProbe(MemoryProbe):
    """Probe reporting a configurable heap usage and counting gc hints."""

    def __init__(self, used_mb: float | None = 100.0):
        self.used_mb = used_mb
        self.gc_requests = 0

    def heap_usage(self) -> HeapUsage | None:
        if self.used_mb is None:
            return None
        return HeapUsage(
            used_bytes=int(self.used_mb * MB),
            total_bytes=int(self.used_mb * 2 * MB),
            limit_bytes=4096 * MB,
        )

    def request_gc(self) -> bool:
        self.gc_requests += 1
        return True


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep host settings files out of tests and reset shared state."""
    monkeypatch.setenv("MEDIAKEEPER_CONFIG_DIR", str(tmp_path))
    Environment.reset()
    reset_lifecycle_manager()
    yield
    reset_lifecycle_manager()
    Environment.reset()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def probe():
    return FakeMemoryProbe()
