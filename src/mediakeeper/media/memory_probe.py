"""
Memory introspection for the media lifecycle manager.

Heap telemetry and garbage-collection hints are optional host capabilities.
They are injected into the manager as a MemoryProbe; NullMemoryProbe stands in
when the host exposes neither, in which case memory checks and gc hints are
simply skipped.
"""

from __future__ import annotations

import gc
import math
from abc import ABC, abstractmethod
from typing import NamedTuple

import psutil

from mediakeeper.config.logging_config import get_logger

log = get_logger(__name__)

_MB = 1024 * 1024


class HeapUsage(NamedTuple):
    """Memory telemetry in bytes.

    Attributes:
        used_bytes: Memory currently used by the host.
        total_bytes: Memory currently reserved by the host.
        limit_bytes: Upper bound the host may grow to.
    """

    used_bytes: int
    total_bytes: int
    limit_bytes: int

    @property
    def used_mb(self) -> float:
        return self.used_bytes / _MB

    @property
    def total_mb(self) -> float:
        return self.total_bytes / _MB

    @property
    def limit_mb(self) -> float:
        return self.limit_bytes / _MB


class MemoryProbe(ABC):
    """Optional heap introspection and gc hint capability."""

    @abstractmethod
    def heap_usage(self) -> HeapUsage | None:
        """Return current usage, or None when the host does not expose it."""

    @abstractmethod
    def request_gc(self) -> bool:
        """Ask the host to collect garbage. Returns True if a collection ran."""


class NullMemoryProbe(MemoryProbe):
    """Probe for hosts without heap introspection."""

    def heap_usage(self) -> HeapUsage | None:
        return None

    def request_gc(self) -> bool:
        return False


class ProcessMemoryProbe(MemoryProbe):
    """Reports the current process' memory through psutil."""

    def heap_usage(self) -> HeapUsage | None:
        try:
            mem = psutil.Process().memory_info()
            vm = psutil.virtual_memory()
            return HeapUsage(
                used_bytes=int(mem.rss),
                total_bytes=int(mem.vms),
                limit_bytes=int(vm.total),
            )
        except Exception as exc:
            log.debug("Unable to capture memory stats: %s", exc)
            return None

    def request_gc(self) -> bool:
        collected = gc.collect()
        log.debug("Manual garbage collection triggered (%d objects)", collected)
        return True


def get_memory_info(probe: MemoryProbe) -> dict[str, str] | None:
    """Return used/total/limit in megabytes formatted with two decimals."""
    usage = probe.heap_usage()
    if usage is None:
        return None
    return {
        "used": f"{usage.used_mb:.2f}",
        "total": f"{usage.total_mb:.2f}",
        "limit": f"{usage.limit_mb:.2f}",
    }


def format_bytes(num_bytes: float) -> str:
    """Render a byte count using the largest fitting unit, e.g. ``1.5 KB``."""
    if num_bytes <= 0:
        return "0 Bytes"
    k = 1024
    sizes = ["Bytes", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(num_bytes) / math.log(k))), len(sizes) - 1)
    value = round(num_bytes / math.pow(k, i), 2)
    return f"{value:g} {sizes[i]}"
