"""
Synthetic CPU and memory load for autoscaler experiments.

Out-of-range parameters are never rejected, they are replaced by a default so
that a typo like ``duration=999999`` still produces a bounded workload.

The CPU loop awaits a short sleep between batches. The event loop keeps serving
other requests (``/health`` probes in particular) while a load run is active,
and the process stays just below a full core.
"""

import asyncio
import math
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, List

from podprobe.identity import utcnow
from podprobe.runtime import memory_usage_mb

DURATION_RANGE = (1, 60)
DEFAULT_DURATION = 10
INTENSITY_RANGE = (1, 100)
DEFAULT_INTENSITY = 50
SIZE_RANGE = (1, 100)
DEFAULT_SIZE_MB = 10

OPERATIONS_PER_INTENSITY = 1000
YIELD_INTERVAL = 0.001
BLOCK_SIZE = 1024 * 1024


class MemoryLoadError(Exception):
    """Raised when the requested blocks could not be allocated."""

    def __init__(self, requested_mb: int, allocated_blocks: int):
        super().__init__(
            f"Could not allocate {requested_mb} MB (got {allocated_blocks} blocks before running out of memory)"
        )
        self.requested_mb = requested_mb
        self.allocated_blocks = allocated_blocks


@dataclass
class CpuLoadReport:
    duration: int
    intensity: int
    operations: int
    completed_at: datetime


@dataclass
class MemoryLoadReport:
    memory_allocated: int
    total_memory_mb: int
    memory_blocks: int


def clamp(value: int, bounds: tuple, default: int) -> int:
    """Return ``value`` if it lies inside ``bounds`` (inclusive), else ``default``."""
    lower, upper = bounds
    if value < lower or value > upper:
        return default
    return value


def clamp_duration(duration: int) -> int:
    return clamp(duration, DURATION_RANGE, DEFAULT_DURATION)


def clamp_intensity(intensity: int) -> int:
    return clamp(intensity, INTENSITY_RANGE, DEFAULT_INTENSITY)


def clamp_size(size: int) -> int:
    return clamp(size, SIZE_RANGE, DEFAULT_SIZE_MB)


def burn_batch(intensity: int) -> int:
    """Run one batch of floating point work and return the operation count."""
    operations = 0
    for i in range(intensity * OPERATIONS_PER_INTENSITY):
        math.sqrt(i)
        math.pow(i, 2)
        operations += 1
    return operations


async def generate_cpu_load(
    duration: int,
    intensity: int,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable] = asyncio.sleep,
) -> CpuLoadReport:
    """Keep a core busy for ``duration`` seconds of wall-clock time."""
    duration = clamp_duration(duration)
    intensity = clamp_intensity(intensity)

    deadline = clock() + duration
    operations = 0
    while clock() < deadline:
        operations += burn_batch(intensity)
        await sleep(YIELD_INTERVAL)

    return CpuLoadReport(
        duration=duration,
        intensity=intensity,
        operations=operations,
        completed_at=utcnow(),
    )


def allocate_blocks(size: int) -> List[bytearray]:
    """Allocate ``size`` blocks of 1 MB with every page written."""
    blocks = []
    try:
        for _ in range(size):
            blocks.append(bytearray(b"\xa5") * BLOCK_SIZE)
    except MemoryError:
        allocated = len(blocks)
        blocks.clear()
        raise MemoryLoadError(size, allocated) from None
    return blocks


def generate_memory_load(size: int) -> MemoryLoadReport:
    """Hold ``size`` MB for the duration of the call and report process memory."""
    size = clamp_size(size)
    blocks = allocate_blocks(size)
    total_memory_mb = memory_usage_mb()
    return MemoryLoadReport(
        memory_allocated=size,
        total_memory_mb=total_memory_mb,
        memory_blocks=len(blocks),
    )
