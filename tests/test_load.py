"""Tests for the synthetic load generators."""

import time

import pytest

from podprobe import load
from podprobe.load import (
    MemoryLoadError,
    allocate_blocks,
    clamp_duration,
    clamp_intensity,
    clamp_size,
    generate_cpu_load,
    generate_memory_load,
)


class SteppingClock:
    """Fake monotonic clock advancing ``step`` seconds per read."""

    def __init__(self, step: float = 1.0):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


async def no_sleep(_seconds):
    return None


@pytest.mark.parametrize("duration, expected", [(0, 10), (-5, 10), (61, 10), (1000, 10), (1, 1), (60, 60), (25, 25)])
def test_clamp_duration(duration, expected):
    assert clamp_duration(duration) == expected


@pytest.mark.parametrize("intensity, expected", [(0, 50), (101, 50), (500, 50), (1, 1), (100, 100), (7, 7)])
def test_clamp_intensity(intensity, expected):
    assert clamp_intensity(intensity) == expected


@pytest.mark.parametrize("size, expected", [(0, 10), (101, 10), (-1, 10), (1, 1), (100, 100), (42, 42)])
def test_clamp_size(size, expected):
    assert clamp_size(size) == expected


def test_burn_batch_counts_operations():
    assert load.burn_batch(3) == 3 * load.OPERATIONS_PER_INTENSITY


@pytest.mark.asyncio
async def test_cpu_load_runs_until_deadline():
    # Clock reads 0 for the deadline, then 1 and 2 run a batch and 3 stops the loop
    report = await generate_cpu_load(3, 2, clock=SteppingClock(), sleep=no_sleep)
    assert report.duration == 3
    assert report.intensity == 2
    assert report.operations == 2 * 2 * load.OPERATIONS_PER_INTENSITY


@pytest.mark.asyncio
async def test_cpu_load_clamps_out_of_range_input():
    report = await generate_cpu_load(999999, 0, clock=SteppingClock(step=5), sleep=no_sleep)
    assert report.duration == 10
    assert report.intensity == 50
    assert report.operations > 0


@pytest.mark.asyncio
async def test_cpu_load_yields_between_batches():
    sleeps = []

    async def record_sleep(seconds):
        sleeps.append(seconds)

    await generate_cpu_load(4, 1, clock=SteppingClock(), sleep=record_sleep)
    assert sleeps == [load.YIELD_INTERVAL] * 3


@pytest.mark.asyncio
async def test_cpu_load_takes_requested_wall_clock_time():
    started = time.monotonic()
    report = await generate_cpu_load(2, 10)
    elapsed = time.monotonic() - started
    assert 2.0 <= elapsed < 3.5
    assert report.operations > 0


def test_memory_load_allocates_requested_blocks():
    report = generate_memory_load(5)
    assert report.memory_blocks == 5
    assert report.memory_allocated == 5
    assert report.total_memory_mb > 0


def test_memory_load_clamps_size():
    report = generate_memory_load(500)
    assert report.memory_allocated == 10
    assert report.memory_blocks == 10


def test_allocated_blocks_are_one_megabyte_and_written():
    blocks = allocate_blocks(2)
    assert [len(b) for b in blocks] == [load.BLOCK_SIZE, load.BLOCK_SIZE]
    assert blocks[0][0] == blocks[0][-1] == 0xA5


def test_allocation_failure_is_reported(monkeypatch):
    calls = []

    def failing_bytearray(data):
        calls.append(data)
        if len(calls) > 2:
            raise MemoryError
        return bytearray(data)

    monkeypatch.setattr(load, "bytearray", failing_bytearray, raising=False)
    with pytest.raises(MemoryLoadError) as exc_info:
        allocate_blocks(5)
    assert exc_info.value.requested_mb == 5
    assert exc_info.value.allocated_blocks == 2
