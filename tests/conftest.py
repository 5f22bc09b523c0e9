"""Shared pytest configuration and fixtures for the drive speed test suite."""

import os
import sys
import threading
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from drive_speed.cancellation import CancellationToken
from drive_speed.config import BenchmarkConfig, TestSizeSpec
from drive_speed.errors import Cancelled
from drive_speed.probe import WritableLocationProbe
from drive_speed.sequencer import TestSequencer

KIB = 1024


# =============================================================================
# Fakes
# =============================================================================

class FakeBenchmark:
    """Stand-in for ChunkedIOBenchmark that writes a small marker file.

    Hooks receive (file_path, size_bytes, token) and may raise to simulate
    failures or cancellation.
    """

    def __init__(
        self,
        write_speed: float = 120.0,
        read_speed: float = 240.0,
        on_write: Optional[Callable[[str, int, CancellationToken], None]] = None,
        on_read: Optional[Callable[[str, int, CancellationToken], None]] = None,
    ):
        self.write_speed = write_speed
        self.read_speed = read_speed
        self.on_write = on_write
        self.on_read = on_read
        self.calls: List[Tuple[str, str, int]] = []
        self.drop_cache_calls = 0

    def write(self, file_path: str, size_bytes: int, token: CancellationToken) -> float:
        self.calls.append(("write", file_path, size_bytes))
        with open(file_path, "wb") as handle:
            handle.write(b"\xab" * 16)
        if self.on_write:
            self.on_write(file_path, size_bytes, token)
        if token.is_cancelled():
            raise Cancelled("cancelled")
        return self.write_speed

    def read(self, file_path: str, size_bytes: int, token: CancellationToken) -> float:
        self.calls.append(("read", file_path, size_bytes))
        if self.on_read:
            self.on_read(file_path, size_bytes, token)
        if token.is_cancelled():
            raise Cancelled("cancelled")
        return self.read_speed

    def drop_caches(self) -> bool:
        self.drop_cache_calls += 1
        return True

    def sizes(self, kind: str) -> List[int]:
        return [size for op, _, size in self.calls if op == kind]


class GatedWrite:
    """on_write hook that pauses the write of one size until released."""

    def __init__(self, size_bytes: int):
        self.size_bytes = size_bytes
        self.started = threading.Event()
        self.release = threading.Event()

    def __call__(self, file_path: str, size_bytes: int, token: CancellationToken) -> None:
        if size_bytes == self.size_bytes:
            self.started.set()
            self.release.wait(5)


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def small_sizes() -> Tuple[TestSizeSpec, ...]:
    """Synthetic three-entry size table, smallest first."""
    return (
        TestSizeSpec("64 KB", 64 * KIB),
        TestSizeSpec("128 KB", 128 * KIB),
        TestSizeSpec("256 KB", 256 * KIB),
    )


@pytest.fixture
def small_config(small_sizes) -> BenchmarkConfig:
    return BenchmarkConfig(test_sizes=small_sizes, chunk_size=32 * KIB)


@pytest.fixture
def volume_dir(tmp_path) -> Path:
    """Writable directory standing in for a mounted volume."""
    path = tmp_path / "volume"
    path.mkdir()
    return path


@pytest.fixture
def fallback_temp(tmp_path) -> Path:
    path = tmp_path / "system_tmp"
    path.mkdir()
    return path


@pytest.fixture
def fake_benchmark() -> FakeBenchmark:
    return FakeBenchmark()


@pytest.fixture
def make_sequencer(fallback_temp):
    """Factory for a sequencer wired with a probe that never leaves tmp_path."""

    def factory(config: BenchmarkConfig, benchmark=None, probe=None) -> TestSequencer:
        return TestSequencer(
            config=config,
            benchmark=benchmark,
            probe=probe or WritableLocationProbe(temp_dir=str(fallback_temp)),
        )

    return factory


def leftover_test_files(*directories: Path) -> List[str]:
    """Return benchmark and probe files still present in directories."""
    leftovers = []
    for directory in directories:
        for name in os.listdir(directory):
            if name.startswith(("DiskSpeedTest_", "WriteTest_")):
                leftovers.append(os.path.join(directory, name))
    return leftovers
