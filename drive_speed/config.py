"""Configuration for drive speed tests.

Sizes are kept in an explicit ordered table so that tests (and the CLI) can
substitute a smaller synthetic table without touching the control flow.
"""

import re
import sys
from dataclasses import dataclass, field
from typing import Optional, Tuple

MIB = 1024 * 1024
GIB = 1024 * MIB

# I/O granularity; also bounds how quickly a cancel request is noticed
CHUNK_SIZE = 8 * MIB

# Headroom kept free on top of the largest test file
SAFETY_BUFFER = 1 * GIB

TEST_FILE_PREFIX = "DiskSpeedTest_"
TEST_FILE_SUFFIX = ".bin"
PROBE_FILE_PREFIX = "WriteTest_"

# Directory whose entries are mounted volumes; None means use the mount table
VOLUMES_ROOT: Optional[str] = "/Volumes" if sys.platform == "darwin" else None

RESERVED_VOLUME_NAMES = frozenset({"System", "Recovery", "Preboot", "VM"})

# Mount-table entries that are never user storage
SYSTEM_MOUNT_PREFIXES = ("/proc", "/sys", "/dev", "/run", "/snap", "/boot")
PSEUDO_FSTYPES = frozenset({
    "autofs", "devfs", "devtmpfs", "overlay", "proc", "squashfs",
    "sysfs", "tmpfs",
})

_BINARY_MULTIPLIERS = {'': 1, 'k': 1024, 'm': 1024**2, 'g': 1024**3, 't': 1024**4}
_SIZE_PATTERN = re.compile(r'^\s*([0-9]+(?:\.[0-9]+)?)\s*([kKmMgGtT]?)(?:i?B)?\s*$')


@dataclass(frozen=True)
class TestSizeSpec:
    """One entry of the ordered size table."""

    __test__ = False  # keep pytest from collecting this as a test class

    label: str
    size_bytes: int


DEFAULT_TEST_SIZES: Tuple[TestSizeSpec, ...] = (
    TestSizeSpec("100 MB", 100 * MIB),
    TestSizeSpec("1 GB", 1 * GIB),
    TestSizeSpec("10 GB", 10 * GIB),
)


def parse_size(text: str) -> int:
    """Convert a human size string such as ``512M`` or ``10G`` to bytes.

    Args:
        text: Number with an optional K/M/G/T suffix (binary multiples)

    Returns:
        Size in bytes

    Raises:
        ValueError: If the string is not a positive size
    """
    match = _SIZE_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid size: {text!r}")

    value = float(match.group(1))
    unit = match.group(2).lower()
    size = int(value * _BINARY_MULTIPLIERS[unit])
    if size <= 0:
        raise ValueError(f"Size must be positive: {text!r}")
    return size


def format_size_label(size_bytes: int) -> str:
    """Build a table label ("100 MB", "1 GB") for a byte count."""
    for unit, multiplier in (("TB", 1024**4), ("GB", GIB), ("MB", MIB), ("KB", 1024)):
        if size_bytes >= multiplier:
            value = size_bytes / multiplier
            if value == int(value):
                return f"{int(value)} {unit}"
            return f"{value:.1f} {unit}"
    return f"{size_bytes} B"


def sizes_from_string(text: str) -> Tuple[TestSizeSpec, ...]:
    """Build a size table from a comma separated list like ``100M,1G,10G``."""
    sizes = []
    for item in text.split(','):
        if not item.strip():
            continue
        size_bytes = parse_size(item)
        sizes.append(TestSizeSpec(format_size_label(size_bytes), size_bytes))
    return tuple(sizes)


@dataclass
class BenchmarkConfig:
    """Configuration object for a speed test run."""

    test_sizes: Tuple[TestSizeSpec, ...] = field(default=DEFAULT_TEST_SIZES)
    chunk_size: int = CHUNK_SIZE
    safety_buffer: int = SAFETY_BUFFER
    drop_caches: bool = False

    def __post_init__(self) -> None:
        """Validate the size table and I/O parameters."""
        self.test_sizes = tuple(self.test_sizes)
        if not self.test_sizes:
            raise ValueError("At least one test size is required")
        for spec in self.test_sizes:
            if spec.size_bytes <= 0:
                raise ValueError(f"Test size must be positive: {spec.label}")
        sizes = [spec.size_bytes for spec in self.test_sizes]
        if any(later <= earlier for earlier, later in zip(sizes, sizes[1:])):
            raise ValueError("Test sizes must be listed smallest first without repeats")
        if self.chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        if self.safety_buffer < 0:
            raise ValueError("Safety buffer cannot be negative")

    @property
    def required_bytes(self) -> int:
        """Free space needed before a run may start."""
        return max(spec.size_bytes for spec in self.test_sizes) + self.safety_buffer
