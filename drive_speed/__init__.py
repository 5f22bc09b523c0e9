"""Sequential read/write throughput tester for storage volumes."""

from drive_speed.benchmark import ChunkedIOBenchmark
from drive_speed.cancellation import CancellationToken
from drive_speed.config import DEFAULT_TEST_SIZES, BenchmarkConfig, TestSizeSpec
from drive_speed.errors import (
    Cancelled,
    DriveSpeedError,
    InsufficientSpace,
    IOFailure,
    NoWritableLocation,
)
from drive_speed.models import AggregateResult, PassResult, RunPhase, RunState, VolumeDescriptor
from drive_speed.probe import WritableLocationProbe
from drive_speed.sequencer import TestSequencer
from drive_speed.volumes import VolumeCatalog

__version__ = "1.0.0"

__all__ = [
    "AggregateResult",
    "BenchmarkConfig",
    "Cancelled",
    "CancellationToken",
    "ChunkedIOBenchmark",
    "DEFAULT_TEST_SIZES",
    "DriveSpeedError",
    "IOFailure",
    "InsufficientSpace",
    "NoWritableLocation",
    "PassResult",
    "RunPhase",
    "RunState",
    "TestSequencer",
    "TestSizeSpec",
    "VolumeCatalog",
    "VolumeDescriptor",
    "WritableLocationProbe",
]
