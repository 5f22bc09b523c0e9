"""Data model shared by the engine and the presentation layer."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator, Optional, Tuple

from drive_speed.errors import DriveSpeedError


@dataclass(frozen=True)
class VolumeDescriptor:
    """Snapshot of a mounted volume taken at enumeration time."""

    display_name: str
    mount_path: str
    available_bytes: int

    @property
    def available_gb(self) -> float:
        """Free space in binary gigabytes."""
        return self.available_bytes / (1024 ** 3)


@dataclass(frozen=True)
class PassResult:
    """Read and write throughput measured for one configured size."""

    size_label: str
    size_bytes: int
    read_speed_mbps: float
    write_speed_mbps: float


class AggregateResult:
    """Ordered, immutable sequence of PassResult values, one per size."""

    def __init__(self, passes: Tuple[PassResult, ...]) -> None:
        self._passes = tuple(passes)

    def __len__(self) -> int:
        return len(self._passes)

    def __iter__(self) -> Iterator[PassResult]:
        return iter(self._passes)

    def __getitem__(self, index: int) -> PassResult:
        return self._passes[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AggregateResult):
            return NotImplemented
        return self._passes == other._passes

    def __hash__(self) -> int:
        return hash(self._passes)

    def __repr__(self) -> str:
        return f"AggregateResult({self._passes!r})"

    @property
    def passes(self) -> Tuple[PassResult, ...]:
        return self._passes

    @property
    def read_speeds(self) -> Tuple[float, ...]:
        return tuple(p.read_speed_mbps for p in self._passes)

    @property
    def write_speeds(self) -> Tuple[float, ...]:
        return tuple(p.write_speed_mbps for p in self._passes)


class RunPhase(Enum):
    """Position of a run in its state machine."""

    IDLE = "idle"
    VALIDATING_SPACE = "validating_space"
    PROBING = "probing"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunPhase.COMPLETED, RunPhase.CANCELLED, RunPhase.FAILED)


@dataclass
class RunState:
    """Published state observed by the presentation layer.

    Only the coordinator assigns these fields; the worker thread sends its
    changes through a StateChannel.
    """

    is_active: bool = False
    status_message: str = ""
    result: Optional[AggregateResult] = None
    phase: RunPhase = RunPhase.IDLE
    error: Optional[DriveSpeedError] = None

    def snapshot(self) -> "RunState":
        """Return a detached copy safe to hand to subscribers."""
        return replace(self)
