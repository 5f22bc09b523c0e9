"""Error taxonomy for the benchmarking engine."""


class DriveSpeedError(Exception):
    """Base class for every failure the engine reports."""


class InsufficientSpace(DriveSpeedError):
    """The target volume cannot hold the largest test file plus the safety buffer."""

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            f"Not enough free space. Required: {required / 1024**3:.2f} GB, "
            f"available: {available / 1024**3:.2f} GB"
        )


class NoWritableLocation(DriveSpeedError):
    """No candidate directory on the volume accepted a probe file."""

    def __init__(self, volume_root: str) -> None:
        self.volume_root = volume_root
        super().__init__(
            f"No writable location found on {volume_root}. Check permissions."
        )


class IOFailure(DriveSpeedError):
    """A benchmark file could not be opened, written or read."""


class Cancelled(DriveSpeedError):
    """The run was stopped through its cancellation token."""
