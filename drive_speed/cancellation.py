"""Cooperative cancellation flag shared by the sequencer and benchmark passes."""

import threading


class CancellationToken:
    """Thread-safe boolean flag polled at chunk and phase boundaries.

    Cancellation is cooperative: a pass notices the flag before its next
    chunk, so the latency is bounded by one chunk's I/O time.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def reset(self) -> None:
        """Clear the flag before a new run."""
        self._event.clear()

    def cancel(self) -> None:
        """Request cancellation; repeated calls are harmless."""
        self._event.set()

    def is_cancelled(self) -> bool:
        """Return True once cancel() has been called since the last reset."""
        return self._event.is_set()
