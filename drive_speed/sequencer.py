"""Multi-size test sequencing with background execution.

The sequencer lives on a coordinator thread (the CLI main thread, or a UI
thread). Disk I/O runs on a worker thread, and RunState updates come back
through a StateChannel. The coordinator applies them in order with
``process_updates()`` or ``wait()``, so RunState is only written from one
thread.
"""

import logging
import os
import queue
import threading
import time
import uuid
from typing import Any, Callable, Dict, List, Optional

from drive_speed.benchmark import ChunkedIOBenchmark
from drive_speed.cancellation import CancellationToken
from drive_speed.config import TEST_FILE_PREFIX, TEST_FILE_SUFFIX, BenchmarkConfig, TestSizeSpec
from drive_speed.errors import (
    Cancelled,
    DriveSpeedError,
    InsufficientSpace,
    IOFailure,
    NoWritableLocation,
)
from drive_speed.models import AggregateResult, PassResult, RunPhase, RunState
from drive_speed.probe import WritableLocationProbe

logger = logging.getLogger(__name__)

STATUS_CHECKING_SPACE = "Checking free space..."
STATUS_PROBING = "Finding writable location..."
STATUS_CLEANING_UP = "Cleaning up..."
STATUS_COMPLETE = "Test complete!"
STATUS_CANCELLED = "Test cancelled."

StateCallback = Callable[[RunState], None]


class StateChannel:
    """FIFO hand-off of RunState changes from the worker to the coordinator."""

    def __init__(self) -> None:
        self._queue: "queue.Queue[Dict[str, Any]]" = queue.Queue()

    def post(self, **changes: Any) -> None:
        """Queue a set of field changes (worker side)."""
        self._queue.put(changes)

    def get(self, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """Return the next change set, or None if none arrived in time."""
        try:
            if timeout is not None and timeout <= 0:
                return self._queue.get_nowait()
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None


class TestSequencer:
    """Run the configured write/read phases on a volume, smallest size first."""

    __test__ = False  # keep pytest from collecting this as a test class

    def __init__(
        self,
        config: Optional[BenchmarkConfig] = None,
        benchmark: Optional[ChunkedIOBenchmark] = None,
        probe: Optional[WritableLocationProbe] = None,
        token: Optional[CancellationToken] = None,
    ) -> None:
        """Initialize the sequencer.

        Args:
            config: Size table and I/O settings
            benchmark: Pass implementation; built from config when omitted
            probe: Writable-directory finder
            token: Cancellation flag shared with the running passes
        """
        self.config = config or BenchmarkConfig()
        self.benchmark = benchmark or ChunkedIOBenchmark(self.config.chunk_size)
        self.probe = probe or WritableLocationProbe()
        self.token = token or CancellationToken()
        self.state = RunState()
        self._channel = StateChannel()
        self._subscribers: List[StateCallback] = []
        self._worker: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Coordinator side

    def subscribe(self, callback: StateCallback) -> None:
        """Register a callback invoked on the coordinator after each state change."""
        self._subscribers.append(callback)

    def run(self, volume_root: str, available_bytes: int) -> bool:
        """Start a speed test on volume_root.

        The free-space check runs synchronously; the probe and the passes
        run on a background thread.

        Args:
            volume_root: Mount path of the volume under test
            available_bytes: Free space reported for the volume

        Returns:
            True if background work was started, False if the space check failed

        Raises:
            RuntimeError: If a run is already active
        """
        if self.state.is_active:
            raise RuntimeError("A speed test is already running")

        self._apply(phase=RunPhase.VALIDATING_SPACE,
                    status_message=STATUS_CHECKING_SPACE,
                    result=None, error=None)

        required = self.config.required_bytes
        if available_bytes < required:
            err = InsufficientSpace(required, available_bytes)
            logger.warning("%s", err)
            self._apply(phase=RunPhase.FAILED, status_message=f"Error: {err}", error=err)
            return False

        self.token.reset()
        self._apply(is_active=True, phase=RunPhase.PROBING, status_message=STATUS_PROBING)

        logger.info("Starting speed test on %s (%d sizes)",
                    volume_root, len(self.config.test_sizes))
        self._worker = threading.Thread(
            target=self._run_worker, args=(volume_root,),
            name="drive-speed-worker", daemon=True,
        )
        self._worker.start()
        return True

    def cancel(self) -> None:
        """Request cooperative cancellation of the active run, if any."""
        if not self.state.is_active or self.token.is_cancelled():
            return
        logger.info("Cancellation requested")
        self.token.cancel()

    def process_updates(self) -> int:
        """Apply every pending worker update without blocking.

        Returns:
            Number of updates applied
        """
        applied = 0
        while True:
            changes = self._channel.get(timeout=0)
            if changes is None:
                return applied
            self._apply(**changes)
            applied += 1

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Apply worker updates until the run goes inactive.

        Args:
            timeout: Maximum seconds to wait; None waits indefinitely

        Returns:
            True if the run is inactive, False if the timeout expired first
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while self.state.is_active:
            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
            changes = self._channel.get(timeout=remaining)
            if changes is not None:
                self._apply(**changes)
        return True

    def _apply(self, **changes: Any) -> None:
        for name, value in changes.items():
            setattr(self.state, name, value)

        snapshot = self.state.snapshot()
        for callback in self._subscribers:
            try:
                callback(snapshot)
            except Exception as e:
                logger.error("Error in state callback %s: %s",
                             getattr(callback, '__name__', callback), e, exc_info=True)

    # ------------------------------------------------------------------
    # Worker side: only posts to the channel, never touches self.state

    def _run_worker(self, volume_root: str) -> None:
        try:
            self._execute(volume_root)
        except Exception as err:
            logger.exception("Unexpected error during speed test")
            self._publish_failure(DriveSpeedError(f"Unexpected error: {err}"))

    def _execute(self, volume_root: str) -> None:
        directory = self.probe.find_writable_directory(volume_root)
        if directory is None:
            self._publish_failure(NoWritableLocation(volume_root))
            return

        passes = []
        for spec in self.config.test_sizes:
            if self.token.is_cancelled():
                self._publish_cancelled()
                return
            try:
                passes.append(self._run_phase(directory, spec))
            except Cancelled:
                self._publish_cancelled()
                return
            except IOFailure as err:
                self._publish_failure(err)
                return

        result = AggregateResult(tuple(passes))
        logger.info("Speed test complete on %s", volume_root)
        self._channel.post(result=result, status_message=STATUS_COMPLETE,
                           phase=RunPhase.COMPLETED, is_active=False)

    def _run_phase(self, directory: str, spec: TestSizeSpec) -> PassResult:
        file_path = os.path.join(
            directory, f"{TEST_FILE_PREFIX}{uuid.uuid4().hex}{TEST_FILE_SUFFIX}")
        try:
            self._channel.post(phase=RunPhase.RUNNING,
                               status_message=f"Testing write speed ({spec.label})...")
            write_speed = self.benchmark.write(file_path, spec.size_bytes, self.token)

            if self.config.drop_caches:
                self.benchmark.drop_caches()

            self._channel.post(status_message=f"Testing read speed ({spec.label})...")
            read_speed = self.benchmark.read(file_path, spec.size_bytes, self.token)
        finally:
            self._channel.post(status_message=STATUS_CLEANING_UP)
            self._remove_test_file(file_path)

        logger.info("%s: write %.2f MB/s, read %.2f MB/s",
                    spec.label, write_speed, read_speed)
        return PassResult(spec.label, spec.size_bytes, read_speed, write_speed)

    @staticmethod
    def _remove_test_file(file_path: str) -> None:
        try:
            os.remove(file_path)
        except FileNotFoundError:
            pass
        except OSError as err:
            logger.debug("Could not remove test file %s: %s", file_path, err)

    def _publish_failure(self, err: DriveSpeedError) -> None:
        logger.warning("Speed test failed: %s", err)
        self._channel.post(status_message=f"Error: {err}", error=err,
                           phase=RunPhase.FAILED, is_active=False)

    def _publish_cancelled(self) -> None:
        logger.info("Speed test cancelled")
        self._channel.post(status_message=STATUS_CANCELLED,
                           phase=RunPhase.CANCELLED, is_active=False)
