"""Timed sequential write and read passes against a single file."""

import logging
import os
import subprocess
import time

from drive_speed.cancellation import CancellationToken
from drive_speed.config import CHUNK_SIZE, MIB
from drive_speed.errors import Cancelled, IOFailure

logger = logging.getLogger(__name__)

FILL_BYTE = 0xAB


def throughput_mb_s(total_bytes: int, seconds: float) -> float:
    """Convert a byte count and elapsed time to MB/s (0.0 for no elapsed time)."""
    return (total_bytes / MIB) / seconds if seconds > 0 else 0.0


class ChunkedIOBenchmark:
    """Sequential I/O timing in fixed-size chunks.

    Both passes time the whole transfer rather than individual chunks, and
    poll the cancellation token before every chunk.
    """

    def __init__(self, chunk_size: int = CHUNK_SIZE) -> None:
        """Initialize the benchmark.

        Args:
            chunk_size: Bytes per write/read call
        """
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self.chunk_size = chunk_size

    def write(self, file_path: str, size_bytes: int, token: CancellationToken) -> float:
        """Write size_bytes to file_path and return the throughput.

        The file is created or truncated. It is left in place (possibly
        partial) on cancellation or error; removing it is up to the caller.

        Args:
            file_path: Target file
            size_bytes: Total bytes to write
            token: Cancellation flag polled before each chunk

        Returns:
            Write throughput in MB/s, including the final fsync

        Raises:
            Cancelled: If the token was set before a chunk
            IOFailure: If the file cannot be opened or a chunk write fails
        """
        chunk = memoryview(bytes([FILL_BYTE]) * min(self.chunk_size, size_bytes))

        start = time.perf_counter()
        try:
            with open(file_path, 'wb', buffering=0) as handle:
                remaining = size_bytes
                while remaining > 0:
                    if token.is_cancelled():
                        raise Cancelled(f"Write to {file_path} cancelled")
                    this_io = min(len(chunk), remaining)
                    written = handle.write(chunk[:this_io])
                    if written != this_io:
                        raise IOFailure(
                            f"Short write to {file_path}: {written} of {this_io} bytes"
                        )
                    remaining -= this_io

                handle.flush()
                os.fsync(handle.fileno())
        except OSError as err:
            raise IOFailure(f"Write to {file_path} failed: {err}") from err
        elapsed = time.perf_counter() - start

        speed = throughput_mb_s(size_bytes, elapsed)
        logger.debug("Wrote %d bytes to %s in %.3f s (%.2f MB/s)",
                     size_bytes, file_path, elapsed, speed)
        return speed

    def read(self, file_path: str, size_bytes: int, token: CancellationToken) -> float:
        """Read up to size_bytes from file_path and return the throughput.

        A read that hits end-of-file early ends the pass without error. The
        speed is still computed from the nominal size_bytes.

        Args:
            file_path: File produced by a previous write pass
            size_bytes: Nominal file size
            token: Cancellation flag polled before each chunk

        Returns:
            Read throughput in MB/s

        Raises:
            Cancelled: If the token was set before a chunk
            IOFailure: If the file cannot be opened or read
        """
        buffer = bytearray(min(self.chunk_size, size_bytes))
        view = memoryview(buffer)
        bytes_read = 0

        start = time.perf_counter()
        try:
            with open(file_path, 'rb', buffering=0) as handle:
                while bytes_read < size_bytes:
                    if token.is_cancelled():
                        raise Cancelled(f"Read of {file_path} cancelled")
                    this_io = min(len(buffer), size_bytes - bytes_read)
                    count = handle.readinto(view[:this_io])
                    if not count:
                        break
                    bytes_read += count
        except OSError as err:
            raise IOFailure(f"Read of {file_path} failed: {err}") from err
        elapsed = time.perf_counter() - start

        if bytes_read < size_bytes:
            logger.warning("Early end of file on %s: read %d of %d bytes",
                           file_path, bytes_read, size_bytes)

        speed = throughput_mb_s(size_bytes, elapsed)
        logger.debug("Read %d bytes from %s in %.3f s (%.2f MB/s)",
                     bytes_read, file_path, elapsed, speed)
        return speed

    @staticmethod
    def drop_caches() -> bool:
        """Drop the page cache so the read pass hits the device.

        Linux only and needs root. Failure is logged and reported as False.
        """
        try:
            subprocess.run(['sync'], check=False)
            with open('/proc/sys/vm/drop_caches', 'w', encoding='utf-8') as file:
                file.write('3')
            return True
        except (OSError, subprocess.SubprocessError) as err:
            logger.warning("Error dropping caches: %s", err)
            return False
