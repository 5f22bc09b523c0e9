"""Console formatting of volumes and speed test results."""

from typing import List, Sequence

import numpy as np

from drive_speed.colors import blue, green, purple, yellow
from drive_speed.models import AggregateResult, VolumeDescriptor


def format_speed(speed_mbps: float) -> str:
    """Format a throughput in MB/s, switching to GB/s past 1024 MB/s.

    Args:
        speed_mbps: Throughput in MB/s

    Returns:
        Formatted string with appropriate units
    """
    if speed_mbps >= 1024:
        return f"{speed_mbps / 1024:.2f} GB/s"
    return f"{speed_mbps:.2f} MB/s"


def format_gigabytes(size_bytes: int) -> str:
    """Format a byte count as binary gigabytes with two decimals."""
    return f"{size_bytes / (1024 ** 3):.2f} GB"


def calculate_geomean(values: Sequence[float]) -> float:
    """Geometric mean of the positive speeds; zero when none were measured."""
    valid_values = [x for x in values if x is not None and x > 0]
    return float(np.exp(np.mean(np.log(valid_values)))) if valid_values else 0.0


def volume_lines(volumes: Sequence[VolumeDescriptor]) -> List[str]:
    """Render the volume list shown by ``--list``."""
    if not volumes:
        return ["No drives found"]

    width = max(len(v.display_name) for v in volumes)
    lines = [blue("=== Available Drives ===")]
    for volume in volumes:
        lines.append(
            f"{yellow(volume.display_name.ljust(width))}  "
            f"{volume.mount_path}  (Available: {format_gigabytes(volume.available_bytes)})"
        )
    return lines


def result_lines(result: AggregateResult) -> List[str]:
    """Render the per-size result table followed by the geometric means.

    Args:
        result: Completed aggregate result

    Returns:
        Lines ready for printing
    """
    width = max(len(p.size_label) for p in result)
    lines = [green("=== Speed Test Results ===")]
    for pass_result in result:
        lines.append(
            f"{yellow(pass_result.size_label.ljust(width))}  "
            f"Read: {format_speed(pass_result.read_speed_mbps):>12}  "
            f"Write: {format_speed(pass_result.write_speed_mbps):>12}"
        )

    read_mean = calculate_geomean(result.read_speeds)
    write_mean = calculate_geomean(result.write_speeds)
    lines.append(purple(
        f"Geometric mean: Read={format_speed(read_mean)}, Write={format_speed(write_mean)}"
    ))
    return lines
