"""Command-line front end for the drive speed tester.

Example usage:
    drive-speed --list
    drive-speed /Volumes/External
    drive-speed /mnt/usb --sizes 64M,256M,1G
"""

import argparse
import logging
import os
from typing import List, Optional

import psutil

from drive_speed.colors import blue, green, red, yellow
from drive_speed.config import BenchmarkConfig, parse_size, sizes_from_string
from drive_speed.models import RunPhase, RunState
from drive_speed.report import format_gigabytes, result_lines, volume_lines
from drive_speed.sequencer import TestSequencer
from drive_speed.volumes import VolumeCatalog

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130

# Seconds between coordinator wake-ups so Ctrl-C is handled promptly
POLL_INTERVAL = 0.5


def get_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="drive-speed",
        description="Measure sequential read and write speed of a drive"
    )

    parser.add_argument(
        "path", nargs="?", default=None,
        help="Mount path of the drive to test (lists drives if omitted)"
    )

    parser.add_argument(
        "-l", "--list", action="store_true",
        help="List available drives and exit"
    )

    parser.add_argument(
        "-s", "--sizes", default=None,
        help="Comma separated test file sizes (default: 100M,1G,10G)"
    )

    parser.add_argument(
        "--chunk-size", default="8M",
        help="I/O chunk size (default: 8M)"
    )

    parser.add_argument(
        "--drop-caches", action="store_true",
        help="Drop the page cache before each read pass (Linux, requires root)"
    )

    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase log verbosity (-v for info, -vv for debug)"
    )

    return parser


def configure_logging(verbosity: int) -> None:
    """Set the root log level from the number of -v flags."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_config(parser: argparse.ArgumentParser, args: argparse.Namespace) -> BenchmarkConfig:
    """Create the benchmark configuration from command line arguments."""
    kwargs = {"drop_caches": args.drop_caches}
    try:
        kwargs["chunk_size"] = parse_size(args.chunk_size)
        if args.sizes:
            kwargs["test_sizes"] = sizes_from_string(args.sizes)
        config = BenchmarkConfig(**kwargs)
    except ValueError as err:
        parser.error(str(err))
    return config


def list_drives() -> int:
    """Print the mounted drives and their free space."""
    for line in volume_lines(VolumeCatalog().list_volumes()):
        print(line)
    return EXIT_OK


class StatusPrinter:
    """Print each new status message as the coordinator applies it."""

    def __init__(self) -> None:
        self.last_message = ""

    def __call__(self, state: RunState) -> None:
        message = state.status_message
        if not message or message == self.last_message:
            return
        self.last_message = message
        if state.phase == RunPhase.FAILED:
            print(red(message))
        elif state.phase == RunPhase.COMPLETED:
            print(green(message))
        else:
            print(message)


def wait_until_stopped(sequencer: TestSequencer) -> None:
    """Block until a cancelled run has cleaned up, ignoring further Ctrl-C.

    The worker is a daemon thread, so leaving early would kill it before
    it removes its test file.
    """
    while True:
        try:
            if sequencer.wait(timeout=POLL_INTERVAL):
                return
        except KeyboardInterrupt:
            print(yellow("Still cleaning up, please wait..."))


def run_speed_test(path: str, config: BenchmarkConfig) -> int:
    """Run the full size table on path and print the results.

    Args:
        path: Directory on the drive under test
        config: Benchmark configuration

    Returns:
        Process exit code
    """
    target = os.path.abspath(path)
    if not os.path.isdir(target):
        print(red(f"Target '{target}' is not a directory"))
        return EXIT_FAILED

    try:
        available = psutil.disk_usage(target).free
    except OSError as err:
        print(red(f"Cannot determine free space for {target}: {err}"))
        return EXIT_FAILED

    print(blue("=== Test Parameters ==="))
    print(f"{yellow('Drive:')} {target}")
    print(f"{yellow('Available:')} {format_gigabytes(available)}")
    print(f"{yellow('Sizes:')} {', '.join(spec.label for spec in config.test_sizes)}")
    print("")

    sequencer = TestSequencer(config)
    sequencer.subscribe(StatusPrinter())

    if not sequencer.run(target, available):
        return EXIT_FAILED

    try:
        while not sequencer.wait(timeout=POLL_INTERVAL):
            pass
    except KeyboardInterrupt:
        print(yellow("Cancelling, waiting for the current chunk to finish..."))
        sequencer.cancel()
        wait_until_stopped(sequencer)

    state = sequencer.state
    if state.phase == RunPhase.COMPLETED and state.result is not None:
        print("")
        for line in result_lines(state.result):
            print(line)
        return EXIT_OK
    if state.phase == RunPhase.CANCELLED:
        return EXIT_CANCELLED
    return EXIT_FAILED


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the drive-speed command.

    Lists drives when no path is given, otherwise runs the speed test on
    the given path.
    """
    parser = get_argument_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.list or args.path is None:
        return list_drives()

    config = build_config(parser, args)
    return run_speed_test(args.path, config)
