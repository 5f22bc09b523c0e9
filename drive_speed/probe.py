"""Find a directory on a volume that the process can write to."""

import logging
import os
import tempfile
import uuid
from typing import List, Optional

from drive_speed.config import PROBE_FILE_PREFIX

logger = logging.getLogger(__name__)

# Conventional subdirectories tried after the volume root, in order
FALLBACK_SUBDIRS = ("Users", "Volumes", "tmp")


class WritableLocationProbe:
    """Locate a writable directory by creating and deleting a probe file."""

    def __init__(self, temp_dir: Optional[str] = None) -> None:
        """Initialize the probe.

        Args:
            temp_dir: Final fallback directory; defaults to the system
                temporary directory
        """
        self.temp_dir = temp_dir

    def candidates(self, volume_root: str) -> List[str]:
        """Return the candidate directories in priority order."""
        paths = [volume_root]
        paths.extend(os.path.join(volume_root, sub) for sub in FALLBACK_SUBDIRS)
        paths.append(self.temp_dir or tempfile.gettempdir())
        return paths

    def find_writable_directory(self, volume_root: str) -> Optional[str]:
        """Return the first candidate that accepts a probe file.

        Args:
            volume_root: Mount path of the volume under test

        Returns:
            Writable directory, or None when every candidate refuses writes
        """
        for location in self.candidates(volume_root):
            if not os.path.isdir(location):
                continue
            if self.is_writable(location):
                logger.info("Using writable location %s", location)
                return location
        logger.warning("No writable location found for %s", volume_root)
        return None

    @staticmethod
    def is_writable(directory: str) -> bool:
        """Create and remove a uniquely named one-byte file in directory."""
        probe_path = os.path.join(directory, f"{PROBE_FILE_PREFIX}{uuid.uuid4().hex}")
        try:
            fd = os.open(probe_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
        except OSError as err:
            logger.debug("Probe failed in %s: %s", directory, err)
            return False

        writable = True
        try:
            os.write(fd, b"\x00")
        except OSError as err:
            logger.debug("Probe write failed in %s: %s", directory, err)
            writable = False
        finally:
            os.close(fd)
            _remove_quietly(probe_path)
        return writable


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except OSError as err:
        logger.debug("Could not remove probe file %s: %s", path, err)
