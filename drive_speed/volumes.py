"""Enumerate mounted volumes and their free space."""

import logging
import os
from typing import Iterable, List, Optional, Tuple

import psutil

from drive_speed.config import (
    PSEUDO_FSTYPES,
    RESERVED_VOLUME_NAMES,
    SYSTEM_MOUNT_PREFIXES,
    VOLUMES_ROOT,
)
from drive_speed.models import VolumeDescriptor

logger = logging.getLogger(__name__)


class VolumeCatalog:
    """Best-effort volume enumeration.

    With a ``volumes_root`` (``/Volumes`` on macOS) every entry of that
    directory is treated as a volume. Without one, mount points come from
    the system mount table via psutil.
    """

    def __init__(self, volumes_root: Optional[str] = VOLUMES_ROOT) -> None:
        self.volumes_root = volumes_root

    def list_volumes(self) -> List[VolumeDescriptor]:
        """Return the user-visible volumes, sorted by name.

        Never raises: an unreadable enumeration root yields an empty list and
        volumes whose free space cannot be read are dropped.
        """
        if self.volumes_root is not None:
            candidates = self._candidates_from_root(self.volumes_root)
        else:
            candidates = self._candidates_from_mount_table()

        volumes = []
        for name, path in candidates:
            available = self._available_bytes(path)
            if available is None:
                continue
            volumes.append(VolumeDescriptor(name, path, available))

        return sorted(volumes, key=lambda v: (v.display_name.lower(), v.mount_path))

    @staticmethod
    def is_hidden(name: str, path: str) -> bool:
        """Check whether a volume looks like a system or hidden mount."""
        if name.startswith('.'):
            return True
        segments = [seg for seg in path.split(os.sep) if seg]
        return any(seg in RESERVED_VOLUME_NAMES for seg in segments + [name])

    def _candidates_from_root(self, root: str) -> List[Tuple[str, str]]:
        try:
            names = sorted(os.listdir(root))
        except OSError as err:
            logger.warning("Cannot list volumes under %s: %s", root, err)
            return []

        candidates = []
        for name in names:
            path = os.path.join(root, name)
            if self.is_hidden(name, path):
                logger.debug("Skipping system volume %s", path)
                continue
            candidates.append((name, path))
        return candidates

    def _candidates_from_mount_table(self) -> List[Tuple[str, str]]:
        try:
            partitions = psutil.disk_partitions(all=False)
        except (OSError, psutil.Error) as err:
            logger.warning("Cannot read mount table: %s", err)
            return []

        candidates = []
        seen = set()
        for part in partitions:
            path = part.mountpoint
            if path in seen or self._is_system_mount(path, part.fstype):
                continue
            name = os.path.basename(path.rstrip(os.sep)) or path
            if self.is_hidden(name, path):
                logger.debug("Skipping system volume %s", path)
                continue
            seen.add(path)
            candidates.append((name, path))
        return candidates

    @staticmethod
    def _is_system_mount(path: str, fstype: str) -> bool:
        if fstype in PSEUDO_FSTYPES:
            return True
        return _has_prefix(path, SYSTEM_MOUNT_PREFIXES)

    @staticmethod
    def _available_bytes(path: str) -> Optional[int]:
        try:
            return psutil.disk_usage(path).free
        except OSError as err:
            logger.debug("Cannot read free space for %s: %s", path, err)
            return None


def _has_prefix(path: str, prefixes: Iterable[str]) -> bool:
    return any(path == prefix or path.startswith(prefix + os.sep) for prefix in prefixes)
