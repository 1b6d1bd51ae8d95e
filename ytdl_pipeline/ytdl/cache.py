"""
On-disk cache for extracted metadata

One JSON file per source link, named after the SHA-256 of the link, in a
single cache directory. Freshness is judged from the file modification time
against a time-to-live, never from content. Writes go through a temporary
file and os.replace() so a reader sees either a whole blob or nothing.

There is no locking: two processes writing the same link race and the last
write wins.
"""

import contextlib
import hashlib
import os
import tempfile
import time
from pathlib import Path
from typing import Optional, Union

from ..utils.helpers import ensure_directory
from ..utils.logger import get_logger

CACHE_SUFFIX = ".json"


def cache_key(link: str) -> str:
    """Deterministic, filesystem-safe key for a link"""
    return hashlib.sha256(link.encode("utf-8")).hexdigest()


class MetadataCache:
    """
    Time-limited metadata cache keyed by source link

    Attributes:
        directory: Directory holding the cache files
        duration: Time-to-live of an entry, in seconds
        enabled: False turns the cache into a pass-through
    """

    def __init__(self, directory: Union[str, Path], duration: int = 86400, enabled: bool = True):
        self.directory = Path(directory).expanduser() if directory else None
        self.duration = duration
        self.enabled = enabled and self.directory is not None
        self.logger = get_logger(__name__)

    def path_for(self, link: str) -> Optional[Path]:
        """Cache file path for a link, None when the cache is disabled"""
        if not self.enabled:
            return None
        return self.directory / f"{cache_key(link)}{CACHE_SUFFIX}"

    def load(self, link: str) -> Optional[str]:
        """
        Return the cached blob for a link if it is present and fresh

        Args:
            link: Source link used as lookup key

        Returns:
            The JSON blob, or None on a miss, an empty file or an expired entry
        """
        path = self.path_for(link)
        if path is None:
            return None

        try:
            stat = path.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            self.logger.warning(f"Cannot stat cache file {path}: {e}")
            return None

        if stat.st_size == 0:
            return None

        age = time.time() - stat.st_mtime
        if age > self.duration:
            self.logger.debug(f"Cache entry expired ({age:.0f}s old): {path.name}")
            return None

        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            self.logger.warning(f"Cannot read cache file {path}: {e}")
            return None

    def write(self, link: str, blob: str) -> bool:
        """
        Store the blob for a link

        Creates the cache directory when missing. Never raises: an
        unwritable directory or a disk error is logged and reported as False.

        Args:
            link: Source link used as lookup key
            blob: JSON text to store

        Returns:
            True if the blob was written
        """
        path = self.path_for(link)
        if path is None:
            return False

        tmp_name = None
        try:
            ensure_directory(self.directory)
            fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", suffix=CACHE_SUFFIX, dir=self.directory)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(blob)
            os.replace(tmp_name, path)
        except OSError as e:
            self.logger.warning(f"Cache write failed for {link}: {e}")
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            return False

        return True

    def clear(self) -> int:
        """
        Remove every cached blob

        Returns:
            Number of files removed
        """
        if not self.enabled or not self.directory.is_dir():
            return 0

        removed = 0
        for path in self.directory.glob(f"*{CACHE_SUFFIX}"):
            try:
                path.unlink()
                removed += 1
            except OSError as e:
                self.logger.warning(f"Cannot remove cache file {path}: {e}")
        return removed

    def __repr__(self) -> str:
        state = str(self.directory) if self.enabled else "disabled"
        return f"MetadataCache({state}, duration={self.duration})"
