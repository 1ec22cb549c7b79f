"""
File-backed store for transcoded images.

Cache layout mirrors the source tree:
cache_dir/
├── photo.jpg.webp
└── albums/
    └── cover.png.webp

Entries are immutable once committed. They are written to a temporary file in
the target directory and renamed into place, so a reader never sees a
half-written entry and a failed write leaves nothing behind.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, Optional

from .codec import TARGET_EXTENSION
from .errors import CacheCreateError, CacheDeleteError, CacheDirError

logger = logging.getLogger(__name__)


class CacheStore:
    def __init__(self, root: Path | str):
        self.root = Path(root).resolve()
        # key -> [lock, holders]; entries are dropped when the last holder leaves
        self._locks: dict[str, list] = {}
        self._locks_guard = threading.Lock()

    def ensure_root(self) -> None:
        """Create the cache directory if it doesn't exist."""
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info("[cache] cache directory: %s", self.root)

    def path_for(self, key: str) -> Path:
        """Cache Key path for a source path relative to the source root."""
        return self.root / f"{key}{TARGET_EXTENSION}"

    def lookup(self, key: str) -> Optional[Path]:
        path = self.path_for(key)
        if path.is_file():
            return path
        return None

    @contextmanager
    def locked(self, key: str) -> Iterator[None]:
        """Serialise work on one key; other keys are never blocked."""
        with self._locks_guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._locks.pop(key, None)

    def write(self, key: str, producer: Callable[[BinaryIO], None]) -> Path:
        """
        Commit a new entry for ``key``.

        ``producer`` streams the encoded image into the file object it is
        given. Errors it raises propagate after the temporary file is removed.
        """
        target = self.path_for(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheDirError() from exc

        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
            )
        except OSError as exc:
            raise CacheCreateError() from exc

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as fp:
                producer(fp)
            try:
                os.replace(tmp_path, target)
            except OSError as exc:
                raise CacheCreateError() from exc
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.debug("[cache] committed %s", target)
        return target

    def clear(self) -> None:
        """Delete the whole cache directory. A missing directory counts as cleared."""
        try:
            shutil.rmtree(self.root)
        except FileNotFoundError:
            logger.info("[cache] nothing to clear at %s", self.root)
            return
        except OSError as exc:
            raise CacheDeleteError() from exc
        logger.info("[cache] cleared %s", self.root)
