"""
Transcode-cache pipeline.

Turns a request path into a file to send back:
1. Serve the cached WebP if one exists for the path
2. Otherwise sniff the source; WebP sources are passed through untouched
3. JPEG/PNG sources are decoded, encoded to WebP into the cache, then served
   from the cache file
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO

from ..core import codec
from ..core.cache_store import CacheStore
from ..core.config import Settings
from ..core.errors import InvalidPathError, NotFoundError, ReadError, UnsupportedTypeError
from ..core.sniff import SNIFF_LEN, SourceFormat, classify, detect_content_type

logger = logging.getLogger(__name__)


class CacheStatus(str, Enum):
    HIT = "HIT"
    MISS = "MISS"
    PASS = "PASS"


@dataclass(frozen=True)
class ResolvedImage:
    path: Path
    media_type: str
    cache_status: CacheStatus


class TranscodePipeline:
    def __init__(self, settings: Settings, store: CacheStore):
        self.source_root = Path(settings.SOURCE_ROOT).resolve()
        self.quality = settings.QUALITY
        self.store = store

    def source_key(self, resource_path: str) -> str:
        """
        Canonicalise a request path into a key relative to the source root.

        Rejects empty paths, paths that escape the source root and paths that
        point into the cache directory.
        """
        relative = resource_path.lstrip("/")
        if not relative:
            raise InvalidPathError()
        try:
            source = (self.source_root / relative).resolve()
        except (OSError, ValueError, RuntimeError) as exc:
            raise InvalidPathError() from exc

        if source == self.source_root or not source.is_relative_to(self.source_root):
            logger.warning("[transcode] rejected path outside source root: %r", resource_path)
            raise InvalidPathError()
        if source.is_relative_to(self.store.root):
            logger.warning("[transcode] rejected path inside cache root: %r", resource_path)
            raise InvalidPathError()
        return source.relative_to(self.source_root).as_posix()

    def resolve(self, resource_path: str) -> ResolvedImage:
        key = self.source_key(resource_path)

        cached = self.store.lookup(key)
        if cached is not None:
            logger.debug("[transcode] cache hit: %s", key)
            return ResolvedImage(cached, codec.TARGET_MEDIA_TYPE, CacheStatus.HIT)

        with self.store.locked(key):
            # Another request may have committed the entry while we waited
            cached = self.store.lookup(key)
            if cached is not None:
                logger.debug("[transcode] cache filled while waiting: %s", key)
                return ResolvedImage(cached, codec.TARGET_MEDIA_TYPE, CacheStatus.HIT)
            return self._transcode(key)

    def open_resolved(self, resolved: ResolvedImage) -> BinaryIO:
        """
        Open the file to send while still on the worker thread.

        An open handle stays readable after a concurrent cache clear unlinks
        the file; a file already gone by now is reported as NotFoundError.
        """
        try:
            return open(resolved.path, "rb")
        except (FileNotFoundError, NotADirectoryError) as exc:
            logger.info("[transcode] %s vanished before it could be sent", resolved.path)
            raise NotFoundError() from exc
        except OSError as exc:
            raise ReadError() from exc

    def resolve_open(self, resource_path: str) -> tuple[ResolvedImage, BinaryIO]:
        resolved = self.resolve(resource_path)
        return resolved, self.open_resolved(resolved)

    def _transcode(self, key: str) -> ResolvedImage:
        source = self.source_root / key
        try:
            fp = open(source, "rb")
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise NotFoundError() from exc
        except OSError as exc:
            raise ReadError() from exc

        with fp:
            fmt = self._sniff(fp)

            if fmt is SourceFormat.WEBP:
                logger.debug("[transcode] pass-through: %s", key)
                return ResolvedImage(source, codec.TARGET_MEDIA_TYPE, CacheStatus.PASS)
            if fmt is SourceFormat.UNSUPPORTED:
                raise UnsupportedTypeError()

            im = codec.decode(fp, fmt)

        logger.info("[transcode] cache miss, encoding %s (%s, %dx%d)", key, fmt.value, *im.size)
        target = self.store.write(key, lambda out: codec.encode_webp(im, out, self.quality))
        return ResolvedImage(target, codec.TARGET_MEDIA_TYPE, CacheStatus.MISS)

    @staticmethod
    def _sniff(fp: BinaryIO) -> SourceFormat:
        try:
            head = fp.read(SNIFF_LEN)
        except OSError as exc:
            raise ReadError() from exc
        if not head:
            raise ReadError()
        try:
            fp.seek(0)
        except OSError as exc:
            raise ReadError() from exc
        return classify(detect_content_type(head))
