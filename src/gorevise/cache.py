"""On-disk cache of already processed files.

Each tracked file gets one cache file under the cache root, named after the
xxh3 digest of the file's absolute path. Its content is either

- a bare hex content digest (legacy, hash-only), or
- a JSON record ``{"hash": ..., "size": ..., "mod_time": ...}``
  (metadata-complete).

Metadata-complete records let an unchanged file be skipped from ``stat``
alone. That check trusts size and modification time: an edit that keeps
both identical is not detected in metadata mode, only in hash mode.

A structured record that cannot be decoded is treated as a cache miss; it
is replaced on the next successful run.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import xxhash

logger = logging.getLogger(__name__)

CACHE_DIR_NAME = "gorevise"
_CHUNK_SIZE = 1 << 16


@dataclass(frozen=True)
class CacheEntry:
    """Cached state of one file.

    Attributes:
        hash: Content digest, 16 hex characters
        size: File size in bytes, or None for hash-only entries
        mod_time: UTC modification time in nanoseconds, or None
    """

    hash: str
    size: int | None = None
    mod_time: int | None = None

    def __post_init__(self) -> None:
        # partial metadata is never kept
        if not self.size or not self.mod_time:
            object.__setattr__(self, "size", None)
            object.__setattr__(self, "mod_time", None)

    @property
    def has_metadata(self) -> bool:
        return self.size is not None and self.mod_time is not None

    def to_bytes(self) -> bytes:
        if not self.has_metadata:
            return self.hash.encode("ascii")
        payload = {"hash": self.hash, "size": self.size, "mod_time": self.mod_time}
        return json.dumps(payload, separators=(",", ":")).encode("ascii")


def default_cache_dir() -> Path:
    """``$XDG_CACHE_HOME/gorevise``, else ``~/.cache/gorevise``."""
    xdg = os.environ.get("XDG_CACHE_HOME")
    base = Path(xdg) if xdg else Path.home() / ".cache"
    return base / CACHE_DIR_NAME


def _encode(digest: int) -> str:
    return format(digest, "016x")


def compute_content_hash(data: bytes) -> str:
    """Digest arbitrary content with xxh3-64."""
    return _encode(xxhash.xxh3_64_intdigest(data))


def hash_path(abs_path: str | Path) -> str:
    return _encode(xxhash.xxh3_64_intdigest(str(abs_path).encode("utf-8")))


def cache_file_path(cache_dir: str | Path, abs_path: str | Path) -> Path:
    """Location of the cache record for ``abs_path``."""
    return Path(cache_dir) / hash_path(abs_path)


def hash_file(path: str | Path) -> str:
    digest = xxhash.xxh3_64()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return _encode(digest.intdigest())


def file_metadata(path: str | Path) -> tuple[int, int]:
    """Return (size, UTC modification time in nanoseconds)."""
    stat = os.stat(path)
    return stat.st_size, stat.st_mtime_ns


def read_cache_entry(cache_dir: str | Path, abs_path: str | Path) -> CacheEntry | None:
    """Load the record for ``abs_path``.

    Returns None when there is no record, the record is empty, or it is a
    corrupted structured record.
    """
    cache_file = cache_file_path(cache_dir, abs_path)
    try:
        raw = cache_file.read_bytes().strip()
    except FileNotFoundError:
        return None
    if not raw:
        return None
    if not raw.startswith(b"{"):
        return CacheEntry(hash=raw.decode("ascii", errors="replace"))

    try:
        payload = json.loads(raw)
        return CacheEntry(
            hash=str(payload["hash"]),
            size=int(payload.get("size") or 0),
            mod_time=int(payload.get("mod_time") or 0),
        )
    except (ValueError, KeyError, TypeError) as exc:
        logger.warning("ignoring corrupted cache record %s: %s", cache_file, exc)
        return None


def write_cache_entry(cache_dir: str | Path, abs_path: str | Path, entry: CacheEntry) -> None:
    """Persist ``entry``; hash-only entries use the legacy bare format."""
    cache_file_path(cache_dir, abs_path).write_bytes(entry.to_bytes())


def new_cache_entry(abs_path: str | Path, content_hash: str, with_metadata: bool) -> CacheEntry:
    """Build the entry to record for ``abs_path``.

    With ``with_metadata`` the file's size and modification time are
    captured; if the file no longer exists a hash-only entry is returned.
    """
    if not with_metadata:
        return CacheEntry(hash=content_hash)
    try:
        size, mod_time = file_metadata(abs_path)
    except FileNotFoundError:
        return CacheEntry(hash=content_hash)
    return CacheEntry(hash=content_hash, size=size, mod_time=mod_time)


def _drop_stale(cache_dir: str | Path, abs_path: str | Path) -> bool:
    logger.debug("source %s is gone, removing its cache record", abs_path)
    cache_file_path(cache_dir, abs_path).unlink(missing_ok=True)
    return True


def should_skip_by_hash(cache_dir: str | Path, abs_path: str | Path) -> bool:
    """Skip only when the file's current digest equals the recorded one."""
    entry = read_cache_entry(cache_dir, abs_path)
    if entry is None or not entry.hash:
        return False
    try:
        current = hash_file(abs_path)
    except FileNotFoundError:
        return _drop_stale(cache_dir, abs_path)
    return current == entry.hash


def should_skip_by_metadata(cache_dir: str | Path, abs_path: str | Path) -> bool:
    """Skip when size and modification time match the record.

    Hash-only records fall back to :func:`should_skip_by_hash`.
    """
    entry = read_cache_entry(cache_dir, abs_path)
    if entry is None:
        return False
    if not entry.has_metadata:
        return should_skip_by_hash(cache_dir, abs_path)
    try:
        size, mod_time = file_metadata(abs_path)
    except FileNotFoundError:
        return _drop_stale(cache_dir, abs_path)
    return entry.size == size and entry.mod_time == mod_time


def should_skip(cache_dir: str | Path | None, abs_path: str | Path, prefer_metadata: bool = True) -> bool:
    """Decide whether ``abs_path`` is unchanged since it was last recorded."""
    if not cache_dir:
        return False
    if prefer_metadata:
        return should_skip_by_metadata(cache_dir, abs_path)
    return should_skip_by_hash(cache_dir, abs_path)
