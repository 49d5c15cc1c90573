"""Fixing or checking every Go file below a directory.

Files are processed concurrently. The first few files of a walk run inline
on the walking thread; a worker pool is only created once a walk turns out
to be larger than that. Errors do not stop the walk: every file is
processed and the first error is raised at the end.
"""
from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Future, wait
from pathlib import Path, PurePath
from typing import Callable

from gorevise import cache
from gorevise.core.errors import PathIsNotDirError, ReviserError
from gorevise.core.options import ReviserOptions
from gorevise.core.results import UnformattedCollection
from gorevise.imports.deps import PackageDepsCache
from gorevise.pool import WorkerPool, default_pool_size
from gorevise.source import SourceFile

logger = logging.getLogger(__name__)

GO_EXTENSION = ".go"
RECURSIVE_SUFFIX = "/..."
RECURSIVE_PATH = "./..."
DEFAULT_PARALLEL_THRESHOLD = 8

# directories and files the go tool ignores
DEFAULT_EXCLUDED_NAMES = frozenset({"vendor", "testdata"})
DEFAULT_EXCLUDED_PREFIXES = (".", "_")

# (changed, path, content) -> True when the file on disk now holds content
WalkCallback = Callable[[bool, str, bytes], bool]


def is_go_file(path: str | Path) -> bool:
    return Path(path).suffix == GO_EXTENSION


def is_dir(path: str | Path) -> tuple[str, bool]:
    """Resolve ``.`` and ``./...`` to the working directory and test for a directory."""
    path = str(path)
    if path in (RECURSIVE_PATH, ".", "." + os.sep):
        path = os.getcwd()
    return path, os.path.isdir(path)


class _FirstError:
    """Keeps the first error reported by concurrent tasks."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.error: BaseException | None = None

    def record(self, error: BaseException) -> None:
        with self._lock:
            if self.error is None:
                self.error = error


class _Submitter:
    """Runs the first ``threshold`` tasks inline, later ones on a pool.

    An injected pool receives every task. Otherwise a pool is created on
    the first task past the threshold and stopped by :meth:`wait`.
    """

    def __init__(self, pool: WorkerPool | None, threshold: int) -> None:
        self._pool = pool
        self._can_create = pool is None
        self._created = False
        self._threshold = threshold if threshold > 0 else DEFAULT_PARALLEL_THRESHOLD
        self._count = 0
        self._lock = threading.Lock()
        self._pending: list[Future] = []

    def submit(self, task: Callable[[], None]) -> None:
        with self._lock:
            pool = self._pool
            if pool is None:
                self._count += 1
                if self._count > self._threshold and self._can_create:
                    pool = self._pool = WorkerPool(default_pool_size())
                    self._created = True
                    logger.debug("switching to a pool of %d workers", pool.max_workers)

        if pool is None:
            task()
            return

        future = pool.submit(task)
        with self._lock:
            self._pending.append(future)

    def wait(self) -> None:
        with self._lock:
            pending = list(self._pending)
        wait(pending)
        if self._created:
            self._pool.stop_and_wait()


class SourceDir:
    """A directory whose Go files are fixed or checked.

    Parameters
    ----------
    project_name : str
        Module path of the project.
    path : str | Path
        Directory; ``./...`` or ``<dir>/...`` implies recursion.
    recursive : bool
        Descend into subdirectories.
    excludes : str
        Comma-separated glob patterns, relative to the directory unless
        absolute. ``*`` and ``?`` do not cross path separators.
    """

    def __init__(self, project_name: str, path: str | Path, recursive: bool = False, excludes: str = "") -> None:
        path = str(path)
        if path == RECURSIVE_PATH or path.endswith(RECURSIVE_SUFFIX):
            recursive = True
            path = path[: -len(RECURSIVE_SUFFIX)] or "."

        self.project_name = project_name
        self.dir = os.path.abspath(path)
        self.recursive = recursive
        self.exclude_patterns = [
            os.path.normpath(pattern if os.path.isabs(pattern) else os.path.join(self.dir, pattern))
            for pattern in (part.strip() for part in excludes.split(","))
            if pattern
        ]
        self.sequential_threshold = DEFAULT_PARALLEL_THRESHOLD
        self.worker_pool: WorkerPool | None = None
        self.cache_dir: Path | None = None
        self.use_metadata_cache = False
        self.deps = PackageDepsCache()

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def with_worker_pool(self, pool: WorkerPool | None) -> SourceDir:
        self.worker_pool = pool
        return self

    def with_sequential_threshold(self, threshold: int) -> SourceDir:
        """Number of files processed inline before a pool is created."""
        self.sequential_threshold = threshold
        return self

    def with_cache(self, cache_dir: str | Path) -> SourceDir:
        """Skip files recorded as unchanged in ``cache_dir`` (metadata-first)."""
        self.cache_dir = Path(cache_dir)
        self.use_metadata_cache = True
        return self

    def with_metadata_cache(self) -> SourceDir:
        self.use_metadata_cache = True
        return self

    def without_metadata_cache(self) -> SourceDir:
        self.use_metadata_cache = False
        return self

    def with_deps_cache(self, deps: PackageDepsCache) -> SourceDir:
        self.deps = deps
        return self

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def fix(self, options: ReviserOptions | None = None) -> UnformattedCollection:
        """Fix every file in place.

        Returns
        -------
        UnformattedCollection
            The files that were rewritten.

        Raises
        ------
        PathIsNotDirError
            If the directory does not exist.
        ReviserError
            The first per-file error, after all files were processed.
        """
        written: list[str] = []
        lock = threading.Lock()

        def write_back(changed: bool, path: str, content: bytes) -> bool:
            if changed:
                Path(path).write_bytes(content)
                with lock:
                    written.append(path)
            return True

        self._run(write_back, options)
        return UnformattedCollection(written)

    def find(self, options: ReviserOptions | None = None) -> UnformattedCollection:
        """Collect the files a fix would change, without writing anything."""
        found: list[str] = []
        lock = threading.Lock()

        def collect(changed: bool, path: str, content: bytes) -> bool:
            if changed:
                with lock:
                    found.append(path)
            return not changed

        self._run(collect, options)
        return UnformattedCollection(found)

    def _run(self, callback: WalkCallback, options: ReviserOptions | None) -> None:
        self.dir, ok = is_dir(self.dir)
        if not ok:
            raise PathIsNotDirError(self.dir)

        options = options or ReviserOptions()
        errors = _FirstError()
        submitter = _Submitter(self.worker_pool, self.sequential_threshold)
        walk_errors: list[OSError] = []
        try:
            for path in self._files(walk_errors.append):
                submitter.submit(self._task(path, callback, errors, options))
        finally:
            submitter.wait()

        if walk_errors:
            raise ReviserError(f"failed to walk dir: {walk_errors[0]}") from walk_errors[0]
        if errors.error is not None:
            raise errors.error

    def _files(self, onerror: Callable[[OSError], None]):
        for dirpath, dirnames, filenames in os.walk(self.dir, onerror=onerror):
            dirnames[:] = sorted(
                name for name in dirnames
                if self.recursive and not self.is_excluded(os.path.join(dirpath, name))
            )
            for name in sorted(filenames):
                path = os.path.join(dirpath, name)
                if is_go_file(path) and not self.is_excluded(path):
                    yield path

    def _task(self, path: str, callback: WalkCallback, errors: _FirstError, options: ReviserOptions):
        def run() -> None:
            try:
                if self.should_skip_by_cache(path):
                    logger.debug("cache hit, skipping %s", path)
                    return
                result = SourceFile(self.project_name, path, deps=self.deps).fix(options)
                on_disk = callback(result.changed, path, result.content)
                if self.cache_dir is not None and on_disk:
                    entry = cache.new_cache_entry(
                        path, cache.compute_content_hash(result.content), self.use_metadata_cache
                    )
                    cache.write_cache_entry(self.cache_dir, path, entry)
            except Exception as exc:
                error = ReviserError(f"failed to fix {path}: {exc}")
                error.__cause__ = exc
                errors.record(error)

        return run

    def should_skip_by_cache(self, path: str | Path) -> bool:
        if self.cache_dir is None:
            return False
        return cache.should_skip(self.cache_dir, os.path.abspath(path), self.use_metadata_cache)

    def is_excluded(self, path: str | Path) -> bool:
        """True for paths matching an exclude pattern or ignored by the go tool."""
        abs_path = str(path) if os.path.isabs(path) else os.path.join(self.dir, str(path))
        if abs_path != self.dir:
            name = os.path.basename(abs_path)
            if name in DEFAULT_EXCLUDED_NAMES or name.startswith(DEFAULT_EXCLUDED_PREFIXES):
                return True
        pure = PurePath(abs_path)
        return any(pure.match(pattern) for pattern in self.exclude_patterns)
