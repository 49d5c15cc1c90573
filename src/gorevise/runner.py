"""Processing the input paths of one invocation.

Every input path (file, directory or standard input) is an independent
unit of work; the units run concurrently and their directory walks share
one worker pool, created on first use and stopped when all units are done.
"""
from __future__ import annotations

import logging
import os
import sys
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TextIO

from gorevise import cache
from gorevise.core.errors import OutputError, ReviserCancelled, ReviserError
from gorevise.core.options import ReviserOptions
from gorevise.directory import SourceDir, is_dir
from gorevise.imports.deps import PackageDepsCache
from gorevise.pool import WorkerPool, default_pool_size
from gorevise.project import ProjectResolver, determine_project_name
from gorevise.source import STANDARD_INPUT, SourceFile

logger = logging.getLogger(__name__)


class OutputMode(str, Enum):
    """Where fixed content goes."""

    FILE = "file"
    WRITE = "write"
    STDOUT = "stdout"

    @classmethod
    def parse(cls, value: str) -> OutputMode:
        try:
            return cls(value)
        except ValueError:
            raise OutputError(f"invalid output {value!r} specified") from None


@dataclass
class RunConfig:
    """Invocation-level settings, mirroring the command line flags.

    Attributes:
        project_name: Module path; resolved from go.mod when empty
        output: Output mode
        excludes: Comma-separated exclude patterns for directories
        list_diff: List files that are (or were) not canonical
        recursive: Descend into subdirectories of directory inputs
        use_cache: Skip files recorded as unchanged
        use_metadata_cache: Prefer the size/mtime cache check over hashing
        cache_dir: Cache root; defaults to the XDG cache directory
    """

    project_name: str = ""
    output: OutputMode = OutputMode.FILE
    excludes: str = ""
    list_diff: bool = False
    recursive: bool = False
    use_cache: bool = False
    use_metadata_cache: bool = True
    cache_dir: Path | None = None


class Runner:
    """Run one invocation over several input paths.

    Parameters
    ----------
    config : RunConfig
        Invocation settings.
    options : ReviserOptions
        Fix options applied to every file.
    stdout : TextIO | None
        Stream for listed paths and ``stdout`` output.
    resolver : ProjectResolver | None
        Project name cache.
    deps : PackageDepsCache | None
        Package name cache.
    """

    def __init__(
        self,
        config: RunConfig,
        options: ReviserOptions,
        *,
        stdout: TextIO | None = None,
        resolver: ProjectResolver | None = None,
        deps: PackageDepsCache | None = None,
    ) -> None:
        self.config = config
        self.options = options
        self._stdout = stdout
        self._resolver = resolver or ProjectResolver()
        self._deps = deps or PackageDepsCache()
        self._out_lock = threading.Lock()
        self._change_lock = threading.Lock()
        self._pool_lock = threading.Lock()
        self._pool: WorkerPool | None = None
        self.has_change = False
        self.cache_dir: Path | None = None
        if config.use_cache:
            self.cache_dir = config.cache_dir or cache.default_cache_dir()
            self.cache_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------

    def _shared_pool(self) -> WorkerPool:
        with self._pool_lock:
            if self._pool is None:
                self._pool = WorkerPool(default_pool_size())
            return self._pool

    def _mark_changed(self) -> None:
        with self._change_lock:
            self.has_change = True

    def _print(self, text: str) -> None:
        stream = self._stdout or sys.stdout
        with self._out_lock:
            stream.write(text)
            stream.flush()

    # ------------------------------------------------------------------

    def run(self, paths: list[str], cancel: threading.Event | None = None) -> bool:
        """Process ``paths`` and return whether any file needed changes.

        Raises
        ------
        ReviserCancelled
            If ``cancel`` is already set.
        ReviserError
            The first error of any path, after every path finished.
        """
        if cancel is not None and cancel.is_set():
            raise ReviserCancelled("cancelled before processing started")

        first_error: BaseException | None = None
        try:
            with ThreadPoolExecutor(max_workers=max(len(paths), 1), thread_name_prefix="gorevise-input") as executor:
                futures = [executor.submit(self._process, path) for path in paths]
                for future in as_completed(futures):
                    error = future.exception()
                    if error is not None and first_error is None:
                        first_error = error
        finally:
            if self._pool is not None:
                self._pool.stop_and_wait()

        if first_error is not None:
            raise first_error
        return self.has_change

    def _process(self, path: str) -> None:
        logger.info("Processing %s", path)
        try:
            project_name = determine_project_name(
                self.config.project_name,
                os.getcwd() if path == STANDARD_INPUT else path.removesuffix("/..."),
                self._resolver,
            )
        except (ReviserError, OSError) as exc:
            raise ReviserError(f"could not determine project name for path {path}: {exc}") from exc

        if path != STANDARD_INPUT and (path.endswith("/...") or is_dir(path)[1]):
            self._process_dir(project_name, path)
        else:
            self._process_file(project_name, path)

    def _source_dir(self, project_name: str, path: str) -> SourceDir:
        source_dir = (
            SourceDir(project_name, path, self.config.recursive, self.config.excludes)
            .with_worker_pool(self._shared_pool())
            .with_deps_cache(self._deps)
        )
        if self.cache_dir is not None:
            source_dir = source_dir.with_cache(self.cache_dir)
            if not self.config.use_metadata_cache:
                source_dir = source_dir.without_metadata_cache()
        return source_dir

    def _process_dir(self, project_name: str, path: str) -> None:
        source_dir = self._source_dir(project_name, path)
        if self.config.list_diff and self.config.output != OutputMode.WRITE:
            changed = source_dir.find(self.options)
        else:
            changed = source_dir.fix(self.options)

        if changed:
            self._mark_changed()
            if self.config.list_diff:
                self._print(f"{changed}\n")

    def _process_file(self, project_name: str, path: str) -> None:
        target = path if path == STANDARD_INPUT else os.path.abspath(path)
        use_cache = self.cache_dir is not None and target != STANDARD_INPUT

        if use_cache and cache.should_skip(self.cache_dir, target, self.config.use_metadata_cache):
            logger.debug("cache hit, skipping %s", target)
            return

        result = SourceFile(project_name, target, deps=self._deps).fix(self.options)
        if result.changed:
            self._mark_changed()

        on_disk = self._emit(result.changed, target, result.content)
        if use_cache and (on_disk or not result.changed):
            entry = cache.new_cache_entry(
                target, cache.compute_content_hash(result.content), self.config.use_metadata_cache
            )
            cache.write_cache_entry(self.cache_dir, target, entry)

    def _emit(self, changed: bool, path: str, content: bytes) -> bool:
        """Send fixed content to the configured sink.

        Returns True when the file on disk now holds ``content``.
        """
        output = self.config.output
        if changed and self.config.list_diff and output != OutputMode.WRITE:
            self._print(f"{path}\n")
            return False
        if output == OutputMode.STDOUT or path == STANDARD_INPUT:
            self._print(content.decode("utf-8"))
            return False
        if changed:
            Path(path).write_bytes(content)
            if self.config.list_diff:
                self._print(f"{path}\n")
        return True


def process_paths(
    paths: list[str],
    config: RunConfig,
    options: ReviserOptions,
    *,
    cancel: threading.Event | None = None,
    stdout: TextIO | None = None,
) -> bool:
    """Convenience wrapper around :class:`Runner`."""
    return Runner(config, options, stdout=stdout).run(paths, cancel)
