"""Package name resolution for import paths.

``load_package_dependencies`` asks the Go toolchain for every package
reachable from a directory (test variants included) and returns a mapping
of import path to declared package name. Doing that is slow, so callers go
through :class:`PackageDepsCache`, which runs the loader once per
(directory, build tag) key no matter how many threads ask concurrently.
"""
from __future__ import annotations

import json
import logging
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping

from gorevise.core.errors import DependencyLoadError

logger = logging.getLogger(__name__)

PackageImports = Mapping[str, str]
Loader = Callable[[str, str], Mapping[str, str]]

GO_BINARY = "go"


def _decode_stream(output: str) -> list[dict]:
    """Decode the concatenated JSON objects printed by ``go list -json``."""
    decoder = json.JSONDecoder()
    objects: list[dict] = []
    index = 0
    while True:
        while index < len(output) and output[index].isspace():
            index += 1
        if index >= len(output):
            return objects
        obj, index = decoder.raw_decode(output, index)
        objects.append(obj)


def load_package_dependencies(directory: str, build_tag: str = "") -> dict[str, str]:
    """Load import path -> package name for everything ``directory`` depends on.

    Parameters
    ----------
    directory : str
        Directory of the package being fixed.
    build_tag : str
        Build constraint of the unit, passed to ``-tags``.

    Raises
    ------
    DependencyLoadError
        If the toolchain is missing, fails, or reports package errors.
    """
    command = [GO_BINARY, "list", "-e", "-json", "-deps", "-test"]
    if build_tag:
        command.append(f"-tags={build_tag}")
    command.append(".")

    logger.debug("loading package dependencies in %s (tags=%r)", directory, build_tag)
    try:
        completed = subprocess.run(command, cwd=directory, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise DependencyLoadError(directory, build_tag, [str(exc)]) from exc

    if completed.returncode != 0:
        raise DependencyLoadError(directory, build_tag, [completed.stderr.strip() or f"exit status {completed.returncode}"])

    try:
        packages = _decode_stream(completed.stdout)
    except json.JSONDecodeError as exc:
        raise DependencyLoadError(directory, build_tag, [f"invalid go list output: {exc}"]) from exc

    errors: list[str] = []
    result: dict[str, str] = {}
    for package in packages:
        import_path = package.get("ImportPath", "")
        error = package.get("Error")
        if error:
            errors.append(f"{import_path}: {error.get('Err', error)}")
            continue
        # test variants are listed as "path [path.test]"
        import_path = import_path.split(" ", 1)[0]
        name = package.get("Name")
        if import_path and name and not import_path.endswith(".test"):
            result[import_path] = name

    if errors:
        raise DependencyLoadError(directory, build_tag, errors)
    return result


@dataclass
class _Call:
    done: threading.Event = field(default_factory=threading.Event)
    result: PackageImports | None = None
    error: BaseException | None = None


class PackageDepsCache:
    """Single-flight, success-only cache in front of a package loader.

    The first caller for a key runs the loader; concurrent callers for the
    same key block until it finishes and receive the identical result.
    Successful tables are kept until :meth:`clear`; failures are handed to
    every waiter of that call and then forgotten, so a later call retries.

    Parameters
    ----------
    loader : Loader
        ``(directory, build_tag) -> mapping``; defaults to
        :func:`load_package_dependencies`.

    Examples
    --------
    >>> cache = PackageDepsCache(loader=lambda d, t: {"example.com/pkg": "pkg"})
    >>> cache.load("/tmp/project", "")["example.com/pkg"]
    'pkg'
    """

    def __init__(self, loader: Loader | None = None) -> None:
        self._loader = loader or load_package_dependencies
        self._lock = threading.Lock()
        self._done: dict[tuple[str, str], PackageImports] = {}
        self._inflight: dict[tuple[str, str], _Call] = {}

    def load(self, directory: str | Path, build_tag: str = "") -> PackageImports:
        key = (str(directory), build_tag)
        with self._lock:
            cached = self._done.get(key)
            if cached is not None:
                return cached
            call = self._inflight.get(key)
            leader = call is None
            if leader:
                call = _Call()
                self._inflight[key] = call

        if not leader:
            call.done.wait()
            if call.error is not None:
                raise call.error
            return call.result

        try:
            result = MappingProxyType(dict(self._loader(key[0], build_tag)))
        except DependencyLoadError as exc:
            call.error = exc
        except Exception as exc:
            call.error = DependencyLoadError(key[0], build_tag, [str(exc)])
            call.error.__cause__ = exc
        else:
            call.result = result

        with self._lock:
            del self._inflight[key]
            if call.error is None:
                self._done[key] = call.result
        call.done.set()

        if call.error is not None:
            raise call.error
        return call.result

    def clear(self) -> None:
        """Forget every cached table."""
        with self._lock:
            self._done.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._done)
