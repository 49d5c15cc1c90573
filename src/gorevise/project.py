"""Project identity: the module path declared in the nearest ``go.mod``."""
from __future__ import annotations

import re
import threading
from pathlib import Path

from gorevise.core.errors import PathIsNotSetError, ProjectNotFoundError, UndefinedModuleError

GO_MOD_FILENAME = "go.mod"

_MODULE_DIRECTIVE = re.compile(r'^\s*module\s+(?:"([^"]+)"|`([^`]+)`|(\S+))', re.MULTILINE)
_LINE_COMMENT = re.compile(r"//.*$", re.MULTILINE)


def go_mod_root_path(path: str | Path) -> Path | None:
    """Return the closest directory at or above ``path`` holding a go.mod.

    Raises
    ------
    PathIsNotSetError
        If ``path`` is empty.
    """
    if not str(path):
        raise PathIsNotSetError()

    current = Path(path).resolve()
    for candidate in (current, *current.parents):
        if (candidate / GO_MOD_FILENAME).is_file():
            return candidate
    return None


def read_module_name(root: str | Path) -> str:
    """Parse the module path out of ``root/go.mod``."""
    go_mod = Path(root) / GO_MOD_FILENAME
    text = _LINE_COMMENT.sub("", go_mod.read_text(encoding="utf-8"))
    match = _MODULE_DIRECTIVE.search(text)
    if match is None:
        raise UndefinedModuleError(go_mod)
    return next(group for group in match.groups() if group)


class ProjectResolver:
    """Resolve and cache module paths by go.mod root directory.

    Only successful lookups are cached, so a go.mod created after a failed
    lookup is picked up by the next call.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._names: dict[Path, str] = {}

    def name(self, root: str | Path) -> str:
        root = Path(root)
        with self._lock:
            cached = self._names.get(root)
        if cached is not None:
            return cached

        name = read_module_name(root)
        with self._lock:
            self._names[root] = name
        return name

    def resolve(self, path: str | Path) -> str:
        """Return the module path of the project containing ``path``."""
        root = go_mod_root_path(path)
        if root is None:
            raise ProjectNotFoundError(path)
        return self.name(root)

    def clear(self) -> None:
        with self._lock:
            self._names.clear()


def determine_project_name(project_name: str, path: str | Path, resolver: ProjectResolver | None = None) -> str:
    """Return ``project_name`` if set, else resolve it from ``path``."""
    if project_name:
        return project_name
    return (resolver or ProjectResolver()).resolve(path)
