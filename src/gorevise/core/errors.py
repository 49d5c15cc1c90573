"""Exception types raised by gorevise.

All errors derive from :class:`ReviserError` so callers can catch the whole
family at once:

- ConfigurationError - bad import order or option combination
- ParseError - a source unit could not be parsed
- DependencyLoadError - package names for a directory could not be loaded
- ProjectNameError - the project (module) identity could not be resolved
- PathIsNotDirError - a directory operation was given something else
- OutputError - an unknown output mode was requested
- ReviserCancelled - a batch was cancelled before it started
"""
from __future__ import annotations

from pathlib import Path


class ReviserError(Exception):
    """Base class for all gorevise errors."""


class ConfigurationError(ReviserError):
    """Invalid configuration, reported before any file is touched."""


class ParseError(ReviserError):
    """A Go source unit could not be parsed.

    Attributes
    ----------
    path : str
        Path of the unit (or ``<standard-input>``).
    line : int
        1-based line of the first syntax error.
    column : int
        1-based column of the first syntax error.
    """

    def __init__(self, path: str | Path, line: int, column: int, detail: str = "syntax error") -> None:
        self.path = str(path)
        self.line = line
        self.column = column
        self.detail = detail
        super().__init__(f"{self.path}:{line}:{column}: {detail}")


class DependencyLoadError(ReviserError):
    """Loading the package table for a directory failed.

    One error is raised per (directory, build tag) request; it aggregates
    every package error reported by the loader.
    """

    def __init__(self, directory: str | Path, build_tag: str, details: list[str] | None = None) -> None:
        self.directory = str(directory)
        self.build_tag = build_tag
        self.details = list(details or [])
        message = f"failed to load package dependencies for {self.directory}"
        if build_tag:
            message += f" (tags: {build_tag})"
        if self.details:
            message += ": " + "; ".join(self.details)
        super().__init__(message)


class ProjectNameError(ReviserError):
    """The project name could not be determined."""


class PathIsNotSetError(ProjectNameError):
    def __init__(self) -> None:
        super().__init__("path is not set")


class ProjectNotFoundError(ProjectNameError):
    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        super().__init__(f"go.mod not found for {self.path}")


class UndefinedModuleError(ProjectNameError):
    def __init__(self, go_mod: str | Path) -> None:
        self.go_mod = str(go_mod)
        super().__init__(f"module is undefined in {self.go_mod}")


class PathIsNotDirError(ReviserError):
    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        super().__init__(f"path is not a directory: {self.path}")


class OutputError(ReviserError):
    """Unknown output mode."""


class ReviserCancelled(ReviserError):
    """The batch was cancelled before processing started."""
