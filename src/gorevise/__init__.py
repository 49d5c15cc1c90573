"""
gorevise - sort, group and clean up the imports of Go source files.

Imports are split into groups (standard library, general third-party,
company, project, blank and dot imports), sorted within each group and
emitted in a configurable order, one blank line between groups.

Example
-------
>>> from gorevise import ReviserOptions, SourceDir, SourceFile
>>>
>>> # Fix a single file
>>> result = SourceFile("github.com/example/project", "main.go").fix(
...     ReviserOptions(remove_unused=True, set_alias=True)
... )
>>> result.changed
True
>>>
>>> # Fix a whole tree, skipping files unchanged since the last run
>>> SourceDir("github.com/example/project", "./...").with_cache("/tmp/cache").fix()

Classes
-------
SourceFile
    Fixes one file (or standard input).

SourceDir
    Fixes or checks every Go file below a directory.

ReviserOptions
    All switches of a fix operation.

GroupOrder
    Emission order of the import groups.

PackageDepsCache
    Single-flight cache of package names per directory.

ProjectResolver
    Cache of module paths read from go.mod.
"""
from __future__ import annotations

__version__ = "0.1.0"

from gorevise.core import (
    ConfigurationError,
    DependencyLoadError,
    FixResult,
    GroupOrder,
    ImportGroup,
    ParseError,
    ReviserError,
    ReviserOptions,
    UnformattedCollection,
)
from gorevise.directory import SourceDir
from gorevise.imports import ImportOrganizer, ImportSpec, PackageDepsCache
from gorevise.pool import WorkerPool
from gorevise.project import ProjectResolver
from gorevise.source import STANDARD_INPUT, SourceFile

__all__ = [
    "ConfigurationError",
    "DependencyLoadError",
    "FixResult",
    "GroupOrder",
    "ImportGroup",
    "ImportOrganizer",
    "ImportSpec",
    "PackageDepsCache",
    "ParseError",
    "ProjectResolver",
    "ReviserError",
    "ReviserOptions",
    "STANDARD_INPUT",
    "SourceDir",
    "SourceFile",
    "UnformattedCollection",
    "WorkerPool",
    "__version__",
]
