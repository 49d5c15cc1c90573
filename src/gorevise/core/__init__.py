"""
Core module: configuration, results and errors shared by every component.

Example
-------
>>> from gorevise.core import GroupOrder, ReviserOptions
>>>
>>> options = ReviserOptions(
...     remove_unused=True,
...     company_prefixes=("github.com/mycorp",),
...     group_order=GroupOrder.parse("std,general,company,project"),
... )
"""
from __future__ import annotations

from .errors import (
    ConfigurationError,
    DependencyLoadError,
    OutputError,
    ParseError,
    PathIsNotDirError,
    PathIsNotSetError,
    ProjectNameError,
    ProjectNotFoundError,
    ReviserCancelled,
    ReviserError,
    UndefinedModuleError,
)
from .options import GroupOrder, ImportGroup, ReviserOptions
from .results import FixResult, UnformattedCollection

__all__ = [
    "ConfigurationError",
    "DependencyLoadError",
    "FixResult",
    "GroupOrder",
    "ImportGroup",
    "OutputError",
    "ParseError",
    "PathIsNotDirError",
    "PathIsNotSetError",
    "ProjectNameError",
    "ProjectNotFoundError",
    "ReviserCancelled",
    "ReviserError",
    "ReviserOptions",
    "UndefinedModuleError",
    "UnformattedCollection",
]
