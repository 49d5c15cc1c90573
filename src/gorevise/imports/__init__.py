"""Import management for Go sources.

Provides:
- Parsing and import extraction (tree-sitter-go)
- Unused-import detection
- Grouping, sorting and rendering of import blocks
- Package name loading with a single-flight cache
"""
from __future__ import annotations

from gorevise.imports.analyzer import (
    ImportBlock,
    ImportSpec,
    assumed_package_name,
    extract_imports,
    is_generated,
    parse_build_tag,
    parse_source,
    used_imports,
    uses_import,
)
from gorevise.imports.deps import PackageDepsCache, load_package_dependencies
from gorevise.imports.organizer import ImportOrganizer

__all__ = [
    "ImportBlock",
    "ImportOrganizer",
    "ImportSpec",
    "PackageDepsCache",
    "assumed_package_name",
    "extract_imports",
    "is_generated",
    "load_package_dependencies",
    "parse_build_tag",
    "parse_source",
    "used_imports",
    "uses_import",
]
