"""Fixing the imports of one Go source unit."""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from gorevise.core.options import ReviserOptions
from gorevise.core.results import FixResult
from gorevise.imports.analyzer import (
    extract_imports,
    is_generated,
    parse_build_tag,
    parse_source,
    used_imports,
)
from gorevise.imports.deps import PackageDepsCache
from gorevise.imports.organizer import ImportOrganizer

logger = logging.getLogger(__name__)

STANDARD_INPUT = "<standard-input>"


class SourceFile:
    """A Go file (or standard input) whose imports are to be fixed.

    Parameters
    ----------
    project_name : str
        Module path of the project the file belongs to.
    path : str | Path
        File path, or :data:`STANDARD_INPUT`.
    content : bytes | None
        Source to use instead of reading ``path``.
    deps : PackageDepsCache | None
        Package name cache, shared between files of one run.

    Examples
    --------
    >>> result = SourceFile("github.com/example/project", "main.go").fix(
    ...     ReviserOptions(remove_unused=True)
    ... )
    >>> if result.changed:
    ...     Path("main.go").write_bytes(result.content)
    """

    def __init__(
        self,
        project_name: str,
        path: str | Path,
        *,
        content: bytes | None = None,
        deps: PackageDepsCache | None = None,
    ) -> None:
        self.project_name = project_name
        self.path = str(path)
        self._content = content
        self._deps = deps if deps is not None else PackageDepsCache()

    def _read(self) -> bytes:
        if self._content is not None:
            return self._content
        if self.path == STANDARD_INPUT:
            return sys.stdin.buffer.read()
        return Path(self.path).read_bytes()

    def _directory(self) -> str:
        if self.path == STANDARD_INPUT:
            return os.getcwd()
        return str(Path(self.path).resolve().parent)

    def fix(self, options: ReviserOptions | None = None) -> FixResult:
        """Organize the imports.

        Returns
        -------
        FixResult
            Fixed bytes, original bytes and whether they differ.

        Raises
        ------
        ParseError
            If the source cannot be parsed.
        DependencyLoadError
            If unused-import removal needs package names that cannot be loaded.
        OSError
            If the file cannot be read.
        """
        options = options or ReviserOptions()
        original = self._read()
        tree = parse_source(original, self.path)

        if not options.apply_to_generated and is_generated(tree):
            logger.debug("skipping generated file %s", self.path)
            return FixResult(content=original, original=original, changed=False)

        block = extract_imports(tree, self.path)
        if block is None:
            return FixResult(content=original, original=original, changed=False)

        package_imports = None
        used = None
        if options.remove_unused:
            package_imports = self._deps.load(self._directory(), parse_build_tag(tree))
            used = used_imports(tree, block.specs, package_imports)

        organizer = ImportOrganizer(options, self.project_name, package_imports)
        content = organizer.apply(original, block, used)
        return FixResult(content=content, original=original, changed=content != original)
