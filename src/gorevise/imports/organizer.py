"""Import organization (goimports-like grouping).

Organizes imports into groups, emitted in the configured order and
separated by blank lines:
1. std - standard library (dot-free first path segment)
2. general - third-party dependencies
3. company - paths under a configured company prefix
4. project - paths under the project's module path
5. blanked - ``_`` imports
6. dotted - ``.`` imports
"""
from __future__ import annotations

from dataclasses import replace
from typing import Mapping

from gorevise.core.options import ImportGroup, ReviserOptions
from gorevise.imports.analyzer import (
    ImportBlock,
    ImportSpec,
    assumed_package_name,
    version_suffix_alias,
)

# Fallback when a group is not part of the configured order
_FALLBACK = ImportGroup.GENERAL


class ImportOrganizer:
    """Classify, sort and render the imports of one Go source unit.

    Parameters
    ----------
    options : ReviserOptions
        Grouping and rewriting switches.
    project_name : str
        Module path of the project, e.g. ``github.com/example/project``.
    package_imports : Mapping[str, str] | None
        Declared package names by import path, used to infer the sort
        identity of unaliased imports.
    """

    def __init__(
        self,
        options: ReviserOptions,
        project_name: str = "",
        package_imports: Mapping[str, str] | None = None,
    ) -> None:
        self._options = options
        self._order = options.group_order
        self._project = project_name.rstrip("/")
        self._prefixes = tuple(prefix for prefix in options.company_prefixes if prefix)
        self._package_imports = package_imports or {}

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def _is_company(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self._prefixes)

    def _is_project(self, path: str) -> bool:
        if not self._project:
            return False
        return path == self._project or path.startswith(self._project + "/")

    def _is_std(self, path: str) -> bool:
        first = path.split("/", 1)[0]
        return "." not in first and not self._is_company(path) and not self._is_project(path)

    def classify(self, spec: ImportSpec) -> ImportGroup:
        """Return the single group an import belongs to.

        First match wins: blanked, dotted, std, company, project, general.
        Groups absent from the configured order are skipped, so e.g. a blank
        import is classified by its path unless ``blanked`` is ordered.
        """
        candidates = (
            (ImportGroup.BLANKED, spec.is_blank),
            (ImportGroup.DOTTED, spec.is_dot),
            (ImportGroup.STD, self._is_std(spec.path)),
            (ImportGroup.COMPANY, bool(self._prefixes) and self._is_company(spec.path)),
            (ImportGroup.PROJECT, self._is_project(spec.path)),
        )
        for group, matches in candidates:
            if matches and group in self._order:
                return group
        return _FALLBACK

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def identity(self, spec: ImportSpec) -> str:
        """Effective identity: the alias, else the inferred package name."""
        if spec.is_named:
            return spec.alias
        return self._package_imports.get(spec.path) or assumed_package_name(spec.path)

    def _sort(self, group: ImportGroup, specs: list[ImportSpec]) -> list[ImportSpec]:
        if group in (ImportGroup.BLANKED, ImportGroup.DOTTED):
            return sorted(specs, key=lambda spec: spec.path)
        return sorted(specs, key=lambda spec: (self.identity(spec), spec.path))

    def _prepare(self, specs: list[ImportSpec], used: Mapping[str, bool] | None) -> list[ImportSpec]:
        kept: list[ImportSpec] = []
        seen: set[tuple[str | None, str]] = set()
        for spec in specs:
            key = (spec.alias, spec.path)
            if key in seen:
                continue
            seen.add(key)
            if (
                self._options.remove_unused
                and used is not None
                and not (spec.is_blank or spec.is_dot)
                and not used.get(spec.path, False)
            ):
                continue
            if self._options.set_alias and spec.alias is None:
                alias = version_suffix_alias(spec.path)
                if alias is not None:
                    spec = replace(spec, alias=alias)
            kept.append(spec)
        return kept

    def organize(
        self,
        specs: list[ImportSpec],
        used: Mapping[str, bool] | None = None,
    ) -> list[list[ImportSpec]]:
        """Group and sort imports.

        Parameters
        ----------
        specs : list[ImportSpec]
            Imports in source order.
        used : Mapping[str, bool] | None
            Usage by import path; required for unused-import removal.

        Returns
        -------
        list[list[ImportSpec]]
            Non-empty sections in emission order. With ``separate_named``
            the aliased imports of a group form their own trailing section.
        """
        buckets: dict[ImportGroup, list[ImportSpec]] = {}
        for spec in self._prepare(specs, used):
            buckets.setdefault(self.classify(spec), []).append(spec)

        order = list(self._order)
        if _FALLBACK not in order:
            order.append(_FALLBACK)

        sections: list[list[ImportSpec]] = []
        for group in order:
            ordered = self._sort(group, buckets.get(group, []))
            if self._options.separate_named:
                sections.append([spec for spec in ordered if not spec.is_named])
                sections.append([spec for spec in ordered if spec.is_named])
            else:
                sections.append(ordered)
        return [section for section in sections if section]

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, block: ImportBlock, used: Mapping[str, bool] | None = None) -> str:
        """Render the organized import declaration for ``block``.

        Returns an empty string when no import is left.
        """
        sections = self.organize(block.specs, used)
        if not sections:
            return ""

        specs = [spec for section in sections for spec in section]
        if block.single_line and len(specs) == 1 and not specs[0].doc and not block.footer:
            return f"import {specs[0].render()}"

        lines = ["import ("]
        for index, section in enumerate(sections):
            if index:
                lines.append("")
            for spec in section:
                lines.extend(f"\t{doc}" for doc in spec.doc)
                lines.append(f"\t{spec.render()}")
        lines.extend(f"\t{comment}" for comment in block.footer)
        lines.append(")")
        return "\n".join(lines)

    def apply(self, content: bytes, block: ImportBlock, used: Mapping[str, bool] | None = None) -> bytes:
        """Splice the rendered block into ``content``."""
        rendered = self.render(block, used).encode("utf-8")
        prefix = content[:block.start]
        suffix = content[block.end:]

        if not rendered:
            prefix = prefix.rstrip(b"\n") + b"\n"
            suffix = suffix.lstrip(b"\n")
            return prefix + b"\n" + suffix if suffix else prefix

        if self._options.format:
            if block.package_end is not None:
                prefix = content[:block.package_end] + b"\n\n"
            if block.next_start is not None:
                suffix = b"\n\n" + content[block.next_start:]
            else:
                suffix = b"\n"
        return prefix + rendered + suffix
