"""Configuration for import revision.

This module defines:
- ImportGroup - the buckets an import can be placed in
- GroupOrder - the order in which non-empty buckets are emitted
- ReviserOptions - every behavioural switch of a fix operation
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from gorevise.core.errors import ConfigurationError

DEFAULT_IMPORTS_ORDER = "std,general,company,project"
MIN_GROUP_COUNT = 4


class ImportGroup(str, Enum):
    """Named partition of an import block."""

    STD = "std"
    GENERAL = "general"
    COMPANY = "company"
    PROJECT = "project"
    BLANKED = "blanked"
    DOTTED = "dotted"


_GROUP_ALIASES = {
    "std": ImportGroup.STD,
    "standard": ImportGroup.STD,
    "general": ImportGroup.GENERAL,
    "company": ImportGroup.COMPANY,
    "project": ImportGroup.PROJECT,
    "blanked": ImportGroup.BLANKED,
    "blank": ImportGroup.BLANKED,
    "dotted": ImportGroup.DOTTED,
    "dot": ImportGroup.DOTTED,
}


@dataclass(frozen=True)
class GroupOrder:
    """Ordered, duplicate-free sequence of import groups.

    Attributes
    ----------
    groups : tuple[ImportGroup, ...]
        Groups in emission order.

    Examples
    --------
    >>> GroupOrder.parse("std,general,company,project").groups[0]
    <ImportGroup.STD: 'std'>
    >>> GroupOrder.parse("std,general,project", minimum=3).names()
    ['std', 'general', 'project']
    """

    groups: tuple[ImportGroup, ...]

    def __post_init__(self) -> None:
        seen: set[ImportGroup] = set()
        for group in self.groups:
            if group in seen:
                raise ConfigurationError(f'duplicated order group type: "{group.value}"')
            seen.add(group)

    @classmethod
    def default(cls) -> GroupOrder:
        return cls.parse(DEFAULT_IMPORTS_ORDER)

    @classmethod
    def of(cls, *names: str) -> GroupOrder:
        """Build an order from group names without a minimum length check."""
        return cls.parse(",".join(names), minimum=0)

    @classmethod
    def parse(cls, text: str, minimum: int = MIN_GROUP_COUNT) -> GroupOrder:
        """Parse a comma-separated order string such as ``"std,general,company,project"``.

        Parameters
        ----------
        text : str
            Comma-separated group names.
        minimum : int
            Minimum number of groups required. The default matches the
            four groups of the default order.

        Raises
        ------
        ConfigurationError
            If a name is unknown, repeated, or too few groups are given.
        """
        names = [part.strip() for part in text.split(",") if part.strip()]
        if len(names) < minimum:
            raise ConfigurationError(
                f"use default at least {minimum} parameters to sort groups of your imports: "
                f'"{DEFAULT_IMPORTS_ORDER}"'
            )

        groups: list[ImportGroup] = []
        for name in names:
            group = _GROUP_ALIASES.get(name.lower())
            if group is None:
                raise ConfigurationError(f'unknown order group type: "{name}"')
            groups.append(group)
        return cls(tuple(groups))

    def __contains__(self, group: object) -> bool:
        return group in self.groups

    def __iter__(self):
        return iter(self.groups)

    def __len__(self) -> int:
        return len(self.groups)

    def names(self) -> list[str]:
        return [group.value for group in self.groups]


def parse_company_prefixes(text: str) -> tuple[str, ...]:
    """Split a comma-separated prefix list, dropping empty entries."""
    return tuple(part.strip() for part in text.split(",") if part.strip())


@dataclass(frozen=True)
class ReviserOptions:
    """All switches that influence how one source unit is fixed.

    Attributes
    ----------
    remove_unused : bool
        Drop imports nothing in the body refers to. Blank and dot imports
        are always kept.
    set_alias : bool
        Give version-suffixed paths (``github.com/go-pg/pg/v9``) an explicit
        alias equal to the segment before the version.
    format : bool
        Normalize the blank lines around the import block.
    separate_named : bool
        Move aliased imports into a trailing subgroup of their group.
    apply_to_generated : bool
        Also process files marked ``// Code generated``.
    company_prefixes : tuple[str, ...]
        Import path prefixes that belong to the company group.
    group_order : GroupOrder
        Emission order of the groups.
    """

    remove_unused: bool = False
    set_alias: bool = False
    format: bool = False
    separate_named: bool = False
    apply_to_generated: bool = False
    company_prefixes: tuple[str, ...] = ()
    group_order: GroupOrder = field(default_factory=GroupOrder.default)

    @classmethod
    def from_strings(
        cls,
        imports_order: str = DEFAULT_IMPORTS_ORDER,
        company_prefixes: str = "",
        **flags: bool,
    ) -> ReviserOptions:
        """Build options from the textual forms accepted on the command line."""
        order = GroupOrder.parse(imports_order) if imports_order else GroupOrder.default()
        return cls(
            company_prefixes=parse_company_prefixes(company_prefixes),
            group_order=order,
            **flags,
        )
