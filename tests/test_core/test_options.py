"""
Tests for gorevise.core.options module.

Coverage targets:
- GroupOrder: parsing, aliases, minimum length, duplicates
- ReviserOptions: defaults and construction from command line strings
"""
from __future__ import annotations

import pytest

from gorevise.core.errors import ConfigurationError
from gorevise.core.options import (
    DEFAULT_IMPORTS_ORDER,
    GroupOrder,
    ImportGroup,
    ReviserOptions,
    parse_company_prefixes,
)


# =============================================================================
# GroupOrder Tests
# =============================================================================

class TestGroupOrder:
    """Tests for GroupOrder parsing."""

    def test_default_order(self):
        order = GroupOrder.default()
        assert order.names() == ["std", "general", "company", "project"]
        assert len(order) == 4

    def test_extended_order(self):
        order = GroupOrder.parse("dotted,std,general,company,project,blanked")
        assert list(order) == [
            ImportGroup.DOTTED,
            ImportGroup.STD,
            ImportGroup.GENERAL,
            ImportGroup.COMPANY,
            ImportGroup.PROJECT,
            ImportGroup.BLANKED,
        ]

    def test_alias_spellings(self):
        order = GroupOrder.parse("standard, general, company, project, blank, dot")
        assert ImportGroup.STD in order
        assert ImportGroup.BLANKED in order
        assert ImportGroup.DOTTED in order

    def test_too_few_groups(self):
        """Fewer than four groups is rejected with the default suggestion."""
        with pytest.raises(ConfigurationError) as exc_info:
            GroupOrder.parse("std,general")
        assert str(exc_info.value) == (
            "use default at least 4 parameters to sort groups of your imports: "
            f'"{DEFAULT_IMPORTS_ORDER}"'
        )

    def test_unknown_group(self):
        with pytest.raises(ConfigurationError) as exc_info:
            GroupOrder.parse("std,general,company,group")
        assert str(exc_info.value) == 'unknown order group type: "group"'

    def test_duplicate_group(self):
        with pytest.raises(ConfigurationError, match="duplicated order group type"):
            GroupOrder.parse("std,general,company,std")

    def test_of_skips_minimum(self):
        """GroupOrder.of() allows orders shorter than the command line minimum."""
        assert GroupOrder.of("std", "general", "project").names() == ["std", "general", "project"]

    def test_parse_with_lower_minimum(self):
        assert len(GroupOrder.parse("std,general,project", minimum=3)) == 3


# =============================================================================
# ReviserOptions Tests
# =============================================================================

class TestReviserOptions:
    """Tests for ReviserOptions."""

    def test_defaults(self):
        options = ReviserOptions()
        assert options.remove_unused is False
        assert options.set_alias is False
        assert options.format is False
        assert options.separate_named is False
        assert options.apply_to_generated is False
        assert options.company_prefixes == ()
        assert options.group_order == GroupOrder.default()

    def test_from_strings(self):
        options = ReviserOptions.from_strings(
            "std,general,company,project,blanked",
            "github.com/mycorp, gitlab.mycorp.io,",
            remove_unused=True,
        )
        assert options.remove_unused is True
        assert options.company_prefixes == ("github.com/mycorp", "gitlab.mycorp.io")
        assert ImportGroup.BLANKED in options.group_order

    def test_from_strings_empty_order_uses_default(self):
        assert ReviserOptions.from_strings("").group_order == GroupOrder.default()

    def test_from_strings_invalid_order(self):
        with pytest.raises(ConfigurationError):
            ReviserOptions.from_strings("std")

    def test_options_are_frozen(self):
        options = ReviserOptions()
        with pytest.raises(AttributeError):
            options.format = True


def test_parse_company_prefixes_drops_empty_entries():
    assert parse_company_prefixes(" , a.com/x ,,b.com ") == ("a.com/x", "b.com")
