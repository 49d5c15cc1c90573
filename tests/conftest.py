"""
Shared pytest fixtures for the gorevise test suite.

This module provides:
- Sample Go sources
- A package name cache backed by a fake loader (no Go toolchain needed)
- Temporary Go module trees

Fixture Naming Convention:
- sample_* : Fixtures that provide sample Go source strings
- tmp_* : Fixtures that create temporary directories/files
- fake_* : Fixtures that replace external collaborators
"""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable

import pytest

from gorevise.imports.deps import PackageDepsCache

PROJECT = "github.com/example/project"


def go(source: str) -> str:
    """Dedent a Go snippet and strip the leading newline."""
    return textwrap.dedent(source).lstrip("\n")


# =============================================================================
# Sample Go Code Fixtures
# =============================================================================

@pytest.fixture
def sample_unsorted_code() -> str:
    """
    Go file whose imports are out of order.

    Contains:
    - std imports split by a third-party one
    - a project import
    """
    return go('''
        package main

        import (
        	"log"

        	"github.com/example/project/inner"

        	"bytes"

        	"golang.org/x/exp/slices"
        )

        func main() {
        	_ = log.New
        	_ = inner.Value
        	_ = bytes.NewBuffer
        	_ = slices.Contains
        }
    ''')


@pytest.fixture
def sample_sorted_code() -> str:
    """The canonical form of ``sample_unsorted_code``."""
    return go('''
        package main

        import (
        	"bytes"
        	"log"

        	"golang.org/x/exp/slices"

        	"github.com/example/project/inner"
        )

        func main() {
        	_ = log.New
        	_ = inner.Value
        	_ = bytes.NewBuffer
        	_ = slices.Contains
        }
    ''')


@pytest.fixture
def sample_unused_code() -> str:
    """Go file importing ``os`` and ``strings`` without using them."""
    return go('''
        package main

        import (
        	"fmt"
        	"os"
        	"strings"
        )

        func main() {
        	fmt.Println("hello")
        }
    ''')


# =============================================================================
# Collaborator Fixtures
# =============================================================================

@pytest.fixture
def fake_package_names() -> dict[str, str]:
    """Package names the fake loader reports."""
    return {
        "fmt": "fmt",
        "os": "os",
        "strings": "strings",
        "github.com/go-pg/pg/v9": "pg",
    }


@pytest.fixture
def fake_deps(fake_package_names: dict[str, str]) -> PackageDepsCache:
    """A PackageDepsCache that never runs the Go toolchain."""
    return PackageDepsCache(loader=lambda directory, build_tag: fake_package_names)


# =============================================================================
# Temporary Tree Fixtures
# =============================================================================

@pytest.fixture
def write_go(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a helper writing a Go file relative to tmp_path."""

    def _write(relative: str, source: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
        return path

    return _write


@pytest.fixture
def tmp_module(tmp_path: Path) -> Path:
    """A directory with a go.mod declaring ``PROJECT``."""
    (tmp_path / "go.mod").write_text(f"module {PROJECT}\n\ngo 1.22\n")
    return tmp_path


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """An empty cache root."""
    path = tmp_path / "cache"
    path.mkdir()
    return path
