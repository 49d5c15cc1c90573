"""
Tests for gorevise.directory module.

This module tests directory processing:
- SourceDir.fix() / SourceDir.find()
- Exclude patterns and the go tool's default exclusions
- Cache integration
- Error retention while sibling files keep being processed
- Inline processing below the threshold and pool hand-off above it
"""
from __future__ import annotations

import os
import textwrap
import threading
from concurrent.futures import Future
from pathlib import Path

import pytest

from gorevise import cache, directory
from gorevise.core.errors import PathIsNotDirError, ReviserError
from gorevise.core.results import FixResult
from gorevise.directory import SourceDir, is_dir

PROJECT = "github.com/example/project"

UNSORTED = textwrap.dedent('''
    package dir1

    import (
    	"strings"

    	"github.com/pkg/errors"

    	"fmt"
    )

    func main() {
    	_ = strings.ToUpper("test")
    	_ = fmt.Sprintf("%s", "test")
    	_ = errors.New("test")
    }
''').lstrip("\n")

SORTED = textwrap.dedent('''
    package dir1

    import (
    	"fmt"
    	"strings"

    	"github.com/pkg/errors"
    )

    func main() {
    	_ = strings.ToUpper("test")
    	_ = fmt.Sprintf("%s", "test")
    	_ = errors.New("test")
    }
''').lstrip("\n")

BROKEN = "package dir1\n\nimport (\n"


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    """
    project/
    ├── main.go          (unsorted)
    ├── sorted.go        (canonical)
    ├── notes.txt
    ├── sub/inner.go     (unsorted)
    ├── vendor/lib.go    (unsorted)
    ├── testdata/x.go    (unsorted)
    └── .hidden/h.go     (unsorted)
    """
    root = tmp_path / "project"
    for relative, content in [
        ("main.go", UNSORTED),
        ("sorted.go", SORTED),
        ("notes.txt", "not go"),
        ("sub/inner.go", UNSORTED),
        ("vendor/lib.go", UNSORTED),
        ("testdata/x.go", UNSORTED),
        (".hidden/h.go", UNSORTED),
    ]:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


# =============================================================================
# Fix / Find Tests
# =============================================================================

class TestFix:
    """Tests for SourceDir.fix()."""

    def test_fixes_top_level_only(self, tree: Path):
        changed = SourceDir(PROJECT, tree).fix()

        assert changed.list() == [str(tree / "main.go")]
        assert (tree / "main.go").read_text() == SORTED
        assert (tree / "sub" / "inner.go").read_text() == UNSORTED

    def test_recursive_skips_default_exclusions(self, tree: Path):
        changed = SourceDir(PROJECT, tree, recursive=True).fix()

        assert changed.list() == [str(tree / "main.go"), str(tree / "sub" / "inner.go")]
        assert (tree / "vendor" / "lib.go").read_text() == UNSORTED
        assert (tree / "testdata" / "x.go").read_text() == UNSORTED
        assert (tree / ".hidden" / "h.go").read_text() == UNSORTED

    def test_recursive_suffix(self, tree: Path):
        source_dir = SourceDir(PROJECT, f"{tree}/...")
        assert source_dir.recursive is True
        assert source_dir.dir == str(tree)

    def test_recursive_current_directory(self, tree: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tree)
        source_dir = SourceDir(PROJECT, "./...")
        assert source_dir.recursive is True
        assert source_dir.dir == os.getcwd()

    def test_not_a_directory(self, tree: Path):
        with pytest.raises(PathIsNotDirError):
            SourceDir(PROJECT, tree / "missing").fix()

    def test_excludes(self, tree: Path):
        changed = SourceDir(PROJECT, tree, recursive=True, excludes="sub").fix()
        assert changed.list() == [str(tree / "main.go")]


class TestFind:
    """Tests for SourceDir.find()."""

    def test_find_lists_without_writing(self, tree: Path):
        found = SourceDir(PROJECT, tree, recursive=True).find()

        assert found.list() == [str(tree / "main.go"), str(tree / "sub" / "inner.go")]
        assert (tree / "main.go").read_text() == UNSORTED

    def test_find_on_canonical_tree(self, tmp_path: Path):
        (tmp_path / "a.go").write_text(SORTED)
        assert not SourceDir(PROJECT, tmp_path).find()


# =============================================================================
# Exclusion Tests
# =============================================================================

class TestIsExcluded:
    """Tests for SourceDir.is_excluded()."""

    @pytest.mark.parametrize("excludes, path, expected", [
        ("test1", "test1", True),
        ("test1", "test2", False),
        ("test1.go", "test1.go", True),
        ("*.go", "main.go", True),
        ("*.go", "sub/main.go", False),
        ("sub/*.go", "sub/main.go", True),
        ("proto/*.pb.go", "proto/api.pb.go", True),
        ("proto/*.pb.go", "proto/api.go", False),
        ("a,b", "b", True),
        ("", "main.go", False),
    ])
    def test_patterns(self, tmp_path: Path, excludes: str, path: str, expected: bool):
        source_dir = SourceDir(PROJECT, tmp_path, excludes=excludes)
        assert source_dir.is_excluded(path) is expected
        assert source_dir.is_excluded(tmp_path / path) is expected

    def test_absolute_pattern(self, tmp_path: Path):
        source_dir = SourceDir(PROJECT, tmp_path, excludes=str(tmp_path / "gen"))
        assert source_dir.is_excluded(tmp_path / "gen") is True

    @pytest.mark.parametrize("name", ["vendor", "testdata", ".git", "_build"])
    def test_default_exclusions(self, tmp_path: Path, name: str):
        assert SourceDir(PROJECT, tmp_path).is_excluded(name) is True

    def test_root_is_never_excluded_by_name(self, tmp_path: Path):
        root = tmp_path / "_work"
        root.mkdir()
        assert SourceDir(PROJECT, root).is_excluded(root) is False


# =============================================================================
# Cache Tests
# =============================================================================

class TestCache:
    """Tests for the skip cache during directory walks."""

    def test_fixed_file_is_skipped_next_time(self, tree: Path, cache_dir: Path):
        source_dir = SourceDir(PROJECT, tree).with_cache(cache_dir)
        source_dir.fix()

        path = tree / "main.go"
        assert source_dir.should_skip_by_cache(path) is True

        path.write_bytes(path.read_bytes()[:-1])
        assert source_dir.should_skip_by_cache(path) is False

    def test_without_cache_nothing_is_skipped(self, tree: Path):
        assert SourceDir(PROJECT, tree).should_skip_by_cache(tree / "main.go") is False

    def test_hash_mode(self, tree: Path, cache_dir: Path):
        source_dir = SourceDir(PROJECT, tree).with_cache(cache_dir).without_metadata_cache()
        source_dir.fix()
        assert source_dir.use_metadata_cache is False
        assert source_dir.should_skip_by_cache(tree / "sorted.go") is True

    def test_metadata_cache_can_be_re_enabled(self, tree: Path, cache_dir: Path):
        source_dir = (
            SourceDir(PROJECT, tree).with_cache(cache_dir).without_metadata_cache().with_metadata_cache()
        )
        source_dir.fix()

        assert source_dir.use_metadata_cache is True
        entry = cache.read_cache_entry(cache_dir, tree / "main.go")
        assert entry is not None and entry.has_metadata

    def test_find_records_only_unchanged_files(self, tree: Path, cache_dir: Path):
        source_dir = SourceDir(PROJECT, tree).with_cache(cache_dir)
        source_dir.find()

        assert source_dir.should_skip_by_cache(tree / "sorted.go") is True
        assert source_dir.should_skip_by_cache(tree / "main.go") is False

    def test_skipped_file_is_not_reprocessed(self, tree: Path, cache_dir: Path):
        source_dir = SourceDir(PROJECT, tree).with_cache(cache_dir)
        source_dir.fix()
        assert not source_dir.fix()


# =============================================================================
# Error Handling Tests
# =============================================================================

class TestErrors:
    """Errors are retained while siblings keep being processed."""

    @pytest.mark.parametrize("threshold", [1, 8])
    def test_first_error_is_raised_after_all_files(self, tmp_path: Path, threshold: int):
        (tmp_path / "a_broken.go").write_text(BROKEN)
        (tmp_path / "b_good.go").write_text(UNSORTED)
        (tmp_path / "c_good.go").write_text(UNSORTED)

        source_dir = SourceDir(PROJECT, tmp_path).with_sequential_threshold(threshold)
        with pytest.raises(ReviserError) as exc_info:
            source_dir.fix()

        assert "a_broken.go" in str(exc_info.value)
        assert (tmp_path / "b_good.go").read_text() == SORTED
        assert (tmp_path / "c_good.go").read_text() == SORTED


# =============================================================================
# Concurrency Tests
# =============================================================================

class RecordingPool:
    """Runs submitted tasks synchronously and counts them."""

    def __init__(self) -> None:
        self.submitted = 0

    def submit(self, task) -> Future:
        self.submitted += 1
        future: Future = Future()
        task()
        future.set_result(None)
        return future


class TestConcurrency:
    """Tests for inline processing and pool hand-off."""

    @pytest.fixture
    def threads(self, monkeypatch: pytest.MonkeyPatch) -> dict[str, threading.Thread]:
        seen: dict[str, threading.Thread] = {}
        lock = threading.Lock()

        class FakeSource:
            def __init__(self, project_name, path, deps=None):
                self.path = path

            def fix(self, options=None):
                with lock:
                    seen[os.path.basename(self.path)] = threading.current_thread()
                return FixResult(content=b"", original=b"", changed=False)

        monkeypatch.setattr(directory, "SourceFile", FakeSource)
        return seen

    @pytest.fixture
    def five_files(self, tmp_path: Path) -> Path:
        for name in "abcde":
            (tmp_path / f"{name}.go").write_text("package p\n")
        return tmp_path

    def test_below_threshold_runs_inline(self, five_files: Path, threads):
        SourceDir(PROJECT, five_files).with_sequential_threshold(8).fix()
        assert all(thread is threading.main_thread() for thread in threads.values())

    def test_above_threshold_uses_pool(self, five_files: Path, threads):
        SourceDir(PROJECT, five_files).with_sequential_threshold(2).fix()

        assert threads["a.go"] is threading.main_thread()
        assert threads["b.go"] is threading.main_thread()
        assert all(threads[name] is not threading.main_thread() for name in ("c.go", "d.go", "e.go"))

    def test_injected_pool_receives_every_task(self, five_files: Path, threads):
        pool = RecordingPool()
        SourceDir(PROJECT, five_files).with_worker_pool(pool).fix()

        assert pool.submitted == 5
        assert len(threads) == 5


def test_is_dir_resolves_current_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    assert is_dir("./...") == (os.getcwd(), True)
    assert is_dir(tmp_path / "missing") == (str(tmp_path / "missing"), False)
