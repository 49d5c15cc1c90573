"""Command line interface.

Example
-------
    gorevise -project-name github.com/example/project -rm-unused ./...
    gorevise -imports-order std,general,company,project,blanked,dotted main.go
    cat main.go | gorevise -
"""
from __future__ import annotations

import argparse
import logging
import re
import sys

from gorevise import __version__
from gorevise.core.errors import ConfigurationError, ReviserError
from gorevise.core.options import DEFAULT_IMPORTS_ORDER, ReviserOptions
from gorevise.runner import OutputMode, RunConfig, Runner
from gorevise.source import STANDARD_INPUT

logger = logging.getLogger("gorevise")

EXIT_SUCCESS = 0
EXIT_ERROR = 1

_BOOL_FLAGS = {
    "list-diff",
    "set-exit-status",
    "recursive",
    "use-cache",
    "cache-fast-skip",
    "rm-unused",
    "set-alias",
    "format",
    "separate-named",
    "apply-to-generated-files",
}
_BOOL_ASSIGNMENT = re.compile(r"^--?([a-z-]+)=(true|false|1|0|t|f)$", re.IGNORECASE)


def _normalize_argv(argv: list[str]) -> list[str]:
    """Accept ``-flag=false`` style booleans."""
    normalized = []
    for arg in argv:
        match = _BOOL_ASSIGNMENT.match(arg)
        if match and match.group(1) in _BOOL_FLAGS:
            enabled = match.group(2).lower() in ("true", "1", "t")
            arg = f"--{match.group(1)}" if enabled else f"--no-{match.group(1)}"
        normalized.append(arg)
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gorevise",
        description="Sort and group the imports of Go source files.",
        allow_abbrev=False,
    )
    parser.add_argument("paths", nargs="*", help='files or directories; "./..." recurses, "-" reads stdin')

    def option(name: str, **kwargs) -> None:
        parser.add_argument(f"-{name}", f"--{name}", **kwargs)

    def flag(name: str, default: bool | None, help: str) -> None:
        parser.add_argument(
            f"-{name}", f"--{name}", action=argparse.BooleanOptionalAction, default=default, help=help
        )

    option("project-name", default="", help="module path of the project, read from go.mod when omitted")
    option("company-prefixes", default="", help="comma-separated company package prefixes")
    option("output", default=OutputMode.FILE.value, help='"file", "write" or "stdout"')
    option("excludes", default="", help="comma-separated exclude patterns, e.g. '.git/,proto/*.go'")
    option(
        "imports-order",
        default=DEFAULT_IMPORTS_ORDER,
        help="group order from std, general, company, project, blanked, dotted",
    )
    flag("list-diff", False, "list files whose imports differ from the canonical order")
    flag("set-exit-status", False, "exit with status 1 if a change is needed or made")
    flag("recursive", False, "descend into subdirectories of directory inputs")
    flag("use-cache", False, "skip files unchanged since the last run")
    flag("cache-fast-skip", None, "use file size and mtime for cache checks (requires -use-cache)")
    flag("rm-unused", False, "remove unused imports")
    flag("set-alias", False, "alias version-suffixed imports, e.g. pg for github.com/go-pg/pg/v9")
    flag("format", False, "normalize the blank lines around the import block")
    flag("separate-named", False, "separate named imports from the rest of their group")
    flag("apply-to-generated-files", False, "also process files starting with '// Code generated'")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    parser.add_argument("-version", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(_normalize_argv(sys.argv[1:] if argv is None else argv))

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cache_fast_skip and not args.use_cache:
        parser.print_usage(sys.stderr)
        logger.error("cache-fast-skip requires --use-cache")
        return EXIT_ERROR

    paths = list(args.paths)
    if not paths:
        parser.print_usage(sys.stderr)
        logger.error("no file(s) or directory(ies) specified on input")
        return EXIT_ERROR
    if paths == ["-"]:
        if sys.stdin.isatty():
            logger.error("no data on stdin")
            return EXIT_ERROR
        paths = [STANDARD_INPUT]

    try:
        options = ReviserOptions.from_strings(
            args.imports_order,
            args.company_prefixes,
            remove_unused=args.rm_unused,
            set_alias=args.set_alias,
            format=args.format,
            separate_named=args.separate_named,
            apply_to_generated=args.apply_to_generated_files,
        )
        config = RunConfig(
            project_name=args.project_name,
            output=OutputMode.parse(args.output),
            excludes=args.excludes,
            list_diff=args.list_diff,
            recursive=args.recursive,
            use_cache=args.use_cache,
            use_metadata_cache=args.cache_fast_skip is not False,
        )
    except ConfigurationError as exc:
        parser.print_usage(sys.stderr)
        logger.error("%s", exc)
        return EXIT_ERROR
    except ReviserError as exc:
        logger.error("%s", exc)
        return EXIT_ERROR

    logger.info("Paths: %s", paths)
    try:
        has_change = Runner(config, options).run(paths)
    except (ReviserError, OSError) as exc:
        logger.error("%s", exc)
        return EXIT_ERROR

    if has_change and args.set_exit_status:
        logger.info("detect changed files")
        return EXIT_ERROR
    return EXIT_SUCCESS
