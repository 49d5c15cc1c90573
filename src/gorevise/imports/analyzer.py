"""Import analysis of Go sources using tree-sitter.

Provides functionality to:
- Parse a Go source unit (refusing partial trees)
- Extract the top-level import block with its comments
- Detect which imports are referenced in the body
- Read the build constraint and the generated-file marker
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Iterator, Mapping, Union

import tree_sitter_go as ts_go
from tree_sitter import Language, Node, Parser, Tree

from gorevise.core.errors import ParseError

GO_LANGUAGE = Language(ts_go.language())

BUILD_TAG_PREFIXES = ("//go:build", "// +build", "//+build")
GENERATED_PREFIX = "// Code generated"
CGO_PATH = "C"

_VERSION_SUFFIX = re.compile(r"^v[0-9]+$")
_NOT_IDENTIFIER = re.compile(r"[^0-9A-Za-z_]")


def parse_source(content: bytes, path: str = "") -> Tree:
    """Parse Go source bytes.

    Parameters
    ----------
    content : bytes
        Raw source.
    path : str
        Path used in error messages.

    Raises
    ------
    ParseError
        If the tree contains any error or missing node.
    """
    tree = Parser(GO_LANGUAGE).parse(content)
    root = tree.root_node
    if root.has_error:
        bad = _first_error(root)
        row, column = bad.start_point[0], bad.start_point[1]
        detail = f"missing {bad.type}" if bad.is_missing else "syntax error"
        raise ParseError(path or "<source>", row + 1, column + 1, detail)
    return tree


def _first_error(root: Node) -> Node:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        stack.extend(reversed([child for child in node.children if child.has_error or child.is_missing]))
    return root


@dataclass
class ImportSpec:
    """One import of an import block.

    Attributes
    ----------
    path : str
        Unquoted import path, e.g. ``github.com/go-pg/pg/v9``.
    alias : str | None
        Explicit name, including ``_`` for blank and ``.`` for dot imports.
    comment : str | None
        Comment on the same line, after the path.
    lead : str | None
        Block comment on the same line, before the import.
    doc : list[str]
        Comment lines directly above the import.
    """

    path: str
    alias: str | None = None
    comment: str | None = None
    doc: list[str] = field(default_factory=list)
    lead: str | None = None

    @property
    def is_blank(self) -> bool:
        return self.alias == "_"

    @property
    def is_dot(self) -> bool:
        return self.alias == "."

    @property
    def is_named(self) -> bool:
        """True for an explicit alias that is neither blank nor dot."""
        return self.alias is not None and not self.is_blank and not self.is_dot

    def render(self) -> str:
        line = f'"{self.path}"'
        if self.alias:
            line = f"{self.alias} {line}"
        if self.lead:
            line = f"{self.lead} {line}"
        if self.comment:
            line = f"{line} {self.comment}"
        return line


@dataclass
class ImportBlock:
    """The top-level import declarations of a unit.

    Attributes
    ----------
    specs : list[ImportSpec]
        Imports in source order.
    footer : list[str]
        Comments after the last import that belong to no import.
    start, end : int
        Byte range covered by the declarations.
    single_line : bool
        True when the block is one unparenthesized ``import "x"``.
    package_end : int | None
        End byte of the package clause when it directly precedes the block.
    next_start : int | None
        Start byte of the first declaration after the block, if any.
    """

    specs: list[ImportSpec]
    footer: list[str] = field(default_factory=list)
    start: int = 0
    end: int = 0
    single_line: bool = False
    package_end: int | None = None
    next_start: int | None = None


def assumed_package_name(path: str) -> str:
    """Guess the package name of an import path.

    The last segment is used, skipping a trailing major-version segment;
    a ``go-`` prefix and anything from the first non-identifier character
    on are dropped (``gopkg.in/yaml.v2`` -> ``yaml``).
    """
    segments = path.split("/")
    base = segments[-1]
    if _VERSION_SUFFIX.match(base) and len(segments) > 1:
        base = segments[-2]
    if base.startswith("go-"):
        base = base[len("go-"):]
    match = _NOT_IDENTIFIER.search(base)
    if match:
        base = base[: match.start()]
    return base


def version_suffix_alias(path: str) -> str | None:
    """Alias for a path ending in a major version, e.g. ``pg`` for ``.../pg/v9``."""
    segments = path.split("/")
    if len(segments) < 2 or not _VERSION_SUFFIX.match(segments[-1]):
        return None
    previous = segments[-2]
    if previous.isidentifier():
        return previous
    return assumed_package_name(path) or None


def _text(node: Node) -> str:
    return node.text.decode("utf-8")


def _is_cgo(decl: Node) -> bool:
    return any(spec.path == CGO_PATH for spec in _specs_of(decl))


def _specs_of(decl: Node) -> Iterator[ImportSpec]:
    for event in _events([decl]):
        if event.type == "import_spec":
            yield _to_spec(event, "")


def _events(nodes: list[Node]) -> Iterator[Node]:
    """Flatten declarations into a source-ordered stream of specs and comments."""
    for node in nodes:
        if node.type == "comment":
            yield node
        elif node.type == "import_declaration":
            for child in node.children:
                if child.type in ("import_spec", "comment"):
                    yield child
                elif child.type == "import_spec_list":
                    for sub in child.children:
                        if sub.type in ("import_spec", "comment"):
                            yield sub


def _to_spec(node: Node, path: str) -> ImportSpec:
    name = node.child_by_field_name("name")
    literal = node.child_by_field_name("path")
    import_path = _text(literal)[1:-1]
    if not import_path:
        row, column = literal.start_point[0], literal.start_point[1]
        raise ParseError(path or "<source>", row + 1, column + 1, "invalid import path")
    return ImportSpec(path=import_path, alias=_text(name) if name is not None else None)


def extract_imports(tree: Tree, path: str = "") -> ImportBlock | None:
    """Collect the top-level import block of a parsed unit.

    Declarations importing ``"C"`` carry a cgo preamble and are left where
    they are; only the declarations after the last of them are returned.
    Returns None when there is nothing to organize.
    """
    root = tree.root_node
    children = root.children
    indexes = [i for i, child in enumerate(children) if child.type == "import_declaration"]
    cgo = [i for i in indexes if _is_cgo(children[i])]
    if cgo:
        indexes = [i for i in indexes if i > cgo[-1]]
    if not indexes:
        return None

    first, last = indexes[0], indexes[-1]
    for child in children[first:last + 1]:
        if child.is_named and child.type not in ("import_declaration", "comment"):
            row, column = child.start_point[0], child.start_point[1]
            raise ParseError(path or "<source>", row + 1, column + 1, "imports must appear before other declarations")

    region = list(children[first:last + 1])
    following = [child for child in children[last + 1:] if child.is_named]
    if following and following[0].type == "comment" and following[0].start_point[0] == children[last].end_point[0]:
        region.append(following.pop(0))

    specs: list[ImportSpec] = []
    pending: list[Node] = []
    last_row = -1
    for event in _events(region):
        if event.type == "comment":
            if specs and event.start_point[0] == last_row and specs[-1].comment is None:
                specs[-1].comment = _text(event)
            else:
                pending.append(event)
            continue
        spec = _to_spec(event, path)
        if pending and _text(pending[-1]).startswith("/*") and pending[-1].end_point[0] == event.start_point[0]:
            spec.lead = _text(pending.pop())
        spec.doc = [_text(comment) for comment in pending]
        pending = []
        specs.append(spec)
        last_row = event.end_point[0]

    if not specs:
        return None

    previous = [child for child in children[:first] if child.is_named]
    package_end = None
    if previous and previous[-1].type == "package_clause":
        package_end = previous[-1].end_byte

    return ImportBlock(
        specs=specs,
        footer=[_text(comment) for comment in pending],
        start=children[first].start_byte,
        end=region[-1].end_byte,
        single_line=(
            first == last
            and not any(child.type == "import_spec_list" for child in children[first].children)
        ),
        package_end=package_end,
        next_start=following[0].start_byte if following else None,
    )


def parse_build_tag(tree: Tree) -> str:
    """Return the build constraint of a unit, or an empty string."""
    for child in tree.root_node.children:
        if child.type == "package_clause":
            break
        if child.type != "comment":
            continue
        text = _text(child)
        for prefix in BUILD_TAG_PREFIXES:
            if text.startswith(prefix):
                return text[len(prefix):].strip()
    return ""


def is_generated(tree: Tree) -> bool:
    """True when a comment before the package clause marks generated code."""
    for child in tree.root_node.children:
        if child.type == "package_clause":
            return False
        if child.type == "comment" and _text(child).startswith(GENERATED_PREFIX):
            return True
    return False


# =============================================================================
# Usage detection
# =============================================================================

_PUSH = "push"
_POP = "pop"


@dataclass(frozen=True)
class _Declare:
    names: frozenset[str]


_Work = Union[Node, str, _Declare]

_SCOPE_NODES = frozenset({
    "block",
    "if_statement",
    "for_statement",
    "expression_switch_statement",
    "select_statement",
    "expression_case",
    "type_case",
    "default_case",
    "communication_case",
})


def _identifiers(node: Node | None) -> frozenset[str]:
    if node is None:
        return frozenset()
    if node.type == "identifier":
        return frozenset({_text(node)})
    return frozenset(_text(child) for child in node.named_children if child.type == "identifier")


def _field_names(node: Node) -> frozenset[str]:
    return frozenset(_text(name) for name in node.children_by_field_name("name"))


def _parameter_names(node: Node) -> frozenset[str]:
    names: set[str] = set()
    for child in node.named_children:
        if child.type in (
            "parameter_declaration",
            "variadic_parameter_declaration",
            "type_parameter_declaration",
        ):
            names |= _field_names(child)
    return frozenset(names)


def _value_specs(decl: Node) -> Iterator[Node]:
    for child in decl.named_children:
        if child.type.endswith("_spec_list"):
            yield from (spec for spec in child.named_children if spec.type != "comment")
        elif child.type.endswith("_spec") or child.type == "type_alias":
            yield child


def _file_scope(root: Node) -> frozenset[str]:
    names: set[str] = set()
    for child in root.named_children:
        if child.type == "function_declaration":
            name = child.child_by_field_name("name")
            if name is not None:
                names.add(_text(name))
        elif child.type in ("var_declaration", "const_declaration", "type_declaration"):
            for spec in _value_specs(child):
                names |= _field_names(spec)
    return frozenset(names)


def _signature_names(node: Node, fields: tuple[str, ...]) -> frozenset[str]:
    names: set[str] = set()
    for name in fields:
        child = node.child_by_field_name(name)
        if child is not None and child.type in ("parameter_list", "type_parameter_list"):
            names |= _parameter_names(child)
    return frozenset(names)


def _expand_function(node: Node) -> list[_Work]:
    # parameter names are only in scope in the body; their types are not
    body = node.child_by_field_name("body")
    signature = [child for child in node.children if body is None or child.start_byte != body.start_byte]
    work: list[_Work] = [_PUSH, _Declare(_signature_names(node, ("type_parameters",))), *signature]
    if body is not None:
        params = _signature_names(node, ("receiver", "parameters", "result"))
        work += [_PUSH, _Declare(params), body, _POP]
    return [*work, _POP]


def _expand_scope(node: Node) -> list[_Work]:
    return [_PUSH, *node.children, _POP]


def _expand_short_var(node: Node) -> list[_Work]:
    right = node.child_by_field_name("right")
    work: list[_Work] = [right] if right is not None else []
    return [*work, _Declare(_identifiers(node.child_by_field_name("left")))]


def _expand_value_spec(node: Node) -> list[_Work]:
    work: list[_Work] = [
        child for child in (node.child_by_field_name("type"), node.child_by_field_name("value"))
        if child is not None
    ]
    return [*work, _Declare(_field_names(node))]


def _expand_binding(node: Node) -> list[_Work]:
    # range clauses and select receives only declare with ":="
    if not any(child.type == ":=" for child in node.children):
        return list(node.children)
    right = node.child_by_field_name("right")
    work: list[_Work] = [right] if right is not None else []
    return [*work, _Declare(_identifiers(node.child_by_field_name("left")))]


def _expand_type_switch(node: Node) -> list[_Work]:
    alias = node.child_by_field_name("alias")
    work: list[_Work] = [_PUSH]
    for child in node.children:
        if alias is not None and child.start_byte == alias.start_byte and child.type == alias.type:
            work.append(_Declare(_identifiers(alias)))
        else:
            work.append(child)
    work.append(_POP)
    return work


_EXPANDERS: dict[str, Callable[[Node], list[_Work]]] = {
    "function_declaration": _expand_function,
    "method_declaration": _expand_function,
    "func_literal": _expand_function,
    "short_var_declaration": _expand_short_var,
    "var_spec": _expand_value_spec,
    "const_spec": _expand_value_spec,
    "range_clause": _expand_binding,
    "receive_statement": _expand_binding,
    "type_switch_statement": _expand_type_switch,
    **{kind: _expand_scope for kind in _SCOPE_NODES},
}

_QUALIFIER_FIELD = {
    "selector_expression": "operand",
    "qualified_type": "package",
}


def used_imports(
    tree: Tree,
    specs: list[ImportSpec],
    package_imports: Mapping[str, str] | None = None,
) -> dict[str, bool]:
    """Report which imports are referenced by the unit.

    Every ``x.Sel`` selector and ``x.Type`` qualified type whose ``x`` is not
    bound by an enclosing scope marks the import known locally as ``x``
    used. Blank and dot imports are always used.

    Parameters
    ----------
    tree : Tree
        Parsed unit.
    specs : list[ImportSpec]
        Imports of the unit.
    package_imports : Mapping[str, str] | None
        Declared package names by import path; paths missing from it use
        the assumed package name.

    Returns
    -------
    dict[str, bool]
        Import path to whether it is used.
    """
    table = package_imports or {}
    used: dict[str, bool] = {}
    by_name: dict[str, str] = {}
    for spec in specs:
        used.setdefault(spec.path, False)
        if spec.is_blank or spec.is_dot:
            used[spec.path] = True
            continue
        name = spec.alias or table.get(spec.path) or assumed_package_name(spec.path)
        by_name[name] = spec.path

    if not by_name:
        return used

    root = tree.root_node
    scopes: list[set[str]] = [set(_file_scope(root))]
    stack: list[_Work] = [root]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            if item == _PUSH:
                scopes.append(set())
            else:
                scopes.pop()
            continue
        if isinstance(item, _Declare):
            scopes[-1].update(item.names)
            continue

        kind = item.type
        if kind in ("import_declaration", "comment"):
            continue

        qualifier = _QUALIFIER_FIELD.get(kind)
        if qualifier is not None:
            operand = item.child_by_field_name(qualifier)
            if operand is not None and operand.type in ("identifier", "package_identifier"):
                name = _text(operand)
                path = by_name.get(name)
                if path is not None and not any(name in scope for scope in scopes):
                    used[path] = True

        expand = _EXPANDERS.get(kind)
        work = expand(item) if expand is not None else item.children
        stack.extend(reversed(work))

    return used


def uses_import(tree: Tree, package_imports: Mapping[str, str] | None, path: str) -> bool:
    """Single-path form of :func:`used_imports`."""
    path = path.strip('"')
    block = extract_imports(tree)
    specs = block.specs if block is not None else []
    return used_imports(tree, specs, package_imports).get(path, False)
