"""Render :class:`DotGraph` values as DOT text."""
from __future__ import annotations

import re
from typing import Hashable, List, Optional

from .model import Attributes, DotEdge, DotGraph, DotNode, GlobalAttributes, Identifier, Statement, Subgroup

INDENT = "    "
CLUSTER_PREFIX = "cluster_"
KEYWORDS = frozenset({"node", "edge", "graph", "digraph", "subgraph", "strict"})

_BARE_ID = re.compile(r"[A-Za-z_\u0080-\U0010ffff][A-Za-z0-9_\u0080-\U0010ffff]*\Z")
_NUMERAL = re.compile(r"-?(?:\.[0-9]+|[0-9]+(?:\.[0-9]*)?)\Z")


def is_bare_id(text: str) -> bool:
    return bool(_BARE_ID.match(text)) and text.lower() not in KEYWORDS


def is_numeral(text: str) -> bool:
    return bool(_NUMERAL.match(text))


def quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def format_text(text: str) -> str:
    """Attribute names and values always read back as text, so numerals may stay bare."""
    if is_bare_id(text) or is_numeral(text):
        return text
    return quote(text)


def format_id(value: Hashable) -> str:
    """Node labels and graph ids: ints stay bare, numeric-looking strings are quoted."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    text = str(value)
    if is_bare_id(text):
        return text
    return quote(text)


def format_cluster_id(identifier: Identifier) -> str:
    name = f"{CLUSTER_PREFIX}{identifier}"
    if isinstance(identifier, int) and not isinstance(identifier, bool) and identifier >= 0:
        return name
    if isinstance(identifier, str) and is_bare_id(name) and not identifier.isdigit():
        return name
    return quote(name)


class _Printer:
    def __init__(self, compact: bool) -> None:
        self.compact = compact
        self.lines: List[str] = []

    def attributes(self, attributes: Attributes, *, always: bool = False) -> str:
        if not attributes and not always:
            return ""
        sep = "," if self.compact else ", "
        body = sep.join(f"{format_text(a.name)}={format_text(a.value)}" for a in attributes)
        return f"[{body}]" if self.compact else f" [{body}]"

    def header(self, keyword: str, identifier: Optional[str]) -> str:
        head = keyword if identifier is None else f"{keyword} {identifier}"
        return f"{head}{{" if self.compact else f"{head} {{"

    def emit(self, depth: int, text: str) -> None:
        self.lines.append(text if self.compact else INDENT * depth + text)

    def statement(self, stmt: Statement, depth: int, directed: bool) -> None:
        if isinstance(stmt, GlobalAttributes):
            self.emit(depth, f"{stmt.kind.value}{self.attributes(stmt.attributes, always=True)};")
        elif isinstance(stmt, DotNode):
            self.emit(depth, f"{format_id(stmt.label)}{self.attributes(stmt.attributes)};")
        elif isinstance(stmt, DotEdge):
            op = "->" if directed else "--"
            if not self.compact:
                op = f" {op} "
            self.emit(
                depth,
                f"{format_id(stmt.from_label)}{op}{format_id(stmt.to_label)}{self.attributes(stmt.attributes)};",
            )
        elif isinstance(stmt, Subgroup):
            self.emit(depth, self.header("subgraph", format_cluster_id(stmt.identifier)))
            for inner in stmt.statements:
                self.statement(inner, depth + 1, directed)
            self.emit(depth, "}")
        else:
            raise TypeError(f"not a DOT statement: {stmt!r}")

    def graph(self, graph: DotGraph) -> str:
        keyword = "digraph" if graph.directed else "graph"
        if graph.strict:
            keyword = f"strict {keyword}"
        identifier = None if graph.identifier is None else format_id(graph.identifier)
        self.emit(0, self.header(keyword, identifier))
        for stmt in graph.statements:
            self.statement(stmt, 1, graph.directed)
        self.emit(0, "}")
        return ("" if self.compact else "\n").join(self.lines)


def print_dot(graph: DotGraph) -> str:
    """Human-readable DOT, one statement per line."""
    return _Printer(compact=False).graph(graph)


def print_compact_dot(graph: DotGraph) -> str:
    """DOT with all optional whitespace removed."""
    return _Printer(compact=True).graph(graph)
