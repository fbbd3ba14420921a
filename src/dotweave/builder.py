"""Composable construction of DOT graphs.

A :class:`Dot` run pairs a result value with the ordered tuple of statements
it contributes. Runs are immutable; combining two runs concatenates their
statements, so nested construction code composes the same way regardless of
how it is grouped::

    g = digraph(
        sequence(
            node_attrs({"shape": "box"}),
            node("A", {"color": "red"}),
            node("B"),
            arrow("A", "B"),
            cluster("C0", node("X")),
        ),
        identifier="G",
    )
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, Iterable, Mapping, Optional, Tuple, TypeVar, Union

from .model import (
    Attribute,
    AttributeKind,
    Attributes,
    DotEdge,
    DotGraph,
    DotNode,
    GlobalAttributes,
    Identifier,
    Statement,
    Subgroup,
)

T = TypeVar("T")
U = TypeVar("U")

AttributeInput = Union[None, Mapping[str, Any], Iterable[Union[Attribute, Tuple[str, Any]]]]


@dataclass(frozen=True)
class Dot(Generic[T]):
    value: T
    statements: Tuple[Statement, ...] = ()

    def then(self, other: "Dot[U]") -> "Dot[U]":
        """Sequence ``other`` after this run, keeping ``other``'s value."""
        return Dot(other.value, self.statements + other.statements)

    def __rshift__(self, other: "Dot[U]") -> "Dot[U]":
        return self.then(other)

    def bind(self, fn: Callable[[T], "Dot[U]"]) -> "Dot[U]":
        return self.then(fn(self.value))

    def map(self, fn: Callable[[T], U]) -> "Dot[U]":
        return Dot(fn(self.value), self.statements)


EMPTY: Dot[None] = Dot(None, ())


def pure(value: T) -> Dot[T]:
    return Dot(value, ())


def tell(statement: Statement) -> Dot[None]:
    return Dot(None, (statement,))


def sequence(*runs: Dot[Any]) -> Dot[Any]:
    """Compose ``runs`` left to right; an empty call yields :data:`EMPTY`."""
    result: Dot[Any] = EMPTY
    for run in runs:
        result = result.then(run)
    return result


def _attribute_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_attributes(attrs: AttributeInput) -> Attributes:
    """Normalise the accepted attribute spellings into a tuple, keeping order."""
    if attrs is None:
        return ()
    if isinstance(attrs, Mapping):
        items: Iterable[Any] = attrs.items()
    else:
        items = attrs
    out = []
    for item in items:
        if isinstance(item, Attribute):
            out.append(item)
        else:
            name, value = item
            out.append(Attribute(str(name), _attribute_text(value)))
    return tuple(out)


# Global attributes


def graph_attrs(attrs: AttributeInput) -> Dot[None]:
    """Add graph/cluster wide attributes."""
    return tell(GlobalAttributes(AttributeKind.GRAPH, to_attributes(attrs)))


def node_attrs(attrs: AttributeInput) -> Dot[None]:
    """Add default attributes for nodes declared after this statement."""
    return tell(GlobalAttributes(AttributeKind.NODE, to_attributes(attrs)))


def edge_attrs(attrs: AttributeInput) -> Dot[None]:
    """Add default attributes for edges declared after this statement."""
    return tell(GlobalAttributes(AttributeKind.EDGE, to_attributes(attrs)))


# Clusters


def assemble_cluster(identifier: Identifier, run: Dot[Any]) -> Subgroup:
    # "cluster_-1" is not a numeral, so it reads back as text.
    if isinstance(identifier, int) and not isinstance(identifier, bool) and identifier < 0:
        identifier = str(identifier)
    return Subgroup(identifier, run.statements)


def cluster(identifier: Identifier, run: Dot[Any]) -> Dot[None]:
    """Wrap the statements of ``run`` in one named cluster.

    The value of ``run`` is discarded. Cluster identifiers are not required to
    be unique.
    """
    return tell(assemble_cluster(identifier, run))


# Nodes and edges


def node(label: Hashable, attrs: AttributeInput = None) -> Dot[None]:
    return tell(DotNode(label, to_attributes(attrs)))


def edge(from_label: Hashable, to_label: Hashable, attrs: AttributeInput = None) -> Dot[None]:
    return tell(DotEdge(from_label, to_label, to_attributes(attrs)))


def arrow(from_label: Hashable, to_label: Hashable) -> Dot[None]:
    """An attribute-less edge; reads as directed."""
    return edge(from_label, to_label)


def link(from_label: Hashable, to_label: Hashable) -> Dot[None]:
    """Alias of :func:`arrow` that reads as undirected.

    Whether an edge is directed depends only on the graph it ends up in.
    """
    return arrow(from_label, to_label)


# Graphs


def assemble(directed: bool, identifier: Optional[Identifier], run: Dot[Any]) -> DotGraph:
    return DotGraph(
        strict=False,
        directed=directed,
        identifier=identifier,
        statements=tuple(run.statements),
    )


def digraph(run: Dot[Any], identifier: Optional[Identifier] = None) -> DotGraph:
    return assemble(True, identifier, run)


def graph(run: Dot[Any], identifier: Optional[Identifier] = None) -> DotGraph:
    return assemble(False, identifier, run)
