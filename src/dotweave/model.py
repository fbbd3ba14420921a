"""Graph values produced by the builder and consumed by the printer."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Hashable, Optional, Tuple, Union

Identifier = Union[str, int]


class AttributeKind(enum.Enum):
    """Which entities a global attribute statement applies to."""

    GRAPH = "graph"
    NODE = "node"
    EDGE = "edge"


@dataclass(frozen=True)
class Attribute:
    name: str
    value: str


Attributes = Tuple[Attribute, ...]


@dataclass(frozen=True)
class GlobalAttributes:
    kind: AttributeKind
    attributes: Attributes = ()


@dataclass(frozen=True)
class DotNode:
    label: Hashable
    attributes: Attributes = ()


@dataclass(frozen=True)
class DotEdge:
    """An edge between two node labels.

    Direction is a property of the owning graph, not of the edge.
    """

    from_label: Hashable
    to_label: Hashable
    attributes: Attributes = ()


@dataclass(frozen=True)
class Subgroup:
    """A named cluster; always emitted as ``subgraph cluster_<id>``."""

    identifier: Identifier
    statements: Tuple["Statement", ...] = ()


Statement = Union[GlobalAttributes, Subgroup, DotNode, DotEdge]


@dataclass(frozen=True)
class DotGraph:
    strict: bool
    directed: bool
    identifier: Optional[Identifier]
    statements: Tuple[Statement, ...] = ()
