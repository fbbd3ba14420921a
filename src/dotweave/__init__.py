"""Public API for dotweave."""
from .builder import (
    EMPTY,
    Dot,
    arrow,
    assemble,
    cluster,
    digraph,
    edge,
    edge_attrs,
    graph,
    graph_attrs,
    link,
    node,
    node_attrs,
    pure,
    sequence,
    tell,
)
from .commands import (
    engine_available,
    graphviz_output,
    graphviz_text,
    read_bytes,
    read_image,
    render_image,
    render_to_file,
    run_command,
)
from .errors import (
    ConfigError,
    DotweaveError,
    ExternalToolError,
    ExternalToolTimeoutError,
    ExternalToolUnavailableError,
    MalformedInputError,
    NotValidTextEncodingError,
    OutputConsumerError,
)
from .files import decode_utf8, get_dot, put_compact_dot, put_dot, read_dot, read_dot_file, write_dot, write_dot_file
from .model import Attribute, AttributeKind, DotEdge, DotGraph, DotNode, GlobalAttributes, Subgroup
from .parsing import parse_dot
from .printing import print_compact_dot, print_dot

__all__ = [
    "Attribute",
    "AttributeKind",
    "ConfigError",
    "Dot",
    "DotEdge",
    "DotGraph",
    "DotNode",
    "DotweaveError",
    "EMPTY",
    "ExternalToolError",
    "ExternalToolTimeoutError",
    "ExternalToolUnavailableError",
    "GlobalAttributes",
    "MalformedInputError",
    "NotValidTextEncodingError",
    "OutputConsumerError",
    "Subgroup",
    "arrow",
    "assemble",
    "cluster",
    "decode_utf8",
    "digraph",
    "edge",
    "edge_attrs",
    "engine_available",
    "get_dot",
    "graph",
    "graph_attrs",
    "graphviz_output",
    "graphviz_text",
    "link",
    "node",
    "node_attrs",
    "parse_dot",
    "print_compact_dot",
    "print_dot",
    "pure",
    "put_compact_dot",
    "put_dot",
    "read_bytes",
    "read_dot",
    "read_dot_file",
    "read_image",
    "render_image",
    "render_to_file",
    "run_command",
    "sequence",
    "tell",
    "write_dot",
    "write_dot_file",
]
