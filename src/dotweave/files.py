"""Reading and writing DOT text on files and binary handles.

DOT is exchanged as UTF-8. Bytes that do not decode raise
:class:`NotValidTextEncodingError` instead of being replaced.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import BinaryIO, Callable, Union

from .errors import NotValidTextEncodingError
from .model import DotGraph
from .parsing import parse_dot
from .printing import print_compact_dot, print_dot

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def decode_utf8(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise NotValidTextEncodingError(
            f"DOT input is not valid UTF-8 at byte {exc.start}: {exc.reason}",
            offset=exc.start,
        ) from exc


def encode_dot(text: str) -> bytes:
    return text.encode("utf-8") + b"\n"


def _to_handle(render: Callable[[DotGraph], str], handle: BinaryIO, graph: DotGraph) -> None:
    handle.write(encode_dot(render(graph)))


def put_dot(handle: BinaryIO, graph: DotGraph) -> None:
    _to_handle(print_dot, handle, graph)


def put_compact_dot(handle: BinaryIO, graph: DotGraph) -> None:
    _to_handle(print_compact_dot, handle, graph)


def get_strict(handle: BinaryIO) -> str:
    """Read ``handle`` to EOF and decode it; the handle is left open."""
    return decode_utf8(handle.read())


def get_dot(handle: BinaryIO) -> DotGraph:
    return parse_dot(get_strict(handle))


def write_dot_file(path: PathLike, graph: DotGraph) -> None:
    logger.debug("writing DOT to %s", path)
    with open(path, "wb") as fh:
        put_dot(fh, graph)


def read_dot_file(path: PathLike) -> DotGraph:
    logger.debug("reading DOT from %s", path)
    with open(path, "rb") as fh:
        return get_dot(fh)


def write_dot(graph: DotGraph) -> None:
    """Write readable DOT to standard output."""
    put_dot(sys.stdout.buffer, graph)
    sys.stdout.buffer.flush()


def read_dot() -> DotGraph:
    """Read one DOT graph from standard input."""
    return get_dot(sys.stdin.buffer)
