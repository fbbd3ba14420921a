"""Run external Graphviz tools on DOT graphs."""
from __future__ import annotations

import io
import logging
import shlex
import shutil
import subprocess
import threading
import time
from pathlib import Path
from typing import IO, Any, Callable, Dict, List, Optional, Sequence, TypeVar

from PIL import Image

from .config import load_settings
from .errors import (
    ExternalToolError,
    ExternalToolTimeoutError,
    ExternalToolUnavailableError,
    OutputConsumerError,
)
from .files import PathLike, decode_utf8, encode_dot
from .model import DotGraph
from .printing import print_compact_dot

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CHUNK = 64 * 1024

# Wrapper default: take the timeout from DOTWEAVE_TIMEOUT.
FROM_SETTINGS: Any = object()

SUFFIX_FORMATS = {
    ".png": "png",
    ".svg": "svg",
    ".pdf": "pdf",
    ".jpg": "jpg",
    ".jpeg": "jpg",
    ".gif": "gif",
    ".ps": "ps",
    ".eps": "eps",
    ".json": "json",
    ".dot": "dot",
    ".gv": "dot",
    ".plain": "plain",
}


def _discard(stream: IO[bytes]) -> None:
    if stream.closed:
        return
    while stream.read(_CHUNK):
        pass


def _drain_errors(stream: IO[bytes], slot: Dict[str, Any]) -> None:
    chunks: List[bytes] = []
    while True:
        chunk = stream.read(_CHUNK)
        if not chunk:
            break
        chunks.append(chunk)
    slot["stderr"] = b"".join(chunks)


def _consume_output(stream: IO[bytes], consumer: Callable[[IO[bytes]], T], slot: Dict[str, Any]) -> None:
    try:
        slot["result"] = consumer(stream)
    except BaseException as exc:
        slot["error"] = exc
    finally:
        # A half-read pipe blocks the tool just like an unread one.
        _discard(stream)


def _feed_input(stream: IO[bytes], payload: bytes, command: str) -> None:
    try:
        stream.write(payload)
    except OSError as exc:
        logger.debug("%s stopped reading its input early: %s", command, exc)
    finally:
        # The tool reads until EOF, so stdin must be closed on every path.
        try:
            stream.close()
        except OSError:
            pass


class _Session:
    """One external process and the three worker threads attached to it."""

    def __init__(self, proc: subprocess.Popen, command: str, args: List[str]) -> None:
        self.proc = proc
        self.command = command
        self.args = args
        self.slot: Dict[str, Any] = {}
        self.threads: List[threading.Thread] = []

    def _start(self, target: Callable[..., None], *args: Any) -> None:
        thread = threading.Thread(target=target, args=args, daemon=True)
        thread.start()
        self.threads.append(thread)

    def run(self, payload: bytes, consumer: Callable[[IO[bytes]], T], timeout: Optional[float]) -> T:
        deadline = None if timeout is None else time.monotonic() + timeout

        def remaining() -> Optional[float]:
            return None if deadline is None else max(0.0, deadline - time.monotonic())

        # Both readers run before any input is written.
        self._start(_drain_errors, self.proc.stderr, self.slot)
        self._start(_consume_output, self.proc.stdout, consumer, self.slot)
        self._start(_feed_input, self.proc.stdin, payload, self.command)

        try:
            for thread in self.threads:
                thread.join(remaining())
                if thread.is_alive():
                    raise subprocess.TimeoutExpired(self.proc.args, timeout)
            returncode = self.proc.wait(remaining())
        except subprocess.TimeoutExpired as exc:
            logger.debug("%s timed out after %ss; killing it", self.command, timeout)
            self.proc.kill()
            self.proc.wait()
            for thread in self.threads:
                thread.join()
            raise ExternalToolTimeoutError(self.command, self.args, timeout or 0.0, self._stderr_text()) from exc

        logger.debug("%s exited with status %s", self.command, returncode)
        if returncode != 0:
            raise ExternalToolError(self.command, self.args, returncode, self._stderr_text())
        if "error" in self.slot:
            raise OutputConsumerError(self.command, self.args, self.slot["error"]) from self.slot["error"]
        return self.slot["result"]

    def _stderr_text(self) -> str:
        return self.slot.get("stderr", b"").decode("utf-8", errors="replace")

    def close(self) -> None:
        if self.proc.poll() is None:
            self.proc.kill()
            self.proc.wait()
        for stream in (self.proc.stdin, self.proc.stdout, self.proc.stderr):
            if stream is None or stream.closed:
                continue
            try:
                stream.close()
            except OSError:
                pass


def run_command(
    command: str,
    args: Sequence[str],
    graph: DotGraph,
    output_consumer: Callable[[IO[bytes]], T],
    *,
    timeout: Optional[float] = None,
) -> T:
    """Pipe ``graph`` as compact DOT into ``command`` and consume its output.

    ``output_consumer`` receives the tool's binary stdout. Whatever it leaves
    unread is drained afterwards. Standard error is collected in full and
    attached to :class:`ExternalToolError` if the tool exits non-zero.

    ``timeout`` is in seconds; ``None`` waits for as long as the tool runs.
    """
    args = list(args)
    payload = encode_dot(print_compact_dot(graph))
    try:
        proc = subprocess.Popen(
            [command, *args],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as exc:
        raise ExternalToolUnavailableError(command, args, str(exc)) from exc

    logger.debug("started %s (pid %s)", shlex.join([command, *args]), proc.pid)
    session = _Session(proc, command, args)
    try:
        return session.run(payload, output_consumer, timeout)
    finally:
        session.close()


# Output consumers


def read_bytes(stream: IO[bytes]) -> bytes:
    return stream.read()


def read_image(stream: IO[bytes]) -> Image.Image:
    image = Image.open(io.BytesIO(stream.read()))
    image.load()
    return image


# Graphviz wrappers


def engine_available(engine: Optional[str] = None) -> bool:
    return shutil.which(engine or load_settings().engine) is not None


def graphviz_output(
    graph: DotGraph,
    output_format: str = "png",
    *,
    engine: Optional[str] = None,
    timeout: Optional[float] = FROM_SETTINGS,
    extra_args: Sequence[str] = (),
) -> bytes:
    """Run a layout engine (``dot`` by default) and return its raw output.

    ``timeout`` defaults to ``DOTWEAVE_TIMEOUT``; pass ``None`` to wait for as
    long as the engine runs.
    """
    settings = load_settings()
    return run_command(
        engine or settings.engine,
        [f"-T{output_format}", *extra_args],
        graph,
        read_bytes,
        timeout=settings.timeout if timeout is FROM_SETTINGS else timeout,
    )


def graphviz_text(
    graph: DotGraph,
    output_format: str = "dot",
    *,
    engine: Optional[str] = None,
    timeout: Optional[float] = FROM_SETTINGS,
) -> str:
    return decode_utf8(graphviz_output(graph, output_format, engine=engine, timeout=timeout))


def format_for_path(path: PathLike) -> str:
    suffix = Path(path).suffix.lower()
    if suffix not in SUFFIX_FORMATS:
        raise ValueError(f"cannot infer an output format from {str(path)!r}; pass output_format")
    return SUFFIX_FORMATS[suffix]


def render_to_file(
    graph: DotGraph,
    path: PathLike,
    output_format: Optional[str] = None,
    *,
    engine: Optional[str] = None,
    timeout: Optional[float] = FROM_SETTINGS,
) -> Path:
    target = Path(path)
    data = graphviz_output(graph, output_format or format_for_path(target), engine=engine, timeout=timeout)
    target.write_bytes(data)
    return target


def render_image(
    graph: DotGraph,
    *,
    engine: Optional[str] = None,
    timeout: Optional[float] = FROM_SETTINGS,
) -> Image.Image:
    settings = load_settings()
    return run_command(
        engine or settings.engine,
        ["-Tpng"],
        graph,
        read_image,
        timeout=settings.timeout if timeout is FROM_SETTINGS else timeout,
    )
