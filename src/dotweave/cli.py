"""Command-line interface for dotweave format/render workflows."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .commands import FROM_SETTINGS, SUFFIX_FORMATS, graphviz_output
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
from .files import decode_utf8, encode_dot, get_strict
from .parsing import parse_dot
from .printing import print_compact_dot, print_dot
from .resources import load_cheatsheet

logger = logging.getLogger(__name__)

SUBCOMMANDS_HINT = "Use one of: format, render, cheatsheet."


@dataclass
class CliError(Exception):
    code: str
    message: str
    hint: Optional[str] = None
    exit_code: int = 1
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    retryable: bool = True


class UsageError(Exception):
    pass


class FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # pragma: no cover - argparse callback
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = FriendlyArgumentParser(
        prog="dotweave",
        description="Canonicalise DOT graphs and render them with Graphviz.",
    )
    parser.add_argument("--error-format", choices=["text", "json"], default="text")
    parser.add_argument("--debug", action="store_true")

    subparsers = parser.add_subparsers(dest="command")

    format_parser = subparsers.add_parser("format", help="Reprint DOT in canonical form")
    format_parser.add_argument("input", nargs="?", help="Input .dot/.gv file")
    format_parser.add_argument("--text", help="Raw DOT source")
    format_parser.add_argument("--compact", action="store_true", help="Strip optional whitespace")
    format_parser.add_argument("-o", "--output", help="Output path (default: stdout)")

    render_parser = subparsers.add_parser("render", help="Render DOT with a Graphviz engine")
    render_parser.add_argument("input", nargs="?", help="Input .dot/.gv file")
    render_parser.add_argument("--text", help="Raw DOT source")
    render_parser.add_argument("-T", "--format", dest="output_format", help="Graphviz output format")
    render_parser.add_argument("-K", "--engine", help="Graphviz engine binary (default: $DOTWEAVE_ENGINE or dot)")
    render_parser.add_argument("--timeout", type=float, help="Seconds before the engine is killed")
    render_parser.add_argument("--stdout", action="store_true", help="Write output bytes to stdout")
    render_parser.add_argument("-o", "--output", help="Output path")

    subparsers.add_parser("cheatsheet", help="Print the graph builder quick reference")

    return parser


def _read_input(path: Optional[str], text: Optional[str]) -> tuple[str, str, Optional[Path]]:
    if path and text is not None:
        raise CliError(
            "E_ARGS",
            "--text cannot be combined with file input",
            hint="Use either FILE or --text.",
            exit_code=2,
        )

    if text is not None:
        return text, "<text>", None

    if path:
        input_path = Path(path)
        if not input_path.exists():
            raise CliError(
                "E_IO_READ",
                f"input file not found: {input_path}",
                exit_code=2,
                file=str(input_path),
            )
        try:
            data = input_path.read_bytes()
        except OSError as exc:
            raise CliError(
                "E_IO_READ",
                f"failed to read input file: {input_path}",
                hint=str(exc),
                exit_code=2,
                file=str(input_path),
            )
        return decode_utf8(data), str(input_path), input_path

    if sys.stdin.isatty():
        raise CliError(
            "E_ARGS",
            "no input provided",
            hint="Use a subcommand with FILE, --text, or pipe stdin.",
            exit_code=2,
        )

    data = get_strict(sys.stdin.buffer)
    if not data.strip():
        raise CliError(
            "E_ARGS",
            "stdin was empty",
            hint="Pipe DOT content into stdin.",
            exit_code=2,
        )
    return data, "<stdin>", None


def _write_bytes(path: Path, content: bytes) -> None:
    try:
        path.write_bytes(content)
    except OSError as exc:
        raise CliError(
            "E_IO_WRITE",
            f"failed to write output file: {path}",
            hint=str(exc),
            exit_code=4,
            file=str(path),
        )


def _error_from_exception(exc: Exception, source_name: Optional[str] = None) -> CliError:
    if isinstance(exc, CliError):
        return exc
    if isinstance(exc, MalformedInputError):
        return CliError(
            exc.code,
            exc.message,
            hint="Check the DOT syntax near the reported position.",
            exit_code=2,
            file=source_name,
            line=exc.line,
            column=exc.column,
        )
    if isinstance(exc, NotValidTextEncodingError):
        return CliError(
            exc.code,
            exc.message,
            hint="DOT input must be UTF-8; re-encode the file and retry.",
            exit_code=2,
            file=source_name,
            retryable=False,
        )
    if isinstance(exc, ExternalToolUnavailableError):
        return CliError(
            exc.code,
            exc.message,
            hint="Install Graphviz or point DOTWEAVE_ENGINE / -K at an executable.",
            exit_code=3,
            retryable=False,
        )
    if isinstance(exc, (ExternalToolError, ExternalToolTimeoutError, OutputConsumerError)):
        return CliError(
            exc.code,
            exc.message,
            hint="Check the engine arguments and the error output in the message.",
            exit_code=4,
            retryable=False,
        )
    if isinstance(exc, ConfigError):
        return CliError(exc.code, exc.message, hint="Fix the DOTWEAVE_* environment variables.", exit_code=2)
    if isinstance(exc, (DotweaveError, ValueError)):
        return CliError("E_ARGS", str(exc), exit_code=2)
    return CliError(
        "E_INTERNAL",
        str(exc) or exc.__class__.__name__,
        hint="Re-run with --debug to see traceback.",
        exit_code=1,
        retryable=False,
    )


def _emit_error(err: CliError, *, error_format: str) -> None:
    if error_format == "json":
        payload = {
            "ok": False,
            "code": err.code,
            "message": err.message,
            "file": err.file,
            "line": err.line,
            "column": err.column,
            "hint": err.hint,
            "retryable": err.retryable,
        }
        sys.stderr.write(json.dumps(payload) + "\n")
        return

    sys.stderr.write(f"error[{err.code}]: {err.message}\n")
    if err.hint:
        sys.stderr.write(f"hint: {err.hint}\n")


def _handle_format(args: argparse.Namespace) -> int:
    source, source_name, _source_path = _read_input(args.input, args.text)
    try:
        graph = parse_dot(source)
    except MalformedInputError as exc:
        raise _error_from_exception(exc, source_name) from exc
    text = print_compact_dot(graph) if args.compact else print_dot(graph)

    if not args.output:
        sys.stdout.buffer.write(encode_dot(text))
        sys.stdout.buffer.flush()
        return 0

    output_path = Path(args.output)
    _write_bytes(output_path, encode_dot(text))
    print(f"Wrote {output_path}")
    return 0


def _handle_render(args: argparse.Namespace) -> int:
    if args.stdout and args.output:
        raise CliError(
            "E_ARGS",
            "--stdout and --output are mutually exclusive",
            hint="Choose either --stdout or --output.",
            exit_code=2,
        )
    if args.timeout is not None and args.timeout <= 0:
        raise CliError(
            "E_ARGS",
            "--timeout must be > 0",
            hint="Use a positive number of seconds, or unset DOTWEAVE_TIMEOUT to wait indefinitely.",
            exit_code=2,
        )

    source, source_name, source_path = _read_input(args.input, args.text)
    try:
        graph = parse_dot(source)
    except MalformedInputError as exc:
        raise _error_from_exception(exc, source_name) from exc

    output_format = args.output_format
    if output_format is None and args.output:
        output_format = SUFFIX_FORMATS.get(Path(args.output).suffix.lower())
    output_format = output_format or "png"

    data = graphviz_output(
        graph,
        output_format,
        engine=args.engine,
        timeout=FROM_SETTINGS if args.timeout is None else args.timeout,
    )

    if args.stdout or (source_path is None and not args.output):
        sys.stdout.buffer.write(data)
        return 0

    output_path = Path(args.output) if args.output else source_path.with_suffix(f".{output_format}")
    logger.debug("writing %d bytes of %s output to %s", len(data), output_format, output_path)
    _write_bytes(output_path, data)
    print(f"Wrote {output_path}")
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    parser = _build_parser()

    if not raw_argv:
        err = CliError(
            "E_ARGS",
            "missing subcommand",
            hint=SUBCOMMANDS_HINT,
            exit_code=2,
        )
        _emit_error(err, error_format="text")
        return err.exit_code

    debug_enabled = "--debug" in raw_argv or os.getenv("DOTWEAVE_DEBUG") == "1"
    if debug_enabled:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s", stream=sys.stderr)
    error_format = "text"
    if "--error-format" in raw_argv:
        idx = raw_argv.index("--error-format")
        if idx + 1 < len(raw_argv):
            error_format = raw_argv[idx + 1]

    try:
        args = parser.parse_args(raw_argv)
        error_format = args.error_format

        if args.command == "format":
            return _handle_format(args)
        if args.command == "render":
            return _handle_render(args)
        if args.command == "cheatsheet":
            print(load_cheatsheet())
            return 0

        raise CliError(
            "E_ARGS",
            "missing subcommand",
            hint=SUBCOMMANDS_HINT,
            exit_code=2,
        )
    except UsageError as exc:
        err = CliError(
            "E_ARGS",
            str(exc),
            hint=SUBCOMMANDS_HINT,
            exit_code=2,
        )
        _emit_error(err, error_format=error_format)
        return err.exit_code
    except Exception as exc:  # pragma: no cover - exercised in integration tests
        err = _error_from_exception(exc)
        _emit_error(err, error_format=error_format)
        if debug_enabled:
            traceback.print_exc(file=sys.stderr)
        return err.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
