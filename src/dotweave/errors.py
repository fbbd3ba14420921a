"""Typed errors raised by dotweave."""
from __future__ import annotations

import shlex
from typing import Optional, Sequence


class DotweaveError(Exception):
    """Base error with a stable code for CLI mapping."""

    code = "E_DOTWEAVE"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigError(DotweaveError):
    code = "E_CONFIG"


class MalformedInputError(DotweaveError):
    """Raised when text is not recognised as DOT."""

    code = "E_PARSE_DOT"

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None) -> None:
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)
        self.line = line
        self.column = column


class NotValidTextEncodingError(DotweaveError):
    """Raised when bytes are not valid UTF-8."""

    code = "E_NOT_UTF8"

    def __init__(self, message: str, offset: Optional[int] = None) -> None:
        super().__init__(message)
        self.offset = offset


def _describe_command(command: str, args: Sequence[str]) -> str:
    return shlex.join([command, *args])


class ExternalToolUnavailableError(DotweaveError):
    """Raised when the external command could not be started at all."""

    code = "E_TOOL_UNAVAILABLE"

    def __init__(self, command: str, args: Sequence[str], reason: str) -> None:
        super().__init__(
            f"unable to call `{_describe_command(command, args)}` because of: {reason}"
        )
        self.command = command
        self.args_list = list(args)
        self.reason = reason


class ExternalToolError(DotweaveError):
    """Raised when the external command exited with a failure status."""

    code = "E_TOOL_FAILED"

    def __init__(self, command: str, args: Sequence[str], returncode: int, stderr: str) -> None:
        super().__init__(
            f"`{_describe_command(command, args)}` exited with status {returncode}; "
            f"error messages from {command}:\n{stderr}"
        )
        self.command = command
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr


class ExternalToolTimeoutError(DotweaveError):
    """Raised when the external command did not finish within its timeout."""

    code = "E_TOOL_TIMEOUT"

    def __init__(self, command: str, args: Sequence[str], timeout: float, stderr: str = "") -> None:
        super().__init__(f"`{_describe_command(command, args)}` timed out after {timeout:g}s")
        self.command = command
        self.args_list = list(args)
        self.timeout = timeout
        self.stderr = stderr


class OutputConsumerError(DotweaveError):
    """Raised when the caller-supplied output consumer failed."""

    code = "E_OUTPUT_CONSUMER"

    def __init__(self, command: str, args: Sequence[str], cause: BaseException) -> None:
        super().__init__(
            f"error re-directing the output from `{_describe_command(command, args)}`: {cause}"
        )
        self.command = command
        self.args_list = list(args)
        self.cause = cause
