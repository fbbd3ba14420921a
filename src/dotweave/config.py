"""Environment-driven defaults for running Graphviz."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigError

DEFAULT_ENGINE = "dot"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    engine: str = DEFAULT_ENGINE
    # None waits for the tool indefinitely.
    timeout: Optional[float] = DEFAULT_TIMEOUT
    debug: bool = False


def _parse_timeout(raw: str) -> Optional[float]:
    raw = raw.strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"DOTWEAVE_TIMEOUT must be a number of seconds, got {raw!r}") from exc
    if value < 0:
        raise ConfigError(f"DOTWEAVE_TIMEOUT must be >= 0, got {raw!r}")
    return value or None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    engine = env.get("DOTWEAVE_ENGINE", "").strip() or DEFAULT_ENGINE
    timeout = DEFAULT_TIMEOUT
    if "DOTWEAVE_TIMEOUT" in env:
        timeout = _parse_timeout(env["DOTWEAVE_TIMEOUT"])
    return Settings(engine=engine, timeout=timeout, debug=env.get("DOTWEAVE_DEBUG") == "1")
