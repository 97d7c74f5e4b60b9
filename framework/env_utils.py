"""Environment loading helpers for runner configuration."""

from __future__ import annotations

import os
from pathlib import Path

ENV_FILE_VARIABLE = "BRAILLE_ENV_FILE"

_DOTENV_LOADED = False


def _parse_dotenv_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#"):
        return None
    line = line.removeprefix("export ").strip()
    key, sep, value = line.partition("=")
    if not sep or not key.strip():
        return None
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        value = value[1:-1]
    return key.strip(), value


def load_dotenv(path: str | Path | None = None) -> None:
    """Load ``KEY=value`` pairs from a .env file once; existing variables win.

    The file defaults to ``$BRAILLE_ENV_FILE`` or ``.env`` in the working directory.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    _DOTENV_LOADED = True

    dotenv_path = Path(path or os.getenv(ENV_FILE_VARIABLE) or ".env")
    if not dotenv_path.is_file():
        return
    for raw_line in dotenv_path.read_text(encoding="utf-8").splitlines():
        parsed = _parse_dotenv_line(raw_line)
        if parsed is not None:
            os.environ.setdefault(*parsed)


def getenv_any(*names: str, default: str | None = None) -> str | None:
    """Return first defined env var from a list of candidate names."""
    load_dotenv()
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


def getenv_bool(*names: str, default: bool = False) -> bool:
    """Read a boolean flag; unrecognized values fall back to ``default``."""
    raw = getenv_any(*names)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def getenv_number(*names: str, default: float, minimum: float | None = None) -> float:
    """Read a number; malformed values fall back to ``default`` and are clamped to ``minimum``."""
    raw = getenv_any(*names)
    try:
        value = float(raw) if raw is not None else default
    except ValueError:
        value = default
    if minimum is not None:
        value = max(minimum, value)
    return value
