"""Process configuration for the activity runner."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .env_utils import getenv_any, getenv_bool, getenv_number

DEFAULT_RECORDS_PATH = "server/data/records.json"
DEFAULT_DISPLAY_CELLS = 40
DEFAULT_CUE_TIMEOUT_SEC = 8.0


@dataclass(frozen=True)
class RunnerSettings:
    """Runtime settings; see ``from_env`` for the variables consulted."""

    records_path: Path = Path(DEFAULT_RECORDS_PATH)
    bridge_url: str | None = None
    display_cells: int = DEFAULT_DISPLAY_CELLS
    auto_advance: bool = False
    cue_timeout_sec: float = DEFAULT_CUE_TIMEOUT_SEC
    log_dir: Path = Path("log")
    log_file: str = "braille-runner.log"

    @classmethod
    def from_env(cls) -> "RunnerSettings":
        return cls(
            records_path=Path(getenv_any("BRAILLE_RECORDS_PATH", default=DEFAULT_RECORDS_PATH) or DEFAULT_RECORDS_PATH),
            bridge_url=getenv_any("BRAILLE_BRIDGE_URL"),
            display_cells=int(getenv_number("BRAILLE_DISPLAY_CELLS", default=DEFAULT_DISPLAY_CELLS, minimum=0)),
            auto_advance=getenv_bool("BRAILLE_AUTO_ADVANCE", default=False),
            cue_timeout_sec=getenv_number("BRAILLE_CUE_TIMEOUT_SEC", default=DEFAULT_CUE_TIMEOUT_SEC, minimum=0.1),
            log_dir=Path(getenv_any("BRAILLE_LOG_DIR", default="log") or "log"),
            log_file=getenv_any("BRAILLE_LOG_FILE", default="braille-runner.log") or "braille-runner.log",
        )
