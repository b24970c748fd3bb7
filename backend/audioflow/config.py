"""Process configuration for the AudioFlow service layer, read from env vars."""

from __future__ import annotations

import logging
import math
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "AUDIOFLOW"
MIN_DURATION_CAP_SEC = 10


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if math.isfinite(value) else default


@dataclass(frozen=True)
class EngineSettings:
    max_minutes: float = 5.0
    default_duration_sec: float = 90.0
    output_dir: Path = Path(tempfile.gettempdir()) / "audioflow"
    log_level: int = logging.INFO
    log_file: Path | None = None

    @property
    def max_duration_sec(self) -> float:
        return float(max(MIN_DURATION_CAP_SEC, math.floor(self.max_minutes * 60)))

    @classmethod
    def from_env(cls) -> EngineSettings:
        default = cls()

        level_name = os.getenv(f"{ENV_PREFIX}_LOG_LEVEL", "").strip().upper()
        level = logging.getLevelName(level_name) if level_name else default.log_level
        if not isinstance(level, int):
            level = default.log_level

        output_dir = os.getenv(f"{ENV_PREFIX}_OUTPUT_DIR", "").strip()
        log_file = os.getenv(f"{ENV_PREFIX}_LOG_FILE", "").strip()

        default_duration = _env_float(f"{ENV_PREFIX}_DEFAULT_DURATION", default.default_duration_sec)
        if default_duration <= 0:
            default_duration = default.default_duration_sec

        return cls(
            max_minutes=_env_float(f"{ENV_PREFIX}_MAX_MINUTES", default.max_minutes),
            default_duration_sec=default_duration,
            output_dir=Path(output_dir).expanduser() if output_dir else default.output_dir,
            log_level=level,
            log_file=Path(log_file).expanduser() if log_file else None,
        )
