from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_INTERVAL_SECONDS = 10.0
DEFAULT_CHUNK_SIZE = 1024 * 1024
KEYPRESS_POLL_SECONDS = 0.1
EXCLUDED_FILE_NAMES = {".DS_Store", "Thumbs.db"}


def heartbeat_message(interval: float) -> str:
    return f"{interval:g} second check in"


@dataclass(frozen=True)
class WatchConfig:
    root: Path
    pattern: str = "*"
    interval: float = DEFAULT_INTERVAL_SECONDS
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval}")
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")

    @property
    def heartbeat(self) -> str:
        return heartbeat_message(self.interval)
