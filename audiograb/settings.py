from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from audiograb.download_queue import DEFAULT_MAX_CONCURRENT, DEFAULT_POLL_INTERVAL
from audiograb.downloader import default_download_dir


def _env_int(name: str, default: int) -> int:
    try:
        value = int(os.getenv(name, "") or default)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_float(name: str, default: float) -> float:
    try:
        value = float(os.getenv(name, "") or default)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass
class Settings:
    """Runtime configuration, read from AUDIOGRAB_* environment variables."""

    download_dir: str = field(default_factory=default_download_dir)
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    ytdlp_binary: str = "yt-dlp"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        origins = [o.strip() for o in os.getenv("AUDIOGRAB_CORS_ORIGINS", "*").split(",") if o.strip()]
        return cls(
            download_dir=os.getenv("AUDIOGRAB_DOWNLOAD_DIR") or default_download_dir(),
            max_concurrent=_env_int("AUDIOGRAB_MAX_CONCURRENT", DEFAULT_MAX_CONCURRENT),
            poll_interval=_env_float("AUDIOGRAB_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            ytdlp_binary=os.getenv("AUDIOGRAB_YTDLP_BINARY") or "yt-dlp",
            log_level=(os.getenv("AUDIOGRAB_LOG_LEVEL") or "INFO").upper(),
            log_file=os.getenv("AUDIOGRAB_LOG_FILE") or None,
            cors_origins=origins or ["*"],
        )
