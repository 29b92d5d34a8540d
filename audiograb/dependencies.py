from __future__ import annotations

import subprocess
import sys
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

PROBE_TIMEOUT_S = 15.0


def is_tool_available(binary: str, version_flag: str = "--version") -> bool:
    """True if ``binary version_flag`` runs and exits 0."""
    try:
        result = subprocess.run(
            [binary, version_flag],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=PROBE_TIMEOUT_S,
        )
    except (OSError, subprocess.SubprocessError):
        return False
    return result.returncode == 0


@dataclass
class DependencyStatus:
    yt_dlp_installed: bool
    ffmpeg_installed: bool
    all_installed: bool

    @classmethod
    def check(cls, ytdlp_binary: str = "yt-dlp", ffmpeg_binary: str = "ffmpeg") -> "DependencyStatus":
        yt_dlp = is_tool_available(ytdlp_binary, "--version")
        ffmpeg = is_tool_available(ffmpeg_binary, "-version")
        return cls(yt_dlp_installed=yt_dlp, ffmpeg_installed=ffmpeg, all_installed=yt_dlp and ffmpeg)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class InstallGuide:
    """Shell commands that install the external tools on the current OS."""

    platform: str
    yt_dlp_command: str
    ffmpeg_command: str
    notes: List[str] = field(default_factory=list)

    @classmethod
    def for_platform(cls, platform: Optional[str] = None) -> "InstallGuide":
        platform = platform or sys.platform
        if platform == "darwin":
            return cls(
                platform="macOS",
                yt_dlp_command="brew install yt-dlp",
                ffmpeg_command="brew install ffmpeg",
                notes=[
                    "Homebrew must be installed first",
                    "Visit https://brew.sh for Homebrew installation",
                ],
            )
        if platform.startswith("win"):
            return cls(
                platform="Windows",
                yt_dlp_command="winget install yt-dlp.yt-dlp",
                ffmpeg_command="winget install Gyan.FFmpeg",
                notes=[
                    "Windows 10+ required for winget",
                    "Alternatively, download binaries from official websites",
                ],
            )
        if platform.startswith("linux"):
            return cls(
                platform="Linux",
                yt_dlp_command="sudo apt install yt-dlp",
                ffmpeg_command="sudo apt install ffmpeg",
                notes=[
                    "For Debian/Ubuntu based systems",
                    "For other distros, use your package manager",
                ],
            )
        return cls(
            platform="Unknown",
            yt_dlp_command="Visit https://github.com/yt-dlp/yt-dlp",
            ffmpeg_command="Visit https://ffmpeg.org/download.html",
            notes=["Please install manually"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
