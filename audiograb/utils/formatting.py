from __future__ import annotations

from typing import List, Union

from audiograb.job import AudioFormat, JobSnapshot, JobStatus, Quality

DEFAULT_FORMAT = AudioFormat.MP3
DEFAULT_QUALITY = Quality.BEST


def _choices(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


def parse_audio_format(value: Union[str, AudioFormat, None]) -> AudioFormat:
    """Map user input ("MP3", ".flac", None) to an AudioFormat.

    None and blank input fall back to the default format; anything else that
    is not a known encoding raises ValueError.
    """
    if isinstance(value, AudioFormat):
        return value
    key = (value or "").strip().lower().lstrip(".")
    if not key:
        return DEFAULT_FORMAT
    try:
        return AudioFormat(key)
    except ValueError:
        raise ValueError(f"Unsupported format {value!r}; use one of {', '.join(_choices(AudioFormat))}") from None


def parse_quality(value: Union[str, Quality, None]) -> Quality:
    if isinstance(value, Quality):
        return value
    key = (value or "").strip().lower()
    if not key:
        return DEFAULT_QUALITY
    try:
        return Quality(key)
    except ValueError:
        raise ValueError(f"Unsupported quality {value!r}; use one of {', '.join(_choices(Quality))}") from None


def progress_bar(percent: float, width: int = 20) -> str:
    percent = min(max(percent, 0.0), 100.0)
    filled = int(round(width * percent / 100.0))
    return "#" * filled + "-" * (width - filled)


def shorten(text: str, width: int = 48) -> str:
    if len(text) <= width:
        return text
    return text[: max(width - 1, 0)] + "…"


def format_job_line(job: JobSnapshot) -> str:
    """One-line, fixed-width status summary used by the CLI."""
    label = shorten(job.title or job.url)
    line = f"[{progress_bar(job.progress)}] {job.progress:5.1f}% {job.status.value:<11} {label}"
    if job.status is JobStatus.FAILED and job.error:
        line += f" ({job.error})"
    return line
