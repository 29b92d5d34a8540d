from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

logger = logging.getLogger("audiograb.job")


class AudioFormat(str, Enum):
    """Audio encodings yt-dlp can extract to; values are ``--audio-format`` tokens."""

    MP3 = "mp3"
    M4A = "m4a"
    OPUS = "opus"
    AAC = "aac"
    FLAC = "flac"
    WAV = "wav"


class Quality(str, Enum):
    BEST = "best"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def token(self) -> str:
        """Value passed to ``--audio-quality`` (0 is yt-dlp's best VBR setting)."""
        return _QUALITY_TOKENS[self]


_QUALITY_TOKENS = {
    Quality.BEST: "0",
    Quality.HIGH: "192K",
    Quality.MEDIUM: "128K",
    Quality.LOW: "96K",
}


class JobStatus(str, Enum):
    QUEUED = "queued"
    DOWNLOADING = "downloading"
    CONVERTING = "converting"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED})


@dataclass(frozen=True)
class JobSnapshot:
    """Point-in-time copy of a job, safe to hand to callers."""

    id: str
    url: str
    title: Optional[str]
    format: AudioFormat
    quality: Quality
    status: JobStatus
    progress: float
    error: Optional[str]
    created_at: float
    started_at: Optional[float]
    finished_at: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["format"] = self.format.value
        payload["quality"] = self.quality.value
        payload["status"] = self.status.value
        return payload


@dataclass(eq=False)
class DownloadJob:
    """One requested download and its mutable state.

    Every read and write goes through the record's own lock. Once the job has
    reached a terminal status, later writes are dropped so a detached record
    (cancelled while its process was still running) keeps its final state.
    """

    id: str
    url: str
    format: AudioFormat
    quality: Quality
    title: Optional[str] = None
    status: JobStatus = JobStatus.QUEUED
    progress: float = 0.0
    error: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    @classmethod
    def create(
        cls,
        url: str,
        format: Union[AudioFormat, str],
        quality: Union[Quality, str],
    ) -> "DownloadJob":
        return cls(id=str(uuid.uuid4()), url=url, format=AudioFormat(format), quality=Quality(quality))

    @property
    def is_terminal(self) -> bool:
        with self._lock:
            return self.status.is_terminal

    def _writable(self, what: str) -> bool:
        # caller holds the lock
        if self.status.is_terminal:
            logger.debug("Ignoring %s update for job %s (already %s)", what, self.id, self.status.value)
            return False
        return True

    def set_status(self, status: JobStatus) -> None:
        with self._lock:
            if not self._writable("status"):
                return
            self.status = JobStatus(status)
            if self.status is JobStatus.DOWNLOADING and self.started_at is None:
                self.started_at = time.time()
            if self.status.is_terminal:
                self.finished_at = time.time()

    def mark_converting(self) -> None:
        """Move Downloading to Converting; no-op from any other status."""
        with self._lock:
            if self.status is JobStatus.DOWNLOADING:
                self.status = JobStatus.CONVERTING

    def set_progress(self, progress: float) -> None:
        with self._lock:
            if not self._writable("progress"):
                return
            self.progress = min(max(float(progress), 0.0), 100.0)

    def set_title(self, title: str) -> None:
        with self._lock:
            if not self._writable("title"):
                return
            self.title = title

    def set_error(self, message: str) -> None:
        """Record a failure; the message and Failed status are set together."""
        with self._lock:
            if not self._writable("error"):
                return
            self.error = message
            self.status = JobStatus.FAILED
            self.finished_at = time.time()

    def complete(self) -> None:
        with self._lock:
            if not self._writable("completion"):
                return
            self.status = JobStatus.COMPLETED
            self.progress = 100.0
            self.finished_at = time.time()

    def cancel(self) -> bool:
        """Mark the job Cancelled. Returns False if it had already finished."""
        with self._lock:
            if not self._writable("cancel"):
                return False
            self.status = JobStatus.CANCELLED
            self.finished_at = time.time()
            return True

    def snapshot(self) -> JobSnapshot:
        with self._lock:
            return JobSnapshot(
                id=self.id,
                url=self.url,
                title=self.title,
                format=self.format,
                quality=self.quality,
                status=self.status,
                progress=self.progress,
                error=self.error,
                created_at=self.created_at,
                started_at=self.started_at,
                finished_at=self.finished_at,
            )
