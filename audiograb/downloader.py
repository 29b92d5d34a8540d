from __future__ import annotations

import logging
import os
import re
import subprocess
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Union

from audiograb.job import AudioFormat, DownloadJob, JobStatus, Quality

logger = logging.getLogger(__name__)

PROGRESS_RE = re.compile(r"\[download\]\s+(\d+\.?\d*)%")
TITLE_RE = re.compile(r"\[info\]\s+(.+?):\s+Downloading")
CONVERSION_MARKERS = ("[ExtractAudio]", "Merging formats")
STDERR_TAIL_LINES = 20


@dataclass(frozen=True)
class ProgressEvent:
    """Something recognised in one line of yt-dlp output.

    ``kind`` is "progress" (value is a float), "title" (value is a str) or
    "converting" (value is None).
    """

    kind: str
    value: Union[float, str, None] = None


def parse_output_line(line: str) -> Optional[ProgressEvent]:
    """Classify one stdout line. Unknown or malformed lines give None."""
    m = PROGRESS_RE.search(line)
    if m:
        try:
            return ProgressEvent("progress", float(m.group(1)))
        except ValueError:
            return None
    m = TITLE_RE.search(line)
    if m:
        return ProgressEvent("title", m.group(1).strip())
    if any(marker in line for marker in CONVERSION_MARKERS):
        return ProgressEvent("converting")
    return None


def default_download_dir() -> str:
    """The user's Downloads folder when it exists, otherwise the working directory."""
    candidate = os.path.join(os.path.expanduser("~"), "Downloads")
    if os.path.isdir(candidate):
        return candidate
    return os.getcwd()


class Downloader:
    """Runs yt-dlp for one job at a time and mirrors its output onto the job."""

    def __init__(self, download_dir: Optional[str] = None, binary: str = "yt-dlp") -> None:
        self.download_dir = download_dir or default_download_dir()
        self.binary = binary

    @property
    def tool_name(self) -> str:
        return os.path.basename(self.binary)

    def build_command(self, url: str, audio_format: AudioFormat, quality: Quality) -> List[str]:
        output_template = os.path.join(self.download_dir, "%(title)s.%(ext)s")
        return [
            self.binary,
            "--extract-audio",
            "--audio-format",
            AudioFormat(audio_format).value,
            "--audio-quality",
            Quality(quality).token,
            "--embed-thumbnail",
            "--add-metadata",
            "--output",
            output_template,
            "--newline",
            "--no-playlist",
            url,
        ]

    def _apply(self, job: DownloadJob, event: ProgressEvent, last_progress: float) -> float:
        """Apply one parsed event; returns the highest progress applied so far."""
        if event.kind == "progress":
            value = min(float(event.value), 100.0)
            if value > last_progress:
                job.set_progress(value)
                return value
        elif event.kind == "title":
            job.set_title(str(event.value))
        elif event.kind == "converting":
            job.mark_converting()
        return last_progress

    def download(self, job: DownloadJob) -> bool:
        """Run one extraction to completion. Returns True on success.

        Failures (launch errors, non-zero exit) are recorded on the job rather
        than raised.
        """
        request = job.snapshot()
        url, audio_format, quality = request.url, request.format, request.quality
        last_progress = request.progress
        if request.status.is_terminal:
            # cancelled between dispatch and start
            logger.info("Skipping job %s (%s)", job.id, request.status.value)
            return False

        job.set_status(JobStatus.DOWNLOADING)
        cmd = self.build_command(url, audio_format, quality)
        logger.info("Starting %s for job %s: %s", self.tool_name, job.id, url)
        logger.debug("Command: %s", " ".join(cmd))

        try:
            os.makedirs(self.download_dir, exist_ok=True)
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            msg = f"Failed to start {self.tool_name}: {e}"
            logger.error("Job %s: %s", job.id, msg)
            job.set_error(msg)
            return False

        stderr_tail: Deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        stderr_thread = threading.Thread(target=self._drain, args=(proc.stderr, stderr_tail), daemon=True)
        stderr_thread.start()

        try:
            for line in proc.stdout:
                event = parse_output_line(line)
                if event is not None:
                    last_progress = self._apply(job, event, last_progress)
            proc.stdout.close()
        except Exception:
            proc.kill()
            proc.wait()
            raise

        try:
            return_code = proc.wait()
        except (OSError, subprocess.SubprocessError) as e:
            msg = f"Failed to wait for {self.tool_name}: {e}"
            logger.error("Job %s: %s", job.id, msg)
            job.set_error(msg)
            return False
        stderr_thread.join(timeout=1)

        if return_code == 0:
            job.complete()
            logger.info("Job %s completed", job.id)
            return True

        msg = f"{self.tool_name} failed with exit code: {return_code}"
        if stderr_tail:
            logger.warning("Job %s stderr tail:\n%s", job.id, "\n".join(stderr_tail))
            msg += f" ({stderr_tail[-1]})"
        logger.error("Job %s: %s", job.id, msg)
        job.set_error(msg)
        return False

    @staticmethod
    def _drain(stream, tail: Deque[str]) -> None:
        """Keep the last stderr lines; reading stops the pipe from filling up."""
        if stream is None:
            return
        try:
            for line in stream:
                line = line.rstrip()
                if line:
                    tail.append(line)
        except (OSError, ValueError):
            pass
        finally:
            try:
                stream.close()
            except (OSError, ValueError):
                pass
