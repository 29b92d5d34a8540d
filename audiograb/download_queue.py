from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Deque, Dict, List, Optional, Set, Union

from audiograb.downloader import Downloader
from audiograb.job import AudioFormat, DownloadJob, JobSnapshot, Quality
from audiograb.utils.validation import split_url_lines, validate_urls

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT = 3
DEFAULT_POLL_INTERVAL = 0.5


class DownloadQueue:
    """Bounded-concurrency queue of download jobs.

    Jobs wait in a FIFO pending queue until the dispatch thread moves them
    into one of ``max_concurrent`` slots and runs them on a worker thread.

    Two lock domains: ``_lock`` (shared with ``_wakeup``) guards the pending
    queue, active set and registry; each DownloadJob guards its own fields.
    Neither is held while a subprocess runs, and the collection lock is never
    taken while a job lock is held.
    """

    def __init__(
        self,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        downloader: Optional[Downloader] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent
        self.downloader = downloader or Downloader()
        self.poll_interval = poll_interval
        self._pending: Deque[DownloadJob] = deque()
        self._active: Set[DownloadJob] = set()
        self._jobs: Dict[str, DownloadJob] = {}
        self._lock = threading.Lock()
        self._wakeup = threading.Condition(self._lock)
        self._stopping = False
        self._dispatcher: Optional[threading.Thread] = None

    # -- façade -----------------------------------------------------------

    def add_item(
        self,
        url: str,
        audio_format: Union[AudioFormat, str],
        quality: Union[Quality, str],
    ) -> str:
        """Queue one already-validated URL and return the new job id."""
        job = DownloadJob.create(url, audio_format, quality)
        with self._wakeup:
            self._pending.append(job)
            self._jobs[job.id] = job
            self._wakeup.notify_all()
        logger.info("Queued job %s (%s, %s): %s", job.id, job.format.value, job.quality.value, url)
        return job.id

    def submit(
        self,
        urls_text: str,
        audio_format: Union[AudioFormat, str],
        quality: Union[Quality, str],
    ) -> List[str]:
        """Validate multi-line URL input and queue one job per URL.

        Raises UrlValidationError before anything is queued if any line is
        invalid or no URL was given.
        """
        urls = validate_urls(split_url_lines(urls_text))
        # coerce once so a bad format/quality fails before any job is queued
        audio_format = AudioFormat(audio_format)
        quality = Quality(quality)
        return [self.add_item(url, audio_format, quality) for url in urls]

    def list_all(self) -> List[JobSnapshot]:
        with self._lock:
            jobs = list(self._jobs.values())
        return [job.snapshot() for job in jobs]

    def get(self, job_id: str) -> Optional[JobSnapshot]:
        with self._lock:
            job = self._jobs.get(job_id)
        return job.snapshot() if job is not None else None

    def cancel(self, job_id: str) -> bool:
        """Forget a job and mark it Cancelled.

        A job that is already running keeps its process; it simply stops being
        listed. Returns False for unknown ids.
        """
        with self._lock:
            job = self._jobs.pop(job_id, None)
            if job is None:
                return False
            try:
                self._pending.remove(job)
                was_pending = True
            except ValueError:
                was_pending = False
        if job.cancel():
            logger.info("Cancelled job %s (%s)", job_id, "queued" if was_pending else "running")
        else:
            logger.info("Removed finished job %s", job_id)
        return True

    def active_count(self) -> int:
        with self._lock:
            return len(self._active)

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    # -- scheduling -------------------------------------------------------

    def start_processing(self) -> None:
        with self._lock:
            if self._dispatcher is not None and self._dispatcher.is_alive():
                return
            self._stopping = False
            self._dispatcher = threading.Thread(target=self._dispatch_loop, name="audiograb-dispatch", daemon=True)
            self._dispatcher.start()
        logger.info("Download queue started (max_concurrent=%d)", self.max_concurrent)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop dispatching new jobs. Jobs already running are left alone."""
        with self._wakeup:
            self._stopping = True
            self._wakeup.notify_all()
            dispatcher = self._dispatcher
        if dispatcher is not None:
            dispatcher.join(timeout)
        logger.info("Download queue stopped")

    def _next_job(self) -> Optional[DownloadJob]:
        # caller holds the lock
        if len(self._active) >= self.max_concurrent or not self._pending:
            return None
        job = self._pending.popleft()
        self._active.add(job)
        return job

    def _dispatch_loop(self) -> None:
        while True:
            with self._wakeup:
                if self._stopping:
                    return
                job = self._next_job()
                if job is None:
                    # woken early by add_item or a freed slot
                    self._wakeup.wait(self.poll_interval)
                    continue
            worker = threading.Thread(target=self._run_job, args=(job,), name=f"audiograb-job-{job.id[:8]}", daemon=True)
            worker.start()

    def _run_job(self, job: DownloadJob) -> None:
        try:
            self.downloader.download(job)
        except Exception as e:
            logger.exception("Job %s crashed", job.id)
            job.set_error(f"Internal error: {e}")
        finally:
            with self._wakeup:
                self._active.discard(job)
                self._wakeup.notify_all()
