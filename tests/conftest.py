import sys
import threading
import time
from pathlib import Path

# Ensure the repository root is on the path so `import audiograb` works in tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from audiograb.job import JobStatus  # noqa: E402


def wait_until(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class DummyDownloader:
    """Stands in for the yt-dlp runner; each URL blocks until its event is set."""

    def __init__(self, urls=(), fail_urls=(), crash_urls=()):
        self.release = {url: threading.Event() for url in urls}
        self.fail_urls = set(fail_urls)
        self.crash_urls = set(crash_urls)
        self.started = []
        self.running = 0
        self.max_running = 0
        self._lock = threading.Lock()

    def download(self, job):
        request = job.snapshot()
        if request.status.is_terminal:
            return False
        job.set_status(JobStatus.DOWNLOADING)
        with self._lock:
            self.started.append(request.url)
            self.running += 1
            self.max_running = max(self.max_running, self.running)
        try:
            event = self.release.get(request.url)
            if event is not None:
                event.wait(5)
            if request.url in self.crash_urls:
                raise RuntimeError("boom")
            if request.url in self.fail_urls:
                job.set_error("yt-dlp failed with exit code: 1")
                return False
            job.set_progress(50.0)
            job.complete()
            return True
        finally:
            with self._lock:
                self.running -= 1
