import pytest

from audiograb.job import AudioFormat, DownloadJob, JobStatus, Quality


def test_create_job_starts_queued():
    job = DownloadJob.create("https://youtu.be/abc", "mp3", Quality.HIGH)
    assert job.status is JobStatus.QUEUED
    assert job.format is AudioFormat.MP3
    assert job.quality is Quality.HIGH
    assert job.progress == 0.0
    assert job.title is None and job.error is None
    other = DownloadJob.create("https://youtu.be/abc", "mp3", "high")
    assert other.id != job.id


def test_create_rejects_unknown_format():
    with pytest.raises(ValueError):
        DownloadJob.create("https://youtu.be/abc", "wma", "best")


def test_quality_tokens():
    assert [q.token for q in Quality] == ["0", "192K", "128K", "96K"]


def test_set_error_forces_failed():
    job = DownloadJob.create("https://youtu.be/abc", "flac", "best")
    job.set_status(JobStatus.DOWNLOADING)
    job.set_progress(12.5)
    job.set_error("yt-dlp failed with exit code: 2")
    snap = job.snapshot()
    assert snap.status is JobStatus.FAILED
    assert snap.error == "yt-dlp failed with exit code: 2"
    assert snap.progress == 12.5
    assert snap.finished_at is not None


def test_complete_forces_full_progress():
    job = DownloadJob.create("https://youtu.be/abc", "opus", "low")
    job.set_status(JobStatus.DOWNLOADING)
    job.set_progress(40.0)
    job.complete()
    snap = job.snapshot()
    assert snap.status is JobStatus.COMPLETED
    assert snap.progress == 100.0
    assert snap.error is None
    assert snap.started_at is not None


def test_terminal_job_ignores_further_writes():
    job = DownloadJob.create("https://youtu.be/abc", "mp3", "best")
    assert job.cancel() is True
    job.set_status(JobStatus.DOWNLOADING)
    job.set_progress(80.0)
    job.set_title("Late title")
    job.set_error("too late")
    job.complete()
    snap = job.snapshot()
    assert snap.status is JobStatus.CANCELLED
    assert snap.progress == 0.0
    assert snap.title is None
    assert snap.error is None
    assert job.cancel() is False


def test_mark_converting_only_from_downloading():
    job = DownloadJob.create("https://youtu.be/abc", "mp3", "best")
    job.mark_converting()
    assert job.snapshot().status is JobStatus.QUEUED
    job.set_status(JobStatus.DOWNLOADING)
    job.mark_converting()
    assert job.snapshot().status is JobStatus.CONVERTING


def test_progress_is_clamped():
    job = DownloadJob.create("https://youtu.be/abc", "mp3", "best")
    job.set_progress(150.0)
    assert job.snapshot().progress == 100.0
    job.set_progress(-3)
    assert job.snapshot().progress == 0.0


def test_snapshot_to_dict_uses_plain_values():
    job = DownloadJob.create("https://youtu.be/abc", AudioFormat.WAV, Quality.MEDIUM)
    job.set_title("My Song")
    payload = job.snapshot().to_dict()
    assert payload["id"] == job.id
    assert payload["format"] == "wav"
    assert payload["quality"] == "medium"
    assert payload["status"] == "queued"
    assert payload["title"] == "My Song"
    assert "_lock" not in payload
