from __future__ import annotations

import argparse
import time
from typing import List, Optional

from colorama import Fore, Style, init as colorama_init
from dotenv import load_dotenv

from audiograb.dependencies import DependencyStatus, InstallGuide
from audiograb.download_queue import DownloadQueue
from audiograb.downloader import Downloader
from audiograb.exceptions import UrlValidationError
from audiograb.job import AudioFormat, JobSnapshot, JobStatus, Quality
from audiograb.settings import Settings
from audiograb.utils.formatting import format_job_line, parse_audio_format, parse_quality
from audiograb.utils.logging import setup_logger

STATUS_COLORS = {
    JobStatus.QUEUED: Fore.WHITE,
    JobStatus.DOWNLOADING: Fore.CYAN,
    JobStatus.CONVERTING: Fore.MAGENTA,
    JobStatus.COMPLETED: Fore.GREEN,
    JobStatus.FAILED: Fore.RED,
    JobStatus.CANCELLED: Fore.YELLOW,
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="audiograb", description="Queue YouTube audio downloads through yt-dlp")
    sub = p.add_subparsers(dest="command", required=True)

    dl = sub.add_parser("download", help="Download one or more URLs and wait for them to finish")
    dl.add_argument("urls", nargs="+", help="YouTube watch or youtu.be URLs")
    dl.add_argument(
        "--format",
        dest="audio_format",
        type=parse_audio_format,
        default=AudioFormat.MP3,
        help="Audio encoding: " + ", ".join(f.value for f in AudioFormat) + " (default: mp3)",
    )
    dl.add_argument(
        "--quality",
        type=parse_quality,
        default=Quality.BEST,
        help="Quality tier: " + ", ".join(q.value for q in Quality) + " (default: best)",
    )
    dl.add_argument("--output-dir", help="Destination directory (default: AUDIOGRAB_DOWNLOAD_DIR or ~/Downloads)")
    dl.add_argument("--max-concurrent", type=int, help="Parallel downloads (default: AUDIOGRAB_MAX_CONCURRENT or 3)")
    dl.add_argument("--refresh", type=float, default=1.0, help="Seconds between status updates")

    sub.add_parser("check-deps", help="Check that yt-dlp and ffmpeg are installed")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return p


def _print_job(job: JobSnapshot) -> None:
    print(STATUS_COLORS.get(job.status, "") + format_job_line(job) + Style.RESET_ALL)


def wait_for_jobs(queue: DownloadQueue, job_ids: List[str], refresh: float = 1.0) -> List[JobSnapshot]:
    """Poll the queue until every job in ``job_ids`` is terminal, printing changes."""
    last_seen = {}
    while True:
        jobs = [job for job in queue.list_all() if job.id in job_ids]
        for job in jobs:
            key = (job.status, round(job.progress), job.title)
            if last_seen.get(job.id) != key:
                last_seen[job.id] = key
                _print_job(job)
        if all(job.status.is_terminal for job in jobs):
            return jobs
        time.sleep(refresh)


def run_download(args: argparse.Namespace, settings: Settings) -> int:
    max_concurrent = args.max_concurrent if args.max_concurrent and args.max_concurrent > 0 else settings.max_concurrent
    downloader = Downloader(download_dir=args.output_dir or settings.download_dir, binary=settings.ytdlp_binary)
    queue = DownloadQueue(max_concurrent=max_concurrent, downloader=downloader, poll_interval=settings.poll_interval)
    try:
        ids = queue.submit("\n".join(args.urls), args.audio_format, args.quality)
    except UrlValidationError as e:
        print(Fore.RED + str(e) + Style.RESET_ALL)
        return 2

    print(Fore.GREEN + f"Queued {len(ids)} download(s) → {downloader.download_dir}" + Style.RESET_ALL)
    queue.start_processing()
    try:
        jobs = wait_for_jobs(queue, ids, refresh=args.refresh)
    finally:
        queue.stop(timeout=2.0)

    ok = sum(1 for job in jobs if job.status is JobStatus.COMPLETED)
    fail = len(jobs) - ok
    color = Fore.GREEN if fail == 0 else Fore.YELLOW
    print(color + f"\nFinished: {ok} success, {fail} failed." + Style.RESET_ALL)
    return 0 if fail == 0 else 1


def run_check_deps(settings: Settings) -> int:
    status = DependencyStatus.check(ytdlp_binary=settings.ytdlp_binary)
    for name, present in (("yt-dlp", status.yt_dlp_installed), ("ffmpeg", status.ffmpeg_installed)):
        mark = Fore.GREEN + "✓" if present else Fore.RED + "✗"
        print(f"{mark} {name}" + Style.RESET_ALL)
    if status.all_installed:
        return 0
    guide = InstallGuide.for_platform()
    print(Fore.YELLOW + f"\nInstall on {guide.platform}:" + Style.RESET_ALL)
    if not status.yt_dlp_installed:
        print(f"  {guide.yt_dlp_command}")
    if not status.ffmpeg_installed:
        print(f"  {guide.ffmpeg_command}")
    for note in guide.notes:
        print(f"  · {note}")
    return 1


def run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("audiograb.web.app:app", host=args.host, port=args.port, reload=False)
    return 0


def run_cli(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    colorama_init(autoreset=True)
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    setup_logger(logfile=settings.log_file, level=settings.log_level)
    if args.command == "download":
        return run_download(args, settings)
    if args.command == "check-deps":
        return run_check_deps(settings)
    return run_serve(args)
