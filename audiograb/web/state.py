from audiograb.download_queue import DownloadQueue
from audiograb.downloader import Downloader
from audiograb.settings import Settings

SETTINGS = Settings.from_env()

# Process-wide queue; the app lifespan starts and stops its dispatch thread.
QUEUE = DownloadQueue(
    max_concurrent=SETTINGS.max_concurrent,
    downloader=Downloader(download_dir=SETTINGS.download_dir, binary=SETTINGS.ytdlp_binary),
    poll_interval=SETTINGS.poll_interval,
)
