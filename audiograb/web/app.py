from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

try:
    load_dotenv()
except OSError as exc:
    # Prevent startup from crashing if .env is unreadable in the container.
    print(f"[audiograb] Warning: could not load .env ({exc})")

from audiograb.utils.logging import setup_logger
from audiograb.web import state
from audiograb.web.api import router as api_router

logger = setup_logger(logfile=state.SETTINGS.log_file, level=state.SETTINGS.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    state.QUEUE.start_processing()
    logger.info("Saving downloads to %s", state.SETTINGS.download_dir)
    yield
    # running yt-dlp processes are not interrupted
    state.QUEUE.stop(timeout=2.0)


app = FastAPI(title="audiograb", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=state.SETTINGS.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
