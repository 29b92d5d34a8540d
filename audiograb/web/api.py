from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from audiograb.dependencies import DependencyStatus, InstallGuide
from audiograb.download_queue import DownloadQueue
from audiograb.exceptions import UrlValidationError
from audiograb.job import AudioFormat, Quality
from audiograb.web import state

router = APIRouter(prefix="/api")


def get_queue() -> DownloadQueue:
    return state.QUEUE


class DownloadRequest(BaseModel):
    urls: str  # one URL per line, as pasted by the user
    format: AudioFormat = AudioFormat.MP3
    quality: Quality = Quality.BEST


class DownloadResponse(BaseModel):
    ids: List[str]


@router.post("/downloads", response_model=DownloadResponse)
def add_download(req: DownloadRequest, queue: DownloadQueue = Depends(get_queue)):
    try:
        ids = queue.submit(req.urls, req.format, req.quality)
    except UrlValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ids": ids}


@router.get("/downloads")
def list_downloads(queue: DownloadQueue = Depends(get_queue)):
    return [job.to_dict() for job in queue.list_all()]


@router.get("/downloads/{job_id}")
def get_download(job_id: str, queue: DownloadQueue = Depends(get_queue)):
    job = queue.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job.to_dict()


@router.delete("/downloads/{job_id}")
def cancel_download(job_id: str, queue: DownloadQueue = Depends(get_queue)):
    if not queue.cancel(job_id):
        raise HTTPException(status_code=404, detail="Job not found")
    return {"cancelled": True}


@router.get("/dependencies")
def check_deps():
    return DependencyStatus.check(ytdlp_binary=state.SETTINGS.ytdlp_binary).to_dict()


@router.get("/dependencies/install-guide")
def get_install_guide():
    return InstallGuide.for_platform().to_dict()


@router.get("/health")
def health(queue: DownloadQueue = Depends(get_queue)):
    return {"status": "ok", "active": queue.active_count(), "pending": queue.pending_count()}
