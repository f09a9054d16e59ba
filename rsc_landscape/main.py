from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from .actions import list_sectors, resolve_archive
from .archive import ArchiveError
from .driver import ConversionError, resolve_sector_range
from .jobs import ConversionTask, JobQueue
from .models import ConversionJobResponse, ConvertRequest, JobListResponse, JobResponse, SectorListResponse
from .settings import LOG_FORMAT, Settings

LOG = logging.getLogger("rsc_landscape.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    settings.output_dir.mkdir(parents=True, exist_ok=True)

    app.state.settings = settings
    app.state.jobs = JobQueue(history_limit=settings.job_history)
    app.state.jobs.start()
    LOG.info("Serving archives from %s, writing to %s", settings.archive_dir, settings.output_dir)
    try:
        yield
    finally:
        app.state.jobs.stop()


app = FastAPI(title="RSC Landscape Converter", lifespan=lifespan)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_jobs(request: Request) -> JobQueue:
    return request.app.state.jobs


@app.exception_handler(ArchiveError)
async def archive_error_handler(_: Request, exc: ArchiveError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(ConversionError)
async def conversion_error_handler(_: Request, exc: ConversionError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/archives/{name}/sectors", response_model=SectorListResponse)
async def api_archive_sectors(name: str, settings: Settings = Depends(get_settings)):
    path = resolve_archive(settings.archive_dir, name)
    return SectorListResponse(archive=name, sectors=list_sectors(path))


@app.post("/api/convert", response_model=JobResponse)
async def api_convert(
    payload: ConvertRequest,
    settings: Settings = Depends(get_settings),
    jobs: JobQueue = Depends(get_jobs),
):
    archive_path = resolve_archive(settings.archive_dir, payload.archive)
    if payload.mode == "chunk":
        sector_range = resolve_sector_range(payload.mode, payload.at)
    else:
        sector_range = resolve_sector_range(payload.mode, payload.corner_a, payload.corner_b)

    task = ConversionTask(
        archive_path=archive_path,
        mode=payload.mode,
        sector_range=sector_range,
        clean=payload.clean,
        output_path=settings.output_dir / f"convert-{uuid.uuid4().hex}.cmds",
    )
    job = jobs.submit(task)
    return JobResponse(
        job_id=job.id,
        status=job.status,
        output=job.output,
        first_sector=job.first_sector,
        last_sector=job.last_sector,
    )


@app.get("/api/jobs", response_model=JobListResponse)
async def api_jobs(jobs: JobQueue = Depends(get_jobs)):
    return JobListResponse(jobs=[job.to_dict() for job in jobs.list()])


@app.get("/api/jobs/{job_id}", response_model=ConversionJobResponse)
async def api_job_details(job_id: str, jobs: JobQueue = Depends(get_jobs)):
    job = jobs.get(job_id)
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return job.to_dict()
