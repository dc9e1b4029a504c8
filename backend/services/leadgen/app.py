"""Lead Enrichment Service API - batch jobs, results, regeneration and the cron trigger."""

import secrets
from datetime import UTC, datetime
from urllib.parse import quote

from fastapi import Depends, FastAPI, Header, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware

from models.database import Job
from services.auth import User, get_current_user
from services.container import ServiceContainer, get_container
from services.leadgen.export import XLSX_MEDIA_TYPE, build_workbook, export_filename
from services.leadgen.progress import compute_job_stats
from services.leadgen.store import InvalidJobStateError, JobNotFoundError, RecordNotFoundError
from shared.config import config
from shared.logging_utils import setup_logging
from shared.models import (
    CaseMatchRequest,
    CreateJobRequest,
    CronResponse,
    JobDetailResponse,
    JobResponse,
    JobResultsResponse,
    MatchedCase,
    RecordResponse,
    RegenerateRequest,
    RegenerateResponse,
)
from shared.response_models import APIResponse

logger = setup_logging("leadgen-service")

app = FastAPI(
    title="Lead Enrichment Service",
    description="Batch lead research, case matching and outreach message drafting",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _owner_filter(user: User) -> int | None:
    # Admins see every job
    return None if user.is_admin else user.id


async def _get_owned_job(container: ServiceContainer, job_id: str, user: User) -> Job:
    try:
        return await container.store.get_job(job_id, _owner_filter(user))
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@app.get("/health")
async def health_check():
    """Health check endpoint for the lead enrichment service."""
    return APIResponse(message="Lead Enrichment Service is healthy")


@app.post("/jobs", response_model=JobResponse, status_code=201)
async def create_job(
    request: CreateJobRequest,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> JobResponse:
    """Create a job from uploaded spreadsheet rows; records start pending."""
    max_rows = config.get("max_upload_rows", 500)
    if len(request.rows) > max_rows:
        raise HTTPException(
            status_code=400,
            detail=f"Too many rows: {len(request.rows)} (maximum {max_rows})",
        )
    try:
        job = await container.store.create_job(request.filename, request.rows, user_id=user.id)
        return JobResponse.model_validate(job)
    except Exception as e:
        logger.error(f"Failed to create job: {e!s}")
        raise HTTPException(status_code=500, detail=f"Job creation failed: {e!s}") from e


@app.get("/jobs", response_model=list[JobResponse])
async def list_jobs(
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> list[JobResponse]:
    jobs = await container.store.list_jobs(_owner_filter(user))
    return [JobResponse.model_validate(job) for job in jobs]


@app.get("/jobs/{job_id}", response_model=JobDetailResponse)
async def get_job(
    job_id: str,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> JobDetailResponse:
    """Job with per-status counts, queue position and completion estimate."""
    job = await _get_owned_job(container, job_id, user)
    try:
        counts = await container.store.record_counts(job.id)
        position = await container.store.queue_position(job)
    except Exception as e:
        logger.error(f"Failed to compute stats for job {job_id}: {e!s}")
        raise HTTPException(status_code=500, detail=f"Job stats failed: {e!s}") from e
    return JobDetailResponse(
        job=JobResponse.model_validate(job), stats=compute_job_stats(job, counts, position)
    )


@app.delete("/jobs/{job_id}", response_model=APIResponse)
async def delete_job(
    job_id: str,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> APIResponse:
    try:
        await container.store.delete_job(job_id, _owner_filter(user))
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidJobStateError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return APIResponse(message=f"Job {job_id} deleted", data={"job_id": job_id})


@app.post("/jobs/{job_id}/cancel", response_model=JobResponse)
async def cancel_job(
    job_id: str,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> JobResponse:
    """Cancel a pending or processing job. Records already running still finish."""
    try:
        job = await container.store.cancel_job(job_id, _owner_filter(user))
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidJobStateError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return JobResponse.model_validate(job)


@app.get("/jobs/{job_id}/results", response_model=JobResultsResponse)
async def get_job_results(
    job_id: str,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> JobResultsResponse:
    job = await _get_owned_job(container, job_id, user)
    records = await container.store.records_for_job(job.id)
    return JobResultsResponse(
        job=JobResponse.model_validate(job),
        records=[RecordResponse.model_validate(record) for record in records],
    )


@app.get("/jobs/{job_id}/export", response_class=Response)
async def export_job_results(
    job_id: str,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> Response:
    """Download the job's records as an xlsx spreadsheet."""
    job = await _get_owned_job(container, job_id, user)
    try:
        records = await container.store.records_for_job(job.id)
        content = build_workbook(records)
    except Exception as e:
        logger.error(f"Failed to export job {job_id}: {e!s}")
        raise HTTPException(status_code=500, detail=f"Export failed: {e!s}") from e

    filename = export_filename(job.filename)
    ascii_name = filename.encode("ascii", "ignore").decode() or "results.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": (
                f'attachment; filename="{ascii_name}"; filename*=UTF-8\'\'{quote(filename)}'
            )
        },
    )


@app.get("/records/{record_id}", response_model=RecordResponse)
async def get_record(
    record_id: str,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> RecordResponse:
    try:
        record = await container.store.get_record(record_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await _get_owned_job(container, record.job_id, user)
    return RecordResponse.model_validate(record)


@app.post("/records/{record_id}/regenerate", response_model=RegenerateResponse)
async def regenerate_record_messages(
    record_id: str,
    request: RegenerateRequest,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> RegenerateResponse:
    """Regenerate one message, or all three, from the selected news and cases."""
    try:
        record = await container.store.get_record(record_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await _get_owned_job(container, record.job_id, user)

    try:
        return await container.regenerator.regenerate_message(
            record_id,
            request.message_number,
            request.selected_news_indices,
            request.selected_case_ids,
            tone_override=request.regional_tone_key,
            current_message_text=request.current_message_text,
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Regeneration failed for record {record_id}: {e!s}")
        raise HTTPException(status_code=500, detail=f"Message regeneration failed: {e!s}") from e


@app.post("/cases/match", response_model=list[MatchedCase])
async def match_cases(
    request: CaseMatchRequest,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> list[MatchedCase]:
    """Up to two reference cases for an opportunity; empty when matching fails."""
    return await container.case_matcher.match_cases_for_opportunity(
        request.company_name, request.industry, request.country
    )


@app.post("/cron/process", response_model=CronResponse, response_model_by_alias=True)
async def process_pending(
    x_cron_secret: str | None = Header(default=None),
    container: ServiceContainer = Depends(get_container),
) -> CronResponse:
    """Run one scheduler tick. Called by an external cron with a shared secret."""
    expected = config.get("cron_secret", "")
    if not x_cron_secret or not secrets.compare_digest(x_cron_secret, expected):
        raise HTTPException(status_code=401, detail="Invalid cron secret")

    try:
        summary = await container.scheduler.process_pending_records()
    except Exception as e:
        logger.error(f"Scheduler tick failed: {e!s}")
        raise HTTPException(status_code=500, detail=f"Processing failed: {e!s}") from e

    return CronResponse(
        jobs_processed=summary.jobs_processed,
        records_processed=summary.records_processed,
        timestamp=datetime.now(UTC).isoformat(),
    )
