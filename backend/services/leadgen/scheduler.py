"""Job/record scheduler.

Each call to ``process_pending_records`` is one tick: pick a bounded batch of
pending records, run them concurrently, write every outcome back and then
recompute the status of every job touched.
"""

import asyncio
import time
from collections.abc import Iterable

from models.database import ProcessingRecord
from models.enums import JobStatus, RecordStatus
from services.leadgen.pipeline import RecordEnrichmentPipeline
from services.leadgen.store import JobRecordStore, count_processed
from shared.config import config
from shared.logging_utils import setup_logging
from shared.models import LeadInput, ProcessingSummary

logger = setup_logging("leadgen-scheduler")


def aggregate_job_status(current: JobStatus, statuses: Iterable[RecordStatus]) -> JobStatus:
    """Derive a job status from its record statuses.

    Cancelled jobs and jobs whose records are all still pending (including
    jobs with no records) keep ``current``.
    """
    if current == JobStatus.CANCELLED:
        return current
    statuses = list(statuses)
    if not statuses:
        return current

    failed = sum(1 for status in statuses if status == RecordStatus.FAILED)
    completed = sum(1 for status in statuses if status == RecordStatus.COMPLETED)
    processing = sum(1 for status in statuses if status == RecordStatus.PROCESSING)

    if failed + completed == len(statuses):
        if failed == len(statuses):
            return JobStatus.FAILED
        if failed:
            return JobStatus.COMPLETED_WITH_ERRORS
        return JobStatus.COMPLETED
    if processing or failed or completed:
        return JobStatus.PROCESSING
    return current


class JobScheduler:
    """Advances pending records with bounded concurrency."""

    def __init__(
        self,
        store: JobRecordStore,
        pipeline: RecordEnrichmentPipeline,
        batch_size: int | None = None,
    ):
        self.store = store
        self.pipeline = pipeline
        self.batch_size = batch_size or config.get("processing_batch_size", 5)

    async def process_pending_records(self) -> ProcessingSummary:
        """Run one scheduler tick."""
        batch = await self._select_batch()
        if batch is None:
            return ProcessingSummary()
        job_ids, records = batch

        processed: list[ProcessingRecord] = []
        if records:
            outcomes = await asyncio.gather(
                *(self.process_record(record) for record in records), return_exceptions=True
            )
            for record, outcome in zip(records, outcomes):
                if isinstance(outcome, BaseException):
                    # process_record already tried to persist the failure
                    logger.error(f"Record {record.id} could not be written back: {outcome}")
                elif outcome is not None:
                    processed.append(record)

        for job_id in job_ids:
            try:
                await self.recompute_job_status(job_id)
            except Exception as e:
                logger.error(f"Failed to update status of job {job_id}: {e}")

        # Records claimed by an overlapping tick are reported there, not here
        touched_jobs = {record.job_id for record in processed}
        logger.info(f"Tick processed {len(processed)} records across {len(touched_jobs)} jobs")
        return ProcessingSummary(jobs_processed=len(touched_jobs), records_processed=len(processed))

    async def _select_batch(self) -> tuple[list[str], list[ProcessingRecord]] | None:
        """Oldest pending job first, otherwise leftovers from jobs already processing."""
        job = await self.store.oldest_pending_job()
        if job is not None:
            records = await self.store.pending_records(job.id, self.batch_size)
            return [job.id], records

        records: list[ProcessingRecord] = []
        for active_job in await self.store.jobs_with_status(JobStatus.PROCESSING):
            records.extend(await self.store.pending_records(active_job.id, self.batch_size))
            if len(records) >= self.batch_size:
                break
        if not records:
            return None
        records = records[: self.batch_size]
        job_ids = list(dict.fromkeys(record.job_id for record in records))
        return job_ids, records

    async def process_record(self, record: ProcessingRecord) -> RecordStatus | None:
        """Claim, enrich and write back one record.

        Returns the written status, or None when another tick claimed the
        record first. Pipeline errors never reach here as exceptions; store
        errors are recorded as a failed record.
        """
        if not await self.store.claim_record(record.id):
            logger.info(f"Record {record.id} already claimed, skipping")
            return None

        started = time.perf_counter()
        try:
            result = await self.pipeline.enrich(LeadInput.model_validate(record))
            await self.store.complete_record(record.id, result, _elapsed_ms(started))
            return RecordStatus.COMPLETED
        except Exception as e:
            logger.error(f"Record {record.id} failed: {e}")
            await self.store.fail_record(record.id, str(e) or type(e).__name__, _elapsed_ms(started))
            return RecordStatus.FAILED

    async def recompute_job_status(self, job_id: str) -> JobStatus:
        job = await self.store.get_job(job_id)
        statuses = await self.store.record_statuses(job_id)
        status = aggregate_job_status(JobStatus(job.status), statuses)
        await self.store.update_job_aggregate(job_id, status, count_processed(statuses))
        if status != job.status:
            logger.info(f"Job {job_id} status {job.status} -> {status.value}")
        return status


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
