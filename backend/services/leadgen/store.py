"""Persistence for jobs and their lead records.

Every method opens its own short session so concurrent pipeline tasks never
share one.
"""

from collections.abc import Callable, Iterable
from typing import Any

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from database import async_session
from models.database import Job, ProcessingRecord
from models.enums import ACTIVE_JOB_STATUSES, JobStatus, RecordStatus, TERMINAL_RECORD_STATUSES
from shared.logging_utils import setup_logging
from shared.models import EnrichmentResult, LeadRow

logger = setup_logging("leadgen-store")


class JobNotFoundError(Exception):
    """Raised when a job does not exist (or is not visible to the caller)."""


class RecordNotFoundError(Exception):
    """Raised when a processing record does not exist."""


class InvalidJobStateError(Exception):
    """Raised when a job cannot make the requested transition."""


class JobRecordStore:
    """CRUD over jobs and records plus the scheduler's selection queries."""

    def __init__(self, session_factory: Callable[[], AsyncSession] = async_session):
        self._session_factory = session_factory

    # Jobs
    async def create_job(
        self,
        filename: str,
        rows: list[LeadRow],
        user_id: int | None = None,
        file_path: str | None = None,
    ) -> Job:
        if not rows:
            # zero-record jobs never leave pending
            raise ValueError("A job needs at least one row")
        async with self._session_factory() as session:
            job = Job(
                user_id=user_id,
                filename=filename,
                file_path=file_path,
                status=JobStatus.PENDING.value,
                total_records=len(rows),
                processed_records=0,
            )
            session.add(job)
            await session.flush()
            session.add_all(
                ProcessingRecord(
                    job_id=job.id,
                    status=RecordStatus.PENDING.value,
                    company_name=row.company_name,
                    first_name=row.first_name,
                    last_name=row.last_name,
                    linkedin_link=row.linkedin_link,
                    job_title=row.job_title,
                    raw_data=row.extra_columns(),
                    row_index=index,
                )
                for index, row in enumerate(rows)
            )
            await session.commit()
            logger.info(f"Created job {job.id} ({filename}) with {len(rows)} records")
            return job

    async def get_job(self, job_id: str, user_id: int | None = None) -> Job:
        async with self._session_factory() as session:
            job = await session.get(Job, job_id)
        if job is None or (user_id is not None and job.user_id != user_id):
            raise JobNotFoundError(f"Job {job_id} not found")
        return job

    async def list_jobs(self, user_id: int | None = None) -> list[Job]:
        query = select(Job).order_by(Job.created_at.desc())
        if user_id is not None:
            query = query.where(Job.user_id == user_id)
        async with self._session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def oldest_pending_job(self) -> Job | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Job)
                .where(Job.status == JobStatus.PENDING.value)
                .order_by(Job.created_at, Job.id)
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def jobs_with_status(self, status: JobStatus) -> list[Job]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Job).where(Job.status == status.value).order_by(Job.created_at, Job.id)
            )
            return list(result.scalars().all())

    async def update_job_aggregate(self, job_id: str, status: JobStatus, processed: int) -> None:
        """Persist a recomputed status and processed count.

        A cancelled job keeps its status; only the count is refreshed.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                update(Job)
                .where(Job.id == job_id, Job.status != JobStatus.CANCELLED.value)
                .values(status=status.value, processed_records=processed)
            )
            if result.rowcount == 0:
                await session.execute(
                    update(Job).where(Job.id == job_id).values(processed_records=processed)
                )
            await session.commit()

    async def cancel_job(self, job_id: str, user_id: int | None = None) -> Job:
        job = await self.get_job(job_id, user_id)
        active = [status.value for status in ACTIVE_JOB_STATUSES]
        async with self._session_factory() as session:
            result = await session.execute(
                update(Job)
                .where(Job.id == job_id, Job.status.in_(active))
                .values(status=JobStatus.CANCELLED.value)
            )
            await session.commit()
        if result.rowcount == 0:
            raise InvalidJobStateError(f"Job {job_id} cannot be cancelled from status {job.status}")
        logger.info(f"Job {job_id} cancelled")
        return await self.get_job(job_id)

    async def delete_job(self, job_id: str, user_id: int | None = None) -> None:
        async with self._session_factory() as session:
            job = await session.get(Job, job_id)
            if job is None or (user_id is not None and job.user_id != user_id):
                raise JobNotFoundError(f"Job {job_id} not found")
            if job.status == JobStatus.PROCESSING.value:
                raise InvalidJobStateError("Cannot delete a job that is currently processing")
            await session.execute(delete(ProcessingRecord).where(ProcessingRecord.job_id == job_id))
            await session.delete(job)
            await session.commit()
        logger.info(f"Job {job_id} deleted")

    # Records
    async def get_record(self, record_id: str) -> ProcessingRecord:
        async with self._session_factory() as session:
            record = await session.get(ProcessingRecord, record_id)
        if record is None:
            raise RecordNotFoundError(f"Record {record_id} not found")
        return record

    async def records_for_job(self, job_id: str) -> list[ProcessingRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ProcessingRecord)
                .where(ProcessingRecord.job_id == job_id)
                .order_by(ProcessingRecord.row_index)
            )
            return list(result.scalars().all())

    async def pending_records(self, job_id: str, limit: int) -> list[ProcessingRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ProcessingRecord)
                .where(
                    ProcessingRecord.job_id == job_id,
                    ProcessingRecord.status == RecordStatus.PENDING.value,
                )
                .order_by(ProcessingRecord.row_index)
                .limit(limit)
            )
            return list(result.scalars().all())

    async def record_statuses(self, job_id: str) -> list[RecordStatus]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ProcessingRecord.status).where(ProcessingRecord.job_id == job_id)
            )
            return [RecordStatus(status) for status in result.scalars().all()]

    async def claim_record(self, record_id: str) -> bool:
        """Move a record from pending to processing; False if someone else got it first."""
        async with self._session_factory() as session:
            result = await session.execute(
                update(ProcessingRecord)
                .where(
                    ProcessingRecord.id == record_id,
                    ProcessingRecord.status == RecordStatus.PENDING.value,
                )
                .values(status=RecordStatus.PROCESSING.value)
            )
            await session.commit()
            return result.rowcount == 1

    async def complete_record(
        self, record_id: str, result: EnrichmentResult, processing_time_ms: int
    ) -> None:
        await self._update_record(
            record_id,
            status=RecordStatus.COMPLETED.value,
            company_region=result.company_region,
            company_industry=result.company_industry,
            company_news=[item.model_dump() for item in result.company_news],
            matched_cases=[case.model_dump() for case in result.matched_cases],
            selected_news_indices=result.selected_news_indices,
            selected_case_indices=result.selected_case_indices,
            applied_regional_tone=result.applied_regional_tone,
            message1=result.message1,
            message2=result.message2,
            message3=result.message3,
            research_data=result.research_data,
            is_degraded=result.degraded,
            processing_time_ms=processing_time_ms,
            error_message=None,
        )

    async def fail_record(self, record_id: str, error_message: str, processing_time_ms: int) -> None:
        await self._update_record(
            record_id,
            status=RecordStatus.FAILED.value,
            error_message=error_message,
            processing_time_ms=processing_time_ms,
        )

    async def update_record_messages(
        self,
        record_id: str,
        messages: dict[int, str],
        selected_news_indices: list[int],
        selected_case_indices: list[int],
        applied_regional_tone: str | None = None,
    ) -> None:
        values: dict[str, Any] = {f"message{number}": text for number, text in messages.items()}
        values["selected_news_indices"] = selected_news_indices
        values["selected_case_indices"] = selected_case_indices
        if applied_regional_tone is not None:
            values["applied_regional_tone"] = applied_regional_tone
        await self._update_record(record_id, **values)

    async def _update_record(self, record_id: str, **values: Any) -> None:
        async with self._session_factory() as session:
            result = await session.execute(
                update(ProcessingRecord).where(ProcessingRecord.id == record_id).values(**values)
            )
            await session.commit()
        if result.rowcount == 0:
            raise RecordNotFoundError(f"Record {record_id} not found")

    # Statistics
    async def record_counts(self, job_id: str) -> dict[str, Any]:
        """Per-status counts and average processing time for one job."""
        status = ProcessingRecord.status

        def _count(value: RecordStatus):
            return func.count(case((status == value.value, 1)))

        async with self._session_factory() as session:
            result = await session.execute(
                select(
                    func.avg(ProcessingRecord.processing_time_ms),
                    _count(RecordStatus.PENDING),
                    _count(RecordStatus.PROCESSING),
                    _count(RecordStatus.COMPLETED),
                    _count(RecordStatus.FAILED),
                ).where(ProcessingRecord.job_id == job_id)
            )
            avg_ms, pending, processing, completed, failed = result.one()
        return {
            "average_processing_time_ms": float(avg_ms or 0),
            "pending": pending or 0,
            "processing": processing or 0,
            "completed": completed or 0,
            "failed": failed or 0,
        }

    async def queue_position(self, job: Job) -> int:
        """1-based position among the owner's pending jobs; 0 when not pending."""
        if job.status != JobStatus.PENDING.value:
            return 0
        query = select(func.count(Job.id)).where(
            Job.status == JobStatus.PENDING.value, Job.created_at < job.created_at
        )
        if job.user_id is not None:
            query = query.where(Job.user_id == job.user_id)
        async with self._session_factory() as session:
            ahead = (await session.execute(query)).scalar_one()
        return ahead + 1


def count_processed(statuses: Iterable[RecordStatus]) -> int:
    return sum(1 for status in statuses if status in TERMINAL_RECORD_STATUSES)
