"""Job progress statistics and completion estimates."""

from typing import Any

from models.database import Job
from models.enums import JobStatus
from shared.models import JobStats


def compute_job_stats(job: Job, counts: dict[str, Any], queue_position: int) -> JobStats:
    """Build progress stats from per-status counts.

    The time estimate and throughput are only reported while the job is
    processing and at least one record has a recorded duration.
    """
    average_ms = float(counts.get("average_processing_time_ms") or 0)
    remaining_ms = 0.0
    per_minute = 0.0
    if job.status == JobStatus.PROCESSING.value and average_ms > 0:
        remaining = max((job.total_records or 0) - (job.processed_records or 0), 0)
        remaining_ms = remaining * average_ms
        per_minute = round(60000 / average_ms, 1)

    return JobStats(
        pending_records=counts.get("pending", 0),
        processing_records=counts.get("processing", 0),
        completed_records=counts.get("completed", 0),
        failed_records=counts.get("failed", 0),
        average_processing_time_ms=round(average_ms),
        queue_position=queue_position,
        estimated_time_remaining_ms=remaining_ms,
        records_per_minute=per_minute,
    )
