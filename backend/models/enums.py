from enum import Enum


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"
    CANCELLED = "cancelled"


# Statuses the scheduler may still pick records from
ACTIVE_JOB_STATUSES = (JobStatus.PENDING, JobStatus.PROCESSING)


class RecordStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_RECORD_STATUSES = (RecordStatus.COMPLETED, RecordStatus.FAILED)


class SettingCategory(str, Enum):
    GENERAL = "general"
    PROMPTS = "prompts"
    REGIONAL_TONES = "regional_tones"
    AGENT = "agent"
