from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.enums import JobStatus, RecordStatus


# Enrichment payloads
class NewsItem(BaseModel):
    title: str = Field(..., description="Headline of the news item")
    date: str = Field(default="", description="Publication date as reported by the source")
    source: str = Field(default="", description="Source URL or publication name")
    summary: str = Field(default="", description="Short summary of the article")

    @field_validator("date", "source", "summary", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class MatchedCase(BaseModel):
    title: str
    link: str = ""


class CaseData(BaseModel):
    """Reference case study as loaded from the catalog."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    industry: str = "Other"
    country: str = "Unknown"
    link: str = ""

    def to_match(self) -> MatchedCase:
        return MatchedCase(title=self.title, link=self.link)


class LeadInput(BaseModel):
    """Raw lead fields the enrichment pipeline works from."""

    model_config = ConfigDict(from_attributes=True)

    company_name: str
    first_name: str
    last_name: str
    linkedin_link: str | None = None
    job_title: str | None = None


class EnrichmentResult(BaseModel):
    """Output of one pipeline run, real or fallback."""

    company_region: str
    company_industry: str
    company_news: list[NewsItem] = Field(default_factory=list)
    matched_cases: list[MatchedCase] = Field(default_factory=list)
    message1: str
    message2: str
    message3: str
    applied_regional_tone: str
    selected_news_indices: list[int] = Field(default_factory=list)
    selected_case_indices: list[int] = Field(default_factory=list)
    research_data: dict[str, Any] = Field(default_factory=dict)
    degraded: bool = Field(default=False, description="True when the fallback content was used")


# Job intake
class LeadRow(BaseModel):
    """One spreadsheet row; unknown columns are kept as extra fields."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", str_strip_whitespace=True)

    company_name: str = Field(..., min_length=1, alias="Company Name")
    first_name: str = Field(..., min_length=1, alias="First Name")
    last_name: str = Field(..., min_length=1, alias="Last Name")
    linkedin_link: str | None = Field(default=None, alias="LinkedIn Link")
    job_title: str | None = Field(default=None, alias="Job Title")

    def extra_columns(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class CreateJobRequest(BaseModel):
    filename: str = Field(..., min_length=1, max_length=255)
    rows: list[LeadRow] = Field(..., min_length=1)


# Views
class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: int | None = None
    filename: str
    status: JobStatus
    total_records: int
    processed_records: int
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class RecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    job_id: str
    status: RecordStatus
    company_name: str
    first_name: str
    last_name: str
    linkedin_link: str | None = None
    job_title: str | None = None
    raw_data: dict[str, Any] | None = None
    company_region: str | None = None
    company_industry: str | None = None
    company_news: list[NewsItem] | None = None
    matched_cases: list[MatchedCase] | None = None
    selected_news_indices: list[int] | None = None
    selected_case_indices: list[int] | None = None
    applied_regional_tone: str | None = None
    message1: str | None = None
    message2: str | None = None
    message3: str | None = None
    research_data: dict[str, Any] | None = None
    is_degraded: bool = False
    processing_time_ms: int | None = None
    error_message: str | None = None
    retry_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None


class JobStats(BaseModel):
    pending_records: int = 0
    processing_records: int = 0
    completed_records: int = 0
    failed_records: int = 0
    average_processing_time_ms: float = 0
    queue_position: int = 0
    estimated_time_remaining_ms: float = 0
    records_per_minute: float = 0


class JobDetailResponse(BaseModel):
    job: JobResponse
    stats: JobStats


class JobResultsResponse(BaseModel):
    job: JobResponse
    records: list[RecordResponse]


# Operations
class ProcessingSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    jobs_processed: int = Field(default=0, alias="jobsProcessed")
    records_processed: int = Field(default=0, alias="recordsProcessed")


class CronResponse(ProcessingSummary):
    success: bool = True
    timestamp: str


class RegenerateRequest(BaseModel):
    message_number: Literal[1, 2, 3, "all"] = Field(..., description="Message to regenerate")
    selected_news_indices: list[int] = Field(default_factory=list)
    selected_case_ids: list[str] = Field(
        default_factory=list, description="Case ids in the form case-<index> or legacy-<index>"
    )
    current_message_text: str | None = Field(
        None, description="Operator's current version of the message being regenerated"
    )
    regional_tone_key: str | None = Field(None, description="Tone template key override")


class RegenerateResponse(BaseModel):
    record_id: str
    message_number: Literal[1, 2, 3, "all"]
    messages: dict[str, str]
    applied_regional_tone: str
    region_name: str
    selected_news_indices: list[int]
    selected_case_indices: list[int]


class CaseMatchRequest(BaseModel):
    company_name: str = Field(..., min_length=1)
    industry: str = "Other"
    country: str = "Unknown"


# Settings
class SettingView(BaseModel):
    """Immutable snapshot of one setting row."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    key: str
    value: str
    description: str | None = None
    category: str = "general"
    updated_at: datetime | None = None


class SettingUpdateRequest(BaseModel):
    value: str
