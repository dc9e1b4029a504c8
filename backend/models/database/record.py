"""
Processing record model - one lead row and its enrichment output
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database import Base
from models.enums import RecordStatus


class ProcessingRecord(Base):
    """Lead record enriched by the pipeline"""

    __tablename__ = "lead_records"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    job_id = Column(
        String(36), ForeignKey("lead_jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(String(50), default=RecordStatus.PENDING.value, nullable=False, index=True)

    # Input columns
    company_name = Column(String(255), nullable=False)
    linkedin_link = Column(String(500), nullable=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    job_title = Column(String(255), nullable=True)
    raw_data = Column(JSON, default=dict)
    row_index = Column(Integer, default=0, nullable=False)

    # Enrichment output
    research_data = Column(JSON, nullable=True)
    company_region = Column(String(100), nullable=True)
    company_industry = Column(String(100), nullable=True)
    company_news = Column(JSON, nullable=True)  # [{title, date, source, summary}]
    matched_cases = Column(JSON, nullable=True)  # [{title, link}]
    selected_news_indices = Column(JSON, nullable=True)
    selected_case_indices = Column(JSON, nullable=True)
    applied_regional_tone = Column(String(100), nullable=True)
    message1 = Column(Text, nullable=True)
    message2 = Column(Text, nullable=True)
    message3 = Column(Text, nullable=True)
    is_degraded = Column(Boolean, default=False, nullable=False)

    processing_time_ms = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)
    retry_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    job = relationship("Job", back_populates="records")
