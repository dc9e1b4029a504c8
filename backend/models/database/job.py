"""
Job model - one uploaded batch of leads
"""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database import Base
from models.enums import JobStatus


class Job(Base):
    """Batch of lead records processed by the enrichment scheduler"""

    __tablename__ = "lead_jobs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    filename = Column(String(255), nullable=False)
    file_path = Column(String(500), nullable=True)
    status = Column(String(50), default=JobStatus.PENDING.value, nullable=False, index=True)
    total_records = Column(Integer, default=0, nullable=False)
    # Projection of completed + failed records, refreshed after every scheduler tick
    processed_records = Column(Integer, default=0, nullable=False)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="jobs")
    records = relationship(
        "ProcessingRecord", back_populates="job", cascade="all, delete-orphan", passive_deletes=True
    )
