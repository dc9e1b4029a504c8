"""
Case study model - local fallback for the remote case catalog
"""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String, Text

from database import Base


class Case(Base):
    """Reference case study"""

    __tablename__ = "cases"

    id = Column(String(100), primary_key=True)
    title = Column(String(255), nullable=False)
    industry = Column(String(100), nullable=False)
    country = Column(String(100), nullable=True)
    technologies = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    outcomes = Column(Text, nullable=True)
    link = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
