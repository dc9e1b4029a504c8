"""
Database models package - SQLAlchemy ORM models
"""

from .case import Case
from .job import Job
from .record import ProcessingRecord
from .setting import SystemSetting
from .user import User

__all__ = [
    "Case",
    "Job",
    "ProcessingRecord",
    "SystemSetting",
    "User",
]
