"""
System setting model - prompt templates and other key/value configuration
"""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from database import Base
from models.enums import SettingCategory


class SystemSetting(Base):
    """Key/value setting edited by administrators"""

    __tablename__ = "system_settings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), default=SettingCategory.GENERAL.value, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
