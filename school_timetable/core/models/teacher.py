"""Teaching staff. Each teacher works in exactly one branch; only ACTIVE teachers can be scheduled."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID

from school_timetable.core.enums import TeacherStatus
from school_timetable.db.session import Base


class Teacher(Base):
    __tablename__ = "teachers"
    __table_args__ = {"schema": "core"}

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    branch_id = Column(UUID(as_uuid=True), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    status = Column(String(20), nullable=False, default=TeacherStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
