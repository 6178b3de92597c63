"""Period (time slot) master per branch. Intervals are half-open [start_time, end_time) and never overlap within a branch."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Time
from sqlalchemy.dialects.postgresql import UUID

from school_timetable.core.enums import PeriodType
from school_timetable.db.session import Base


class Period(Base):
    """Soft delete via deleted_at. Overlap is enforced by the periods service, not the database."""

    __tablename__ = "periods"
    __table_args__ = {"schema": "school"}

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False)
    branch_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    display_order = Column(Integer, nullable=False)
    period_type = Column(String(20), nullable=False, default=PeriodType.REGULAR.value)
    created_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
