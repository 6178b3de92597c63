"""Timetable (one version per class/section and effective window) and its day/period entries."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from school_timetable.db.session import Base


class Timetable(Base):
    """
    is_active: participates in teacher-conflict checks and class/teacher views.
    deleted_at: soft delete; a deleted timetable never has entries.
    """

    __tablename__ = "timetables"
    __table_args__ = {"schema": "school"}

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False)
    branch_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    academic_year_id = Column(
        UUID(as_uuid=True),
        ForeignKey("core.academic_years.id", ondelete="RESTRICT"),
        nullable=False,
    )
    class_id = Column(UUID(as_uuid=True), ForeignKey("core.classes.id"), nullable=False)
    section_id = Column(UUID(as_uuid=True), ForeignKey("core.sections.id"), nullable=False)
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    school_class = relationship("SchoolClass", foreign_keys=[class_id])
    section = relationship("Section", foreign_keys=[section_id])
    entries = relationship("TimetableEntry", back_populates="timetable")


class TimetableEntry(Base):
    """One subject/teacher booking for a day and period. A timetable holds at most one entry per day+period."""

    __tablename__ = "timetable_entries"
    __table_args__ = (
        UniqueConstraint("timetable_id", "day_of_week", "period_id", name="uq_timetable_entry_day_period"),
        {"schema": "school"},
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    timetable_id = Column(
        UUID(as_uuid=True),
        ForeignKey("school.timetables.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_of_week = Column(String(10), nullable=False)  # monday .. sunday
    period_id = Column(UUID(as_uuid=True), ForeignKey("school.periods.id", ondelete="RESTRICT"), nullable=False)
    subject_id = Column(UUID(as_uuid=True), ForeignKey("school.subjects.id", ondelete="RESTRICT"), nullable=False)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("core.teachers.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    timetable = relationship("Timetable", back_populates="entries")
    period = relationship("Period")
    subject = relationship("SchoolSubject")
    teacher = relationship("Teacher")
