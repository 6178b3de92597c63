from datetime import date, datetime, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer

from school_timetable.core.enums import DayOfWeek


class TimetableCreate(BaseModel):
    """Create an (initially empty, active) timetable for one class section."""

    academic_year_id: UUID
    class_id: UUID
    section_id: UUID
    effective_from: date = Field(..., description="First day this timetable applies (YYYY-MM-DD)")
    effective_to: Optional[date] = Field(None, description="Exclusive end of the window; open-ended when omitted")


class TimetableUpdate(BaseModel):
    """Window and activation changes only. Sending effective_to=null clears the end date."""

    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    is_active: Optional[bool] = None


class TimetableEntryCreate(BaseModel):
    day_of_week: DayOfWeek
    period_id: UUID
    subject_id: UUID
    teacher_id: UUID


class TimetableEntryResponse(BaseModel):
    id: UUID
    timetable_id: UUID
    day_of_week: DayOfWeek
    period_id: UUID
    subject_id: UUID
    teacher_id: UUID
    period_name: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    subject_name: Optional[str] = None
    subject_code: Optional[str] = None
    teacher_name: Optional[str] = None

    class Config:
        from_attributes = True

    @field_serializer("start_time", "end_time")
    def serialize_time_24(self, t: Optional[time]) -> Optional[str]:
        return t.strftime("%H:%M") if t is not None else None


class TimetableResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    branch_id: UUID
    academic_year_id: UUID
    class_id: UUID
    section_id: UUID
    class_name: Optional[str] = None
    section_name: Optional[str] = None
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    entries: List[TimetableEntryResponse] = []

    class Config:
        from_attributes = True


class TeacherTimetableEntryResponse(BaseModel):
    """One teaching slot of a teacher, with where it is taught."""

    id: UUID
    timetable_id: UUID
    day_of_week: DayOfWeek
    period_id: UUID
    period_name: str
    start_time: time
    end_time: time
    subject_id: UUID
    subject_name: str
    class_id: UUID
    class_name: str
    section_id: UUID
    section_name: str

    @field_serializer("start_time", "end_time")
    def serialize_time_24(self, t: time) -> str:
        return t.strftime("%H:%M")


class TimetableValidateRequest(BaseModel):
    timetable_id: UUID
    entries: List[TimetableEntryCreate]


class TimetableValidationReport(BaseModel):
    valid: bool
    errors: List[str]


class TeacherConflict(BaseModel):
    """Existing booking of the teacher at the requested day and period."""

    entry_id: UUID
    timetable_id: UUID
    class_name: str
    section_name: str


class SectionConflict(BaseModel):
    """Existing entry of the same timetable at the requested day and period."""

    entry_id: UUID
    subject_name: str
