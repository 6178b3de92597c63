from datetime import datetime, time
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer, field_validator

from school_timetable.core.enums import PeriodType


def _parse_time_24(v: Union[str, time]) -> time:
    """Parse 24-hour time string (HH:MM or HH:MM:SS) to a minute-resolution time."""
    if isinstance(v, str):
        v = v.strip()
        if len(v) == 5:  # HH:MM
            v = datetime.strptime(v, "%H:%M").time()
        else:
            v = datetime.strptime(v, "%H:%M:%S").time()
    if not isinstance(v, time):
        raise ValueError("start_time/end_time must be 24-hour string (e.g. 09:00, 09:45) or time")
    if v.second or v.microsecond:
        raise ValueError("start_time/end_time must be whole minutes")
    return v


class PeriodCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50, description="e.g. Period 1, Lunch")
    start_time: Union[str, time] = Field(..., description="24-hour format, e.g. 09:00")
    end_time: Union[str, time] = Field(..., description="24-hour format, e.g. 09:45")
    display_order: int = Field(..., ge=1)
    period_type: PeriodType = PeriodType.REGULAR

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time(cls, v: Union[str, time]) -> time:
        return _parse_time_24(v)


class PeriodUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    start_time: Optional[Union[str, time]] = Field(None, description="24-hour format, e.g. 09:00")
    end_time: Optional[Union[str, time]] = Field(None, description="24-hour format, e.g. 09:45")
    display_order: Optional[int] = Field(None, ge=1)
    period_type: Optional[PeriodType] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time(cls, v: Optional[Union[str, time]]) -> Optional[time]:
        if v is None:
            return None
        return _parse_time_24(v)


class PeriodResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    branch_id: UUID
    name: str
    start_time: time
    end_time: time
    display_order: int
    period_type: PeriodType
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_serializer("start_time", "end_time")
    def serialize_time_24(self, t: time) -> str:
        """Output as 24-hour string HH:MM (e.g. 09:00, 09:45)."""
        return t.strftime("%H:%M")
