"""
Double-booking predicates. Both only read: the caller decides what to do with
a hit and performs any write itself.
"""

from typing import Optional, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from school_timetable.core.enums import DayOfWeek
from school_timetable.core.models import SchoolClass, SchoolSubject, Section, Timetable, TimetableEntry

from .schemas import SectionConflict, TeacherConflict


async def find_teacher_conflict(
    db: AsyncSession,
    tenant_id: UUID,
    branch_id: UUID,
    teacher_id: UUID,
    day_of_week: Union[DayOfWeek, str],
    period_id: UUID,
    exclude_entry_id: Optional[UUID] = None,
) -> Optional[TeacherConflict]:
    """Is the teacher already booked at this day + period in any active timetable of the branch?"""
    stmt = (
        select(TimetableEntry.id, Timetable.id, SchoolClass.name, Section.name)
        .join(Timetable, TimetableEntry.timetable_id == Timetable.id)
        .join(SchoolClass, Timetable.class_id == SchoolClass.id)
        .join(Section, Timetable.section_id == Section.id)
        .where(
            TimetableEntry.teacher_id == teacher_id,
            TimetableEntry.day_of_week == DayOfWeek(day_of_week).value,
            TimetableEntry.period_id == period_id,
            Timetable.tenant_id == tenant_id,
            Timetable.branch_id == branch_id,
            Timetable.is_active.is_(True),
            Timetable.deleted_at.is_(None),
        )
    )
    if exclude_entry_id is not None:
        stmt = stmt.where(TimetableEntry.id != exclude_entry_id)
    result = await db.execute(stmt.order_by(TimetableEntry.created_at).limit(1))
    row = result.first()
    if row is None:
        return None
    entry_id, timetable_id, class_name, section_name = row
    return TeacherConflict(
        entry_id=entry_id,
        timetable_id=timetable_id,
        class_name=class_name,
        section_name=section_name,
    )


async def find_section_conflict(
    db: AsyncSession,
    timetable_id: UUID,
    day_of_week: Union[DayOfWeek, str],
    period_id: UUID,
    exclude_entry_id: Optional[UUID] = None,
) -> Optional[SectionConflict]:
    """Does this timetable already have an entry at this day + period?"""
    stmt = (
        select(TimetableEntry.id, SchoolSubject.name)
        .join(SchoolSubject, TimetableEntry.subject_id == SchoolSubject.id)
        .where(
            TimetableEntry.timetable_id == timetable_id,
            TimetableEntry.day_of_week == DayOfWeek(day_of_week).value,
            TimetableEntry.period_id == period_id,
        )
    )
    if exclude_entry_id is not None:
        stmt = stmt.where(TimetableEntry.id != exclude_entry_id)
    result = await db.execute(stmt.limit(1))
    row = result.first()
    if row is None:
        return None
    return SectionConflict(entry_id=row[0], subject_name=row[1])
