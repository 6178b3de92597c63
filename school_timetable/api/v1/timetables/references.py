"""Reference checks for a proposed timetable entry, cheapest first, in a fixed order."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from school_timetable.core.enums import TeacherStatus
from school_timetable.core.exceptions import InvalidInputError, NotFoundError
from school_timetable.core.models import Teacher
from school_timetable.core.schemas import ScopeContext

from . import lookups
from .schemas import TimetableEntryCreate

PERIOD_NOT_FOUND = "PERIOD_NOT_FOUND"
SUBJECT_NOT_FOUND = "SUBJECT_NOT_FOUND"
SUBJECT_NOT_MAPPED = "SUBJECT_NOT_MAPPED"
TEACHER_NOT_FOUND = "TEACHER_NOT_FOUND"
TEACHER_WRONG_BRANCH = "TEACHER_WRONG_BRANCH"
TEACHER_INACTIVE = "TEACHER_INACTIVE"


async def validate_entry_references(
    db: AsyncSession,
    scope: ScopeContext,
    class_id: UUID,
    payload: TimetableEntryCreate,
    lock_teacher: bool = False,
) -> Teacher:
    """
    Period (tenant + branch) -> subject (tenant) -> class-subject mapping ->
    teacher (tenant) -> teacher branch -> teacher status. Raises on the first
    failure; returns the teacher on success.
    """
    period = await lookups.find_period(db, payload.period_id, scope.tenant_id, scope.branch_id)
    if not period:
        raise NotFoundError("Period not found", PERIOD_NOT_FOUND)

    subject = await lookups.find_subject(db, payload.subject_id, scope.tenant_id)
    if not subject:
        raise NotFoundError("Subject not found", SUBJECT_NOT_FOUND)

    if not await lookups.class_subject_exists(db, class_id, payload.subject_id):
        raise InvalidInputError("Subject is not assigned to this class", SUBJECT_NOT_MAPPED)

    teacher = await lookups.find_teacher(db, payload.teacher_id, scope.tenant_id, for_update=lock_teacher)
    if not teacher:
        raise NotFoundError("Teacher not found", TEACHER_NOT_FOUND)
    if teacher.branch_id != scope.branch_id:
        raise NotFoundError("Teacher does not belong to this branch", TEACHER_WRONG_BRANCH)
    if teacher.status != TeacherStatus.ACTIVE.value:
        raise InvalidInputError("Teacher is not active", TEACHER_INACTIVE)
    return teacher
