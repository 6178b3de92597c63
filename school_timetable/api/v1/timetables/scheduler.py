"""
Entry scheduling: add/remove single entries and dry-run validation of many.

Pipeline per proposed entry: references -> teacher conflict -> section
conflict -> write. Nothing is written unless every step passes.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from school_timetable.core.exceptions import ConflictError, NotFoundError, ServiceError
from school_timetable.core.models import Timetable, TimetableEntry
from school_timetable.core.schemas import ScopeContext

from .conflicts import find_section_conflict, find_teacher_conflict
from .references import validate_entry_references
from .schemas import TimetableEntryCreate, TimetableEntryResponse, TimetableValidationReport
from .service import entry_to_response, get_scoped_timetable

logger = logging.getLogger(__name__)

TEACHER_CONFLICT = "TEACHER_CONFLICT"
SECTION_CONFLICT = "SECTION_CONFLICT"
ENTRY_NOT_FOUND = "ENTRY_NOT_FOUND"

SLOT_CONSTRAINT = "uq_timetable_entry_day_period"


def _is_slot_violation(e: IntegrityError) -> bool:
    """True when the insert broke the one-entry-per-slot constraint (not an FK or NOT NULL)."""
    detail = str(e.orig)
    if SLOT_CONSTRAINT in detail:
        return True
    # sqlite names the columns instead of the constraint
    return "UNIQUE" in detail and "timetable_entries.period_id" in detail


async def check_entry(
    db: AsyncSession,
    scope: ScopeContext,
    timetable: Timetable,
    payload: TimetableEntryCreate,
    lock: bool = False,
) -> None:
    """Raise the first reference or conflict error for payload in timetable; no writes."""
    await validate_entry_references(db, scope, timetable.class_id, payload, lock_teacher=lock)

    teacher_conflict = await find_teacher_conflict(
        db,
        scope.tenant_id,
        scope.branch_id,
        payload.teacher_id,
        payload.day_of_week,
        payload.period_id,
    )
    if teacher_conflict:
        raise ConflictError(
            f"Teacher is already assigned to {teacher_conflict.class_name} - "
            f"{teacher_conflict.section_name} at this time",
            TEACHER_CONFLICT,
        )

    section_conflict = await find_section_conflict(db, timetable.id, payload.day_of_week, payload.period_id)
    if section_conflict:
        raise ConflictError(
            f"Section already has {section_conflict.subject_name} at this time",
            SECTION_CONFLICT,
        )


async def add_entry(
    db: AsyncSession,
    scope: ScopeContext,
    timetable_id: UUID,
    payload: TimetableEntryCreate,
) -> TimetableEntryResponse:
    # Row locks on the timetable and the teacher are held from the checks until commit,
    # so two bookings of the same teacher or timetable cannot both pass the checks.
    timetable = await get_scoped_timetable(db, scope, timetable_id, for_update=True)
    try:
        await check_entry(db, scope, timetable, payload, lock=True)
    except ConflictError as e:
        await db.rollback()
        logger.warning("Timetable entry rejected timetable=%s code=%s: %s", timetable_id, e.code, e.message)
        raise
    except ServiceError:
        await db.rollback()
        raise

    obj = TimetableEntry(
        timetable_id=timetable_id,
        day_of_week=payload.day_of_week.value,
        period_id=payload.period_id,
        subject_id=payload.subject_id,
        teacher_id=payload.teacher_id,
        created_by=scope.actor_id,
    )
    try:
        db.add(obj)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if not _is_slot_violation(e):
            raise
        # a concurrent booking took the slot between the checks and the insert
        section_conflict = await find_section_conflict(db, timetable_id, payload.day_of_week, payload.period_id)
        subject = section_conflict.subject_name if section_conflict else "an entry"
        logger.warning("Timetable entry lost slot race timetable=%s day=%s period=%s",
                       timetable_id, payload.day_of_week.value, payload.period_id)
        raise ConflictError(f"Section already has {subject} at this time", SECTION_CONFLICT)

    logger.info(
        "Timetable entry added timetable=%s entry=%s day=%s period=%s by=%s",
        timetable_id, obj.id, obj.day_of_week, obj.period_id, scope.actor_id,
    )
    result = await db.execute(
        select(TimetableEntry)
        .where(TimetableEntry.id == obj.id)
        .options(
            selectinload(TimetableEntry.period),
            selectinload(TimetableEntry.subject),
            selectinload(TimetableEntry.teacher),
        )
    )
    return entry_to_response(result.scalar_one())


async def remove_entry(
    db: AsyncSession,
    scope: ScopeContext,
    timetable_id: UUID,
    entry_id: UUID,
) -> None:
    """No conflict re-check: removing a booking can only free slots."""
    await get_scoped_timetable(db, scope, timetable_id)
    result = await db.execute(
        select(TimetableEntry).where(
            TimetableEntry.id == entry_id,
            TimetableEntry.timetable_id == timetable_id,
        )
    )
    obj = result.scalar_one_or_none()
    if not obj:
        raise NotFoundError("Entry not found", ENTRY_NOT_FOUND)
    await db.delete(obj)
    await db.commit()
    logger.info("Timetable entry removed timetable=%s entry=%s by=%s", timetable_id, entry_id, scope.actor_id)


async def validate_entries(
    db: AsyncSession,
    scope: ScopeContext,
    timetable_id: UUID,
    candidates: List[TimetableEntryCreate],
) -> TimetableValidationReport:
    """
    Dry run of add_entry for each candidate against the stored timetable.
    Collects every failure instead of stopping at the first; persists nothing.
    Candidates are checked independently, not against each other.
    """
    try:
        timetable = await get_scoped_timetable(db, scope, timetable_id)
    except NotFoundError as e:
        return TimetableValidationReport(valid=False, errors=[e.message])

    errors: List[str] = []
    for candidate in candidates:
        try:
            await check_entry(db, scope, timetable, candidate)
        except ServiceError as e:
            errors.append(f"{candidate.day_of_week.value} Period {candidate.period_id}: {e.message}")
    return TimetableValidationReport(valid=not errors, errors=errors)
