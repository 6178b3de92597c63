"""Timetable lifecycle and read views. Entry add/remove lives in scheduler.py."""

import logging
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from school_timetable.core.enums import DAY_ORDER
from school_timetable.core.exceptions import InvalidInputError, NotFoundError, ServiceError
from school_timetable.core.models import Timetable, TimetableEntry
from school_timetable.core.schemas import ScopeContext

from . import lookups
from .references import TEACHER_NOT_FOUND
from .schemas import (
    TeacherTimetableEntryResponse,
    TimetableCreate,
    TimetableEntryResponse,
    TimetableResponse,
    TimetableUpdate,
)

logger = logging.getLogger(__name__)

TIMETABLE_NOT_FOUND = "TIMETABLE_NOT_FOUND"
ACADEMIC_YEAR_NOT_FOUND = "ACADEMIC_YEAR_NOT_FOUND"
CLASS_NOT_FOUND = "CLASS_NOT_FOUND"
SECTION_NOT_FOUND = "SECTION_NOT_FOUND"
INVALID_EFFECTIVE_WINDOW = "INVALID_EFFECTIVE_WINDOW"


def _entry_sort_key(e: TimetableEntry):
    start = e.period.start_time if e.period is not None else None
    return (DAY_ORDER.get(e.day_of_week, len(DAY_ORDER)), start is None, start)


def entry_to_response(e: TimetableEntry) -> TimetableEntryResponse:
    """Expects period, subject and teacher to be loaded."""
    teacher_name = None
    if e.teacher is not None:
        teacher_name = f"{e.teacher.first_name} {e.teacher.last_name}".strip()
    return TimetableEntryResponse(
        id=e.id,
        timetable_id=e.timetable_id,
        day_of_week=e.day_of_week,
        period_id=e.period_id,
        subject_id=e.subject_id,
        teacher_id=e.teacher_id,
        period_name=e.period.name if e.period is not None else None,
        start_time=e.period.start_time if e.period is not None else None,
        end_time=e.period.end_time if e.period is not None else None,
        subject_name=e.subject.name if e.subject is not None else None,
        subject_code=e.subject.code if e.subject is not None else None,
        teacher_name=teacher_name,
    )


def _to_response(t: Timetable) -> TimetableResponse:
    return TimetableResponse(
        id=t.id,
        tenant_id=t.tenant_id,
        branch_id=t.branch_id,
        academic_year_id=t.academic_year_id,
        class_id=t.class_id,
        section_id=t.section_id,
        class_name=t.school_class.name if t.school_class is not None else None,
        section_name=t.section.name if t.section is not None else None,
        effective_from=t.effective_from,
        effective_to=t.effective_to,
        is_active=t.is_active,
        created_at=t.created_at,
        updated_at=t.updated_at,
        entries=[entry_to_response(e) for e in sorted(t.entries, key=_entry_sort_key)],
    )


def _with_relations(stmt):
    # populate_existing: entries may have changed since this session last loaded the timetable.
    return stmt.options(
        selectinload(Timetable.school_class),
        selectinload(Timetable.section),
        selectinload(Timetable.entries).selectinload(TimetableEntry.period),
        selectinload(Timetable.entries).selectinload(TimetableEntry.subject),
        selectinload(Timetable.entries).selectinload(TimetableEntry.teacher),
    ).execution_options(populate_existing=True)


def _scoped(stmt, scope: ScopeContext):
    return stmt.where(
        Timetable.tenant_id == scope.tenant_id,
        Timetable.branch_id == scope.branch_id,
        Timetable.deleted_at.is_(None),
    )


async def get_scoped_timetable(
    db: AsyncSession,
    scope: ScopeContext,
    timetable_id: UUID,
    for_update: bool = False,
) -> Timetable:
    """Timetable row in the caller's tenant and branch, not deleted; NotFound otherwise."""
    stmt = _scoped(select(Timetable).where(Timetable.id == timetable_id), scope)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    obj = result.scalar_one_or_none()
    if not obj:
        raise NotFoundError("Timetable not found", TIMETABLE_NOT_FOUND)
    return obj


def _check_window(effective_from: date, effective_to: Optional[date]) -> None:
    if effective_to is not None and effective_to <= effective_from:
        raise InvalidInputError("effective_to must be after effective_from", INVALID_EFFECTIVE_WINDOW)


async def create_timetable(
    db: AsyncSession,
    scope: ScopeContext,
    payload: TimetableCreate,
) -> TimetableResponse:
    if not await lookups.find_academic_year(db, payload.academic_year_id, scope.tenant_id):
        raise NotFoundError("Academic year not found", ACADEMIC_YEAR_NOT_FOUND)
    if not await lookups.find_class(db, payload.class_id, scope.tenant_id, scope.branch_id):
        raise NotFoundError("Class not found", CLASS_NOT_FOUND)
    if not await lookups.find_section(db, payload.section_id, payload.class_id):
        raise NotFoundError("Section not found or does not belong to class", SECTION_NOT_FOUND)
    _check_window(payload.effective_from, payload.effective_to)

    obj = Timetable(
        tenant_id=scope.tenant_id,
        branch_id=scope.branch_id,
        academic_year_id=payload.academic_year_id,
        class_id=payload.class_id,
        section_id=payload.section_id,
        effective_from=payload.effective_from,
        effective_to=payload.effective_to,
        is_active=True,
        created_by=scope.actor_id,
    )
    db.add(obj)
    await db.commit()
    logger.info(
        "Timetable created id=%s class=%s section=%s by=%s",
        obj.id, payload.class_id, payload.section_id, scope.actor_id,
    )
    return await get_timetable(db, scope, obj.id)


async def get_timetable(
    db: AsyncSession,
    scope: ScopeContext,
    timetable_id: UUID,
) -> TimetableResponse:
    stmt = _with_relations(_scoped(select(Timetable).where(Timetable.id == timetable_id), scope))
    result = await db.execute(stmt)
    obj = result.scalar_one_or_none()
    if not obj:
        raise NotFoundError("Timetable not found", TIMETABLE_NOT_FOUND)
    return _to_response(obj)


async def list_timetables(
    db: AsyncSession,
    scope: ScopeContext,
    academic_year_id: Optional[UUID] = None,
    class_id: Optional[UUID] = None,
    is_active: Optional[bool] = None,
) -> List[TimetableResponse]:
    stmt = _scoped(select(Timetable), scope)
    if academic_year_id is not None:
        stmt = stmt.where(Timetable.academic_year_id == academic_year_id)
    if class_id is not None:
        stmt = stmt.where(Timetable.class_id == class_id)
    if is_active is not None:
        stmt = stmt.where(Timetable.is_active.is_(is_active))
    stmt = _with_relations(stmt.order_by(Timetable.created_at.desc()))
    result = await db.execute(stmt)
    return [_to_response(t) for t in result.scalars().all()]


async def get_timetable_by_class_section(
    db: AsyncSession,
    scope: ScopeContext,
    class_id: UUID,
    section_id: Optional[UUID] = None,
) -> List[TimetableResponse]:
    """Active timetables of a class, optionally narrowed to one section."""
    if not await lookups.find_class(db, class_id, scope.tenant_id, scope.branch_id):
        raise NotFoundError("Class not found", CLASS_NOT_FOUND)
    stmt = _scoped(select(Timetable), scope).where(
        Timetable.class_id == class_id,
        Timetable.is_active.is_(True),
    )
    if section_id is not None:
        stmt = stmt.where(Timetable.section_id == section_id)
    stmt = _with_relations(stmt.order_by(Timetable.effective_from.desc()))
    result = await db.execute(stmt)
    return [_to_response(t) for t in result.scalars().all()]


async def get_timetable_by_teacher(
    db: AsyncSession,
    scope: ScopeContext,
    teacher_id: UUID,
) -> List[TeacherTimetableEntryResponse]:
    """Weekly schedule of a teacher across the active timetables of the caller's branch."""
    if not await lookups.find_teacher(db, teacher_id, scope.tenant_id):
        raise NotFoundError("Teacher not found", TEACHER_NOT_FOUND)
    stmt = (
        select(TimetableEntry)
        .join(Timetable, TimetableEntry.timetable_id == Timetable.id)
        .where(
            TimetableEntry.teacher_id == teacher_id,
            Timetable.tenant_id == scope.tenant_id,
            Timetable.branch_id == scope.branch_id,
            Timetable.is_active.is_(True),
            Timetable.deleted_at.is_(None),
        )
        .options(
            selectinload(TimetableEntry.period),
            selectinload(TimetableEntry.subject),
            selectinload(TimetableEntry.timetable).selectinload(Timetable.school_class),
            selectinload(TimetableEntry.timetable).selectinload(Timetable.section),
        )
    )
    result = await db.execute(stmt)
    entries = sorted(result.scalars().all(), key=_entry_sort_key)
    return [
        TeacherTimetableEntryResponse(
            id=e.id,
            timetable_id=e.timetable_id,
            day_of_week=e.day_of_week,
            period_id=e.period_id,
            period_name=e.period.name,
            start_time=e.period.start_time,
            end_time=e.period.end_time,
            subject_id=e.subject_id,
            subject_name=e.subject.name,
            class_id=e.timetable.class_id,
            class_name=e.timetable.school_class.name,
            section_id=e.timetable.section_id,
            section_name=e.timetable.section.name,
        )
        for e in entries
    ]


async def update_timetable(
    db: AsyncSession,
    scope: ScopeContext,
    timetable_id: UUID,
    payload: TimetableUpdate,
) -> TimetableResponse:
    """Field changes only; existing entries are not re-checked for conflicts."""
    obj = await get_scoped_timetable(db, scope, timetable_id)
    fields = payload.model_fields_set
    new_from = payload.effective_from if payload.effective_from is not None else obj.effective_from
    new_to = payload.effective_to if "effective_to" in fields else obj.effective_to
    _check_window(new_from, new_to)

    obj.effective_from = new_from
    obj.effective_to = new_to
    if payload.is_active is not None:
        obj.is_active = payload.is_active
    await db.commit()
    logger.info("Timetable updated id=%s by=%s", obj.id, scope.actor_id)
    return await get_timetable(db, scope, obj.id)


async def delete_timetable(
    db: AsyncSession,
    scope: ScopeContext,
    timetable_id: UUID,
) -> None:
    """Delete all entries and soft-delete the timetable in one transaction."""
    obj = await get_scoped_timetable(db, scope, timetable_id, for_update=True)
    try:
        removed = await db.execute(delete(TimetableEntry).where(TimetableEntry.timetable_id == obj.id))
        obj.deleted_at = datetime.utcnow()
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Timetable delete rolled back id=%s", timetable_id)
        raise ServiceError("Timetable deletion failed", status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.info(
        "Timetable deleted id=%s entries_removed=%s by=%s",
        timetable_id, removed.rowcount, scope.actor_id,
    )
