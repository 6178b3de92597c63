"""Period registry: branch time slots with a half-open, non-overlapping interval rule."""

import logging
from datetime import datetime, time
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from school_timetable.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from school_timetable.core.models import Period, TimetableEntry
from school_timetable.core.schemas import ScopeContext

from .schemas import PeriodCreate, PeriodResponse, PeriodUpdate

logger = logging.getLogger(__name__)

INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
PERIOD_NOT_FOUND = "PERIOD_NOT_FOUND"
PERIOD_OVERLAP = "PERIOD_OVERLAP"
PERIOD_IN_USE = "PERIOD_IN_USE"


def periods_overlap(start1: time, end1: time, start2: time, end2: time) -> bool:
    """Half-open intervals: 09:00-09:45 and 09:45-10:30 touch but do not overlap."""
    return start1 < end2 and end1 > start2


def _to_response(p: Period) -> PeriodResponse:
    return PeriodResponse(
        id=p.id,
        tenant_id=p.tenant_id,
        branch_id=p.branch_id,
        name=p.name,
        start_time=p.start_time,
        end_time=p.end_time,
        display_order=p.display_order,
        period_type=p.period_type,
        created_at=p.created_at,
        updated_at=p.updated_at,
    )


def _check_time_range(start_time: time, end_time: time) -> None:
    if start_time >= end_time:
        raise InvalidInputError("End time must be after start time", INVALID_TIME_RANGE)


async def _get_scoped_period(db: AsyncSession, scope: ScopeContext, period_id: UUID) -> Period:
    result = await db.execute(
        select(Period).where(
            Period.id == period_id,
            Period.tenant_id == scope.tenant_id,
            Period.branch_id == scope.branch_id,
            Period.deleted_at.is_(None),
        )
    )
    obj = result.scalar_one_or_none()
    if not obj:
        raise NotFoundError("Period not found", PERIOD_NOT_FOUND)
    return obj


async def find_overlapping_periods(
    db: AsyncSession,
    tenant_id: UUID,
    branch_id: UUID,
    start_time: time,
    end_time: time,
    exclude_id: Optional[UUID] = None,
) -> List[Period]:
    """Non-deleted periods of the branch overlapping [start_time, end_time), in display order."""
    stmt = select(Period).where(
        Period.tenant_id == tenant_id,
        Period.branch_id == branch_id,
        Period.deleted_at.is_(None),
    )
    if exclude_id is not None:
        stmt = stmt.where(Period.id != exclude_id)
    stmt = stmt.order_by(Period.display_order, Period.start_time)
    result = await db.execute(stmt)
    return [
        p for p in result.scalars().all()
        if periods_overlap(start_time, end_time, p.start_time, p.end_time)
    ]


async def _check_no_overlap(
    db: AsyncSession,
    scope: ScopeContext,
    start_time: time,
    end_time: time,
    exclude_id: Optional[UUID] = None,
) -> None:
    overlapping = await find_overlapping_periods(
        db, scope.tenant_id, scope.branch_id, start_time, end_time, exclude_id=exclude_id
    )
    if overlapping:
        raise ConflictError(
            f"Period overlaps with existing period: {overlapping[0].name}",
            PERIOD_OVERLAP,
        )


async def create_period(
    db: AsyncSession,
    scope: ScopeContext,
    payload: PeriodCreate,
) -> PeriodResponse:
    _check_time_range(payload.start_time, payload.end_time)
    await _check_no_overlap(db, scope, payload.start_time, payload.end_time)
    obj = Period(
        tenant_id=scope.tenant_id,
        branch_id=scope.branch_id,
        name=payload.name,
        start_time=payload.start_time,
        end_time=payload.end_time,
        display_order=payload.display_order,
        period_type=payload.period_type.value,
        created_by=scope.actor_id,
    )
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    logger.info(
        "Period created id=%s tenant=%s branch=%s by=%s",
        obj.id, scope.tenant_id, scope.branch_id, scope.actor_id,
    )
    return _to_response(obj)


async def get_period(
    db: AsyncSession,
    scope: ScopeContext,
    period_id: UUID,
) -> PeriodResponse:
    return _to_response(await _get_scoped_period(db, scope, period_id))


async def list_periods(
    db: AsyncSession,
    scope: ScopeContext,
    branch_id: Optional[UUID] = None,
) -> List[PeriodResponse]:
    """Periods of a branch within the caller's tenant; defaults to the caller's branch."""
    stmt = (
        select(Period)
        .where(
            Period.tenant_id == scope.tenant_id,
            Period.branch_id == (branch_id or scope.branch_id),
            Period.deleted_at.is_(None),
        )
        .order_by(Period.display_order, Period.start_time)
    )
    result = await db.execute(stmt)
    return [_to_response(p) for p in result.scalars().all()]


async def update_period(
    db: AsyncSession,
    scope: ScopeContext,
    period_id: UUID,
    payload: PeriodUpdate,
) -> PeriodResponse:
    obj = await _get_scoped_period(db, scope, period_id)
    new_start = payload.start_time if payload.start_time is not None else obj.start_time
    new_end = payload.end_time if payload.end_time is not None else obj.end_time
    _check_time_range(new_start, new_end)
    await _check_no_overlap(db, scope, new_start, new_end, exclude_id=obj.id)

    if payload.name is not None:
        obj.name = payload.name
    obj.start_time = new_start
    obj.end_time = new_end
    if payload.display_order is not None:
        obj.display_order = payload.display_order
    if payload.period_type is not None:
        obj.period_type = payload.period_type.value
    await db.commit()
    await db.refresh(obj)
    logger.info("Period updated id=%s tenant=%s by=%s", obj.id, scope.tenant_id, scope.actor_id)
    return _to_response(obj)


async def period_in_use(db: AsyncSession, period_id: UUID) -> bool:
    result = await db.execute(
        select(func.count(TimetableEntry.id)).where(TimetableEntry.period_id == period_id)
    )
    return result.scalar_one() > 0


async def delete_period(
    db: AsyncSession,
    scope: ScopeContext,
    period_id: UUID,
) -> None:
    obj = await _get_scoped_period(db, scope, period_id)
    if await period_in_use(db, obj.id):
        raise ConflictError("Cannot delete period used in timetable entries", PERIOD_IN_USE)
    obj.deleted_at = datetime.utcnow()
    await db.commit()
    logger.info("Period deleted id=%s tenant=%s by=%s", obj.id, scope.tenant_id, scope.actor_id)
