from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from school_timetable.auth.dependencies import get_scope
from school_timetable.auth.rbac import check_permission
from school_timetable.core.exceptions import ServiceError
from school_timetable.core.schemas import ScopeContext
from school_timetable.db.session import get_db

from .schemas import PeriodCreate, PeriodResponse, PeriodUpdate
from . import service

router = APIRouter(prefix="/api/v1/timetables/periods", tags=["periods"])


@router.post(
    "",
    response_model=PeriodResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("timetable", "create"))],
)
async def create_period(
    payload: PeriodCreate,
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> PeriodResponse:
    try:
        return await service.create_period(db, scope, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[PeriodResponse],
    dependencies=[Depends(check_permission("timetable", "read"))],
)
async def list_periods(
    branch_id: Optional[UUID] = Query(None, description="Defaults to the caller's branch"),
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> List[PeriodResponse]:
    return await service.list_periods(db, scope, branch_id=branch_id)


@router.get(
    "/{period_id}",
    response_model=PeriodResponse,
    dependencies=[Depends(check_permission("timetable", "read"))],
)
async def get_period(
    period_id: UUID,
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> PeriodResponse:
    try:
        return await service.get_period(db, scope, period_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch(
    "/{period_id}",
    response_model=PeriodResponse,
    dependencies=[Depends(check_permission("timetable", "update"))],
)
async def update_period(
    period_id: UUID,
    payload: PeriodUpdate,
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> PeriodResponse:
    try:
        return await service.update_period(db, scope, period_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{period_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(check_permission("timetable", "delete"))],
)
async def delete_period(
    period_id: UUID,
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> None:
    try:
        await service.delete_period(db, scope, period_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
