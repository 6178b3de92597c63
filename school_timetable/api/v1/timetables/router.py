from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from school_timetable.auth.dependencies import get_scope
from school_timetable.auth.rbac import check_permission
from school_timetable.core.exceptions import ServiceError
from school_timetable.core.schemas import ScopeContext
from school_timetable.db.session import get_db

from .schemas import (
    TeacherTimetableEntryResponse,
    TimetableCreate,
    TimetableEntryCreate,
    TimetableEntryResponse,
    TimetableResponse,
    TimetableUpdate,
    TimetableValidateRequest,
    TimetableValidationReport,
)
from . import scheduler, service

router = APIRouter(prefix="/api/v1/timetables", tags=["timetables"])


@router.post(
    "",
    response_model=TimetableResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("timetable", "create"))],
)
async def create_timetable(
    payload: TimetableCreate,
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> TimetableResponse:
    try:
        return await service.create_timetable(db, scope, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[TimetableResponse],
    dependencies=[Depends(check_permission("timetable", "read"))],
)
async def list_timetables(
    academic_year_id: Optional[UUID] = Query(None),
    class_id: Optional[UUID] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> List[TimetableResponse]:
    return await service.list_timetables(
        db, scope, academic_year_id=academic_year_id, class_id=class_id, is_active=is_active
    )


@router.post(
    "/validate",
    response_model=TimetableValidationReport,
    dependencies=[Depends(check_permission("timetable", "read"))],
)
async def validate_timetable(
    payload: TimetableValidateRequest,
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> TimetableValidationReport:
    """Bulk what-if check of entries against a timetable. Never writes; errors are returned, not raised."""
    return await scheduler.validate_entries(db, scope, payload.timetable_id, payload.entries)


@router.get(
    "/classes/{class_id}",
    response_model=List[TimetableResponse],
    dependencies=[Depends(check_permission("timetable", "read"))],
)
async def get_class_timetable(
    class_id: UUID,
    section_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> List[TimetableResponse]:
    try:
        return await service.get_timetable_by_class_section(db, scope, class_id, section_id=section_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/teachers/{teacher_id}",
    response_model=List[TeacherTimetableEntryResponse],
    dependencies=[Depends(check_permission("timetable", "read"))],
)
async def get_teacher_timetable(
    teacher_id: UUID,
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> List[TeacherTimetableEntryResponse]:
    try:
        return await service.get_timetable_by_teacher(db, scope, teacher_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{timetable_id}",
    response_model=TimetableResponse,
    dependencies=[Depends(check_permission("timetable", "read"))],
)
async def get_timetable(
    timetable_id: UUID,
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> TimetableResponse:
    try:
        return await service.get_timetable(db, scope, timetable_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch(
    "/{timetable_id}",
    response_model=TimetableResponse,
    dependencies=[Depends(check_permission("timetable", "update"))],
)
async def update_timetable(
    timetable_id: UUID,
    payload: TimetableUpdate,
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> TimetableResponse:
    try:
        return await service.update_timetable(db, scope, timetable_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{timetable_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(check_permission("timetable", "delete"))],
)
async def delete_timetable(
    timetable_id: UUID,
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> None:
    try:
        await service.delete_timetable(db, scope, timetable_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{timetable_id}/entries",
    response_model=TimetableEntryResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("timetable", "update"))],
)
async def add_entry(
    timetable_id: UUID,
    payload: TimetableEntryCreate,
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> TimetableEntryResponse:
    try:
        return await scheduler.add_entry(db, scope, timetable_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{timetable_id}/entries/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(check_permission("timetable", "update"))],
)
async def remove_entry(
    timetable_id: UUID,
    entry_id: UUID,
    db: AsyncSession = Depends(get_db),
    scope: ScopeContext = Depends(get_scope),
) -> None:
    try:
        await scheduler.remove_entry(db, scope, timetable_id, entry_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
