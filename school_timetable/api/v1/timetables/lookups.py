"""
Read-only lookups of records owned by other modules (academic years, classes,
sections, subjects, class-subject mapping, teachers, periods). Inactive or
out-of-scope rows are reported as missing.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from school_timetable.core.models import (
    AcademicYear,
    ClassSubject,
    Period,
    SchoolClass,
    SchoolSubject,
    Section,
    Teacher,
)


async def find_academic_year(db: AsyncSession, academic_year_id: UUID, tenant_id: UUID) -> Optional[AcademicYear]:
    result = await db.execute(
        select(AcademicYear).where(
            AcademicYear.id == academic_year_id,
            AcademicYear.tenant_id == tenant_id,
        )
    )
    return result.scalar_one_or_none()


async def find_class(
    db: AsyncSession,
    class_id: UUID,
    tenant_id: UUID,
    branch_id: UUID,
) -> Optional[SchoolClass]:
    result = await db.execute(
        select(SchoolClass).where(
            SchoolClass.id == class_id,
            SchoolClass.tenant_id == tenant_id,
            SchoolClass.branch_id == branch_id,
            SchoolClass.is_active.is_(True),
        )
    )
    return result.scalar_one_or_none()


async def find_section(db: AsyncSession, section_id: UUID, class_id: UUID) -> Optional[Section]:
    result = await db.execute(
        select(Section).where(
            Section.id == section_id,
            Section.class_id == class_id,
            Section.is_active.is_(True),
        )
    )
    return result.scalar_one_or_none()


async def find_period(
    db: AsyncSession,
    period_id: UUID,
    tenant_id: UUID,
    branch_id: UUID,
) -> Optional[Period]:
    result = await db.execute(
        select(Period).where(
            Period.id == period_id,
            Period.tenant_id == tenant_id,
            Period.branch_id == branch_id,
            Period.deleted_at.is_(None),
        )
    )
    return result.scalar_one_or_none()


async def find_subject(db: AsyncSession, subject_id: UUID, tenant_id: UUID) -> Optional[SchoolSubject]:
    result = await db.execute(
        select(SchoolSubject).where(
            SchoolSubject.id == subject_id,
            SchoolSubject.tenant_id == tenant_id,
            SchoolSubject.is_active.is_(True),
        )
    )
    return result.scalar_one_or_none()


async def class_subject_exists(db: AsyncSession, class_id: UUID, subject_id: UUID) -> bool:
    result = await db.execute(
        select(ClassSubject.id).where(
            ClassSubject.class_id == class_id,
            ClassSubject.subject_id == subject_id,
        ).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def find_teacher(
    db: AsyncSession,
    teacher_id: UUID,
    tenant_id: UUID,
    for_update: bool = False,
) -> Optional[Teacher]:
    """for_update=True locks the teacher row until commit/rollback (serialises bookings of one teacher)."""
    stmt = select(Teacher).where(Teacher.id == teacher_id, Teacher.tenant_id == tenant_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()
