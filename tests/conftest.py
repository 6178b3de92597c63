import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import uuid
from datetime import date, time
from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from school_timetable.api.v1.timetables import service as timetable_service
from school_timetable.api.v1.timetables.schemas import TimetableCreate
from school_timetable.core.config import settings
from school_timetable.core.models import (
    AcademicYear,
    ClassSubject,
    Period,
    SchoolClass,
    SchoolSubject,
    Section,
    Teacher,
)
from school_timetable.core.schemas import ScopeContext
from school_timetable.db.session import Base, get_db
from school_timetable.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture()
async def engine():
    """Fresh in-memory SQLite per test; Postgres schemas are mapped to SQLite's default schema."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        execution_options={"schema_translate_map": {"core": None, "school": None}},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
async def school(db_session: AsyncSession) -> SimpleNamespace:
    """
    One tenant with a main and a second branch. Ids only, so tests never touch
    expired ORM instances after a rollback.

    Grade 5 / A and Grade 6 / B in the main branch; Math + Physics mapped to
    Grade 5, Chemistry + Math to Grade 6. Teachers: x, y (main branch, active),
    z (second branch), w (main branch, inactive). Periods P1 09:00-09:45 and
    P2 09:45-10:30 in the main branch.
    """
    tenant_id = uuid.uuid4()
    branch_id = uuid.uuid4()
    other_branch_id = uuid.uuid4()

    ay = AcademicYear(
        tenant_id=tenant_id, name="2025-2026", start_date=date(2025, 6, 1), end_date=date(2026, 3, 31)
    )
    db_session.add(ay)
    await db_session.flush()

    grade5 = SchoolClass(tenant_id=tenant_id, branch_id=branch_id, academic_year_id=ay.id, name="Grade 5")
    grade6 = SchoolClass(tenant_id=tenant_id, branch_id=branch_id, academic_year_id=ay.id, name="Grade 6")
    other_class = SchoolClass(tenant_id=tenant_id, branch_id=other_branch_id, academic_year_id=ay.id, name="Grade 7")
    db_session.add_all([grade5, grade6, other_class])
    await db_session.flush()

    sec_a = Section(tenant_id=tenant_id, class_id=grade5.id, name="A")
    sec_b = Section(tenant_id=tenant_id, class_id=grade6.id, name="B")
    sec_other = Section(tenant_id=tenant_id, class_id=other_class.id, name="C")
    math = SchoolSubject(tenant_id=tenant_id, name="Math", code="MATH")
    physics = SchoolSubject(tenant_id=tenant_id, name="Physics", code="PHY")
    chem = SchoolSubject(tenant_id=tenant_id, name="Chemistry", code="CHEM")
    db_session.add_all([sec_a, sec_b, sec_other, math, physics, chem])
    await db_session.flush()

    db_session.add_all([
        ClassSubject(tenant_id=tenant_id, class_id=grade5.id, subject_id=math.id),
        ClassSubject(tenant_id=tenant_id, class_id=grade5.id, subject_id=physics.id),
        ClassSubject(tenant_id=tenant_id, class_id=grade6.id, subject_id=chem.id),
        ClassSubject(tenant_id=tenant_id, class_id=grade6.id, subject_id=math.id),
    ])

    x = Teacher(tenant_id=tenant_id, branch_id=branch_id, first_name="Asha", last_name="Rao")
    y = Teacher(tenant_id=tenant_id, branch_id=branch_id, first_name="Vikram", last_name="Iyer")
    z = Teacher(tenant_id=tenant_id, branch_id=other_branch_id, first_name="Meera", last_name="Das")
    w = Teacher(tenant_id=tenant_id, branch_id=branch_id, first_name="Ravi", last_name="Nair", status="INACTIVE")
    p1 = Period(
        tenant_id=tenant_id, branch_id=branch_id, name="P1",
        start_time=time(9, 0), end_time=time(9, 45), display_order=1,
    )
    p2 = Period(
        tenant_id=tenant_id, branch_id=branch_id, name="P2",
        start_time=time(9, 45), end_time=time(10, 30), display_order=2,
    )
    db_session.add_all([x, y, z, w, p1, p2])
    await db_session.commit()

    return SimpleNamespace(
        tenant_id=tenant_id,
        branch_id=branch_id,
        other_branch_id=other_branch_id,
        actor_id=uuid.uuid4(),
        academic_year_id=ay.id,
        grade5_id=grade5.id,
        grade6_id=grade6.id,
        other_class_id=other_class.id,
        section_a_id=sec_a.id,
        section_b_id=sec_b.id,
        other_section_id=sec_other.id,
        math_id=math.id,
        physics_id=physics.id,
        chem_id=chem.id,
        teacher_x_id=x.id,
        teacher_y_id=y.id,
        teacher_z_id=z.id,
        teacher_w_id=w.id,
        p1_id=p1.id,
        p2_id=p2.id,
    )


@pytest.fixture()
def scope(school: SimpleNamespace) -> ScopeContext:
    return ScopeContext(tenant_id=school.tenant_id, branch_id=school.branch_id, actor_id=school.actor_id)


@pytest.fixture()
def make_timetable(db_session: AsyncSession, school: SimpleNamespace, scope: ScopeContext):
    """Factory: create a timetable for Grade 5/A (default) or any class/section."""

    async def _make(class_id=None, section_id=None, effective_from=date(2025, 6, 1), effective_to=None):
        payload = TimetableCreate(
            academic_year_id=school.academic_year_id,
            class_id=class_id or school.grade5_id,
            section_id=section_id or school.section_a_id,
            effective_from=effective_from,
            effective_to=effective_to,
        )
        return await timetable_service.create_timetable(db_session, scope, payload)

    return _make


def make_token(school: SimpleNamespace, role: str = "SUPER_ADMIN", permissions=None, branch_id=None) -> str:
    claims = {
        "user_id": str(school.actor_id),
        "tenant_id": str(school.tenant_id),
        "branch_id": str(branch_id or school.branch_id),
        "role": role,
        "permissions": permissions or {},
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture()
async def client(db_session: AsyncSession, school: SimpleNamespace) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app, authenticated as a branch admin."""
    headers = {"Authorization": f"Bearer {make_token(school)}"}
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test", headers=headers) as ac:
        yield ac
