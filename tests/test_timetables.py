import uuid
from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from school_timetable.api.v1.timetables import scheduler, service
from school_timetable.api.v1.timetables.conflicts import find_teacher_conflict
from school_timetable.api.v1.timetables.schemas import TimetableCreate, TimetableEntryCreate, TimetableUpdate
from school_timetable.core.exceptions import InvalidInputError, NotFoundError, ServiceError
from school_timetable.core.models import TimetableEntry
from school_timetable.core.schemas import ScopeContext


def _math_monday_p1(school) -> TimetableEntryCreate:
    return TimetableEntryCreate(
        day_of_week="monday", period_id=school.p1_id, subject_id=school.math_id, teacher_id=school.teacher_x_id
    )


@pytest.mark.asyncio
async def test_create_timetable_is_active_and_empty(db_session: AsyncSession, school, scope: ScopeContext) -> None:
    tt = await service.create_timetable(
        db_session,
        scope,
        TimetableCreate(
            academic_year_id=school.academic_year_id,
            class_id=school.grade5_id,
            section_id=school.section_a_id,
            effective_from=date(2025, 6, 1),
        ),
    )
    assert tt.is_active is True
    assert tt.entries == []
    assert tt.effective_to is None
    assert (tt.class_name, tt.section_name) == ("Grade 5", "A")
    assert (tt.tenant_id, tt.branch_id) == (school.tenant_id, school.branch_id)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field, value, message",
    [
        ("academic_year_id", None, "Academic year not found"),
        ("class_id", None, "Class not found"),
        ("class_id", "other_class_id", "Class not found"),
        ("section_id", None, "Section not found or does not belong to class"),
        ("section_id", "section_b_id", "Section not found or does not belong to class"),
    ],
)
async def test_create_timetable_validates_references(db_session, school, scope, field, value, message) -> None:
    data = dict(
        academic_year_id=school.academic_year_id,
        class_id=school.grade5_id,
        section_id=school.section_a_id,
        effective_from=date(2025, 6, 1),
    )
    data[field] = getattr(school, value) if value else uuid.uuid4()
    with pytest.raises(NotFoundError) as exc:
        await service.create_timetable(db_session, scope, TimetableCreate(**data))
    assert exc.value.message == message


@pytest.mark.asyncio
async def test_create_timetable_rejects_inverted_window(make_timetable) -> None:
    with pytest.raises(InvalidInputError):
        await make_timetable(effective_from=date(2025, 6, 1), effective_to=date(2025, 5, 1))


@pytest.mark.asyncio
async def test_update_window_and_clear_end(db_session, scope, make_timetable) -> None:
    tt = await make_timetable(effective_to=date(2025, 12, 31))
    updated = await service.update_timetable(
        db_session, scope, tt.id, TimetableUpdate(effective_from=date(2025, 7, 1))
    )
    assert updated.effective_from == date(2025, 7, 1)
    assert updated.effective_to == date(2025, 12, 31)

    cleared = await service.update_timetable(db_session, scope, tt.id, TimetableUpdate(effective_to=None))
    assert cleared.effective_to is None

    with pytest.raises(InvalidInputError):
        await service.update_timetable(db_session, scope, tt.id, TimetableUpdate(effective_to=date(2025, 1, 1)))


@pytest.mark.asyncio
async def test_reactivating_does_not_recheck_entries(db_session, school, scope, make_timetable) -> None:
    """Known gap: update applies fields only, so two active timetables can end up sharing a teacher slot."""
    t1 = await make_timetable()
    await scheduler.add_entry(db_session, scope, t1.id, _math_monday_p1(school))
    await service.update_timetable(db_session, scope, t1.id, TimetableUpdate(is_active=False))

    t2 = await make_timetable(class_id=school.grade6_id, section_id=school.section_b_id)
    await scheduler.add_entry(db_session, scope, t2.id, _math_monday_p1(school))

    reactivated = await service.update_timetable(db_session, scope, t1.id, TimetableUpdate(is_active=True))
    assert reactivated.is_active is True
    assert len(reactivated.entries) == 1


@pytest.mark.asyncio
async def test_delete_cascades_entries(db_session, school, scope, make_timetable) -> None:
    t1 = await make_timetable()
    await scheduler.add_entry(db_session, scope, t1.id, _math_monday_p1(school))

    await service.delete_timetable(db_session, scope, t1.id)

    with pytest.raises(NotFoundError):
        await service.get_timetable(db_session, scope, t1.id)
    assert await service.get_timetable_by_teacher(db_session, scope, school.teacher_x_id) == []
    assert await find_teacher_conflict(
        db_session, school.tenant_id, school.branch_id, school.teacher_x_id, "monday", school.p1_id
    ) is None
    remaining = await db_session.execute(select(TimetableEntry).where(TimetableEntry.timetable_id == t1.id))
    assert remaining.scalars().all() == []

    with pytest.raises(NotFoundError):
        await service.delete_timetable(db_session, scope, t1.id)


@pytest.mark.asyncio
async def test_failed_delete_leaves_timetable_and_entries(db_session, school, scope, make_timetable, monkeypatch) -> None:
    t1 = await make_timetable()
    await scheduler.add_entry(db_session, scope, t1.id, _math_monday_p1(school))

    async def failing_commit() -> None:
        raise OperationalError("COMMIT", {}, Exception("connection lost"))

    monkeypatch.setattr(db_session, "commit", failing_commit)
    with pytest.raises(ServiceError) as exc:
        await service.delete_timetable(db_session, scope, t1.id)
    assert exc.value.status_code == 500
    monkeypatch.undo()

    still_there = await service.get_timetable(db_session, scope, t1.id)
    assert len(still_there.entries) == 1


@pytest.mark.asyncio
async def test_list_timetables_filters(db_session, school, scope, make_timetable) -> None:
    t1 = await make_timetable()
    t2 = await make_timetable(class_id=school.grade6_id, section_id=school.section_b_id)
    await service.update_timetable(db_session, scope, t2.id, TimetableUpdate(is_active=False))

    all_ids = {t.id for t in await service.list_timetables(db_session, scope)}
    assert all_ids == {t1.id, t2.id}
    assert [t.id for t in await service.list_timetables(db_session, scope, class_id=school.grade5_id)] == [t1.id]
    assert [t.id for t in await service.list_timetables(db_session, scope, is_active=False)] == [t2.id]
    assert await service.list_timetables(db_session, scope, academic_year_id=uuid.uuid4()) == []

    other = ScopeContext(tenant_id=school.tenant_id, branch_id=school.other_branch_id, actor_id=school.actor_id)
    assert await service.list_timetables(db_session, other) == []


@pytest.mark.asyncio
async def test_get_timetable_out_of_scope_is_not_found(db_session, school, make_timetable) -> None:
    t1 = await make_timetable()
    other = ScopeContext(tenant_id=school.tenant_id, branch_id=school.other_branch_id, actor_id=school.actor_id)
    with pytest.raises(NotFoundError):
        await service.get_timetable(db_session, other, t1.id)


@pytest.mark.asyncio
async def test_get_by_class_section_returns_active_only(db_session, school, scope, make_timetable) -> None:
    current = await make_timetable(effective_from=date(2025, 9, 1))
    old = await make_timetable(effective_from=date(2025, 6, 1), effective_to=date(2025, 9, 1))
    await service.update_timetable(db_session, scope, old.id, TimetableUpdate(is_active=False))
    await make_timetable(class_id=school.grade6_id, section_id=school.section_b_id)

    found = await service.get_timetable_by_class_section(db_session, scope, school.grade5_id)
    assert [t.id for t in found] == [current.id]
    found = await service.get_timetable_by_class_section(db_session, scope, school.grade5_id, school.section_a_id)
    assert [t.id for t in found] == [current.id]
    assert await service.get_timetable_by_class_section(
        db_session, scope, school.grade5_id, school.section_b_id
    ) == []

    with pytest.raises(NotFoundError):
        await service.get_timetable_by_class_section(db_session, scope, school.other_class_id)


@pytest.mark.asyncio
async def test_get_by_teacher_lists_slots_in_week_order(db_session, school, scope, make_timetable) -> None:
    t1 = await make_timetable()
    t2 = await make_timetable(class_id=school.grade6_id, section_id=school.section_b_id)
    await scheduler.add_entry(
        db_session, scope, t2.id,
        TimetableEntryCreate(
            day_of_week="wednesday", period_id=school.p2_id, subject_id=school.chem_id, teacher_id=school.teacher_x_id
        ),
    )
    await scheduler.add_entry(
        db_session, scope, t1.id,
        TimetableEntryCreate(
            day_of_week="wednesday", period_id=school.p1_id, subject_id=school.math_id, teacher_id=school.teacher_x_id
        ),
    )
    await scheduler.add_entry(db_session, scope, t1.id, _math_monday_p1(school))

    slots = await service.get_timetable_by_teacher(db_session, scope, school.teacher_x_id)
    assert [(s.day_of_week.value, s.period_name, s.class_name, s.section_name) for s in slots] == [
        ("monday", "P1", "Grade 5", "A"),
        ("wednesday", "P1", "Grade 5", "A"),
        ("wednesday", "P2", "Grade 6", "B"),
    ]
    assert slots[2].subject_name == "Chemistry"

    assert await service.get_timetable_by_teacher(db_session, scope, school.teacher_y_id) == []
    with pytest.raises(NotFoundError):
        await service.get_timetable_by_teacher(db_session, scope, uuid.uuid4())
