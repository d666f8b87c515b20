"""Tests for day allocation - planning arithmetic and delete-then-reinsert recompute."""

from datetime import date, datetime, timedelta

import pytest

from hwboard.common.exceptions import InvalidScheduleError
from hwboard.domains.homework.allocation import plan_day_allocation, recompute_day_allocation
from hwboard.domains.homework.repository import AssignmentRepository

from conftest import make_assignment


def plan(created, deadline, estimated=120):
    return plan_day_allocation("a1", "math", created, deadline, estimated)


class TestPlanDayAllocation:
    """Test plan_day_allocation pure function."""

    def test_three_day_range(self):
        rows = plan(datetime(2024, 1, 1, 8), datetime(2024, 1, 3, 18))
        assert [r["date"] for r in rows] == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]
        assert all(r["taken"] == 40 for r in rows)
        assert all(r["assignment_id"] == "a1" and r["subject_id"] == "math" for r in rows)

    def test_midnight_boundaries(self):
        rows = plan(datetime(2024, 1, 1), datetime(2024, 1, 3))
        assert len(rows) == 3
        assert sum(r["taken"] for r in rows) == pytest.approx(120)

    def test_same_day_single_row(self):
        rows = plan(datetime(2024, 3, 5, 9), datetime(2024, 3, 5, 9), estimated=45)
        assert len(rows) == 1
        assert rows[0]["date"] == date(2024, 3, 5)
        assert rows[0]["taken"] == 45

    def test_short_span_across_midnight(self):
        # 一小时，但跨越两个自然日
        rows = plan(datetime(2024, 1, 1, 23, 30), datetime(2024, 1, 2, 0, 30), estimated=60)
        assert [r["date"] for r in rows] == [date(2024, 1, 1), date(2024, 1, 2)]
        assert all(r["taken"] == 30 for r in rows)

    def test_month_boundary(self):
        rows = plan(datetime(2024, 2, 27, 12), datetime(2024, 3, 2, 12), estimated=100)
        assert [r["date"] for r in rows] == [
            date(2024, 2, 27), date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1), date(2024, 3, 2),
        ]

    @pytest.mark.parametrize("days,estimated", [(1, 7), (2, 90), (7, 100), (30, 1000), (365, 333)])
    def test_coverage_and_sum(self, days, estimated):
        created = datetime(2024, 6, 1, 10)
        deadline = created + timedelta(days=days - 1, hours=3)
        rows = plan(created, deadline, estimated)
        dates = [r["date"] for r in rows]
        expected = [created.date() + timedelta(days=i) for i in range((deadline.date() - created.date()).days + 1)]
        assert dates == expected
        assert len(set(dates)) == len(dates)
        assert sum(r["taken"] for r in rows) == pytest.approx(estimated)

    def test_deadline_before_created_rejected(self):
        with pytest.raises(InvalidScheduleError):
            plan(datetime(2024, 1, 3), datetime(2024, 1, 1))

    def test_invalid_schedule_is_value_error(self):
        with pytest.raises(ValueError):
            plan(datetime(2024, 1, 1, 12), datetime(2024, 1, 1, 11))


class TestRecomputeDayAllocation:
    """Test recompute_day_allocation against the store."""

    @pytest.mark.asyncio
    async def test_recompute_replaces_rows(self, database, subject, read_days):
        assignment = make_assignment(subject)
        async with database.get_session() as session:
            await AssignmentRepository.create(session, assignment)
            await recompute_day_allocation(session, assignment)

        assert await read_days("a1") == [("2024-01-01", 40), ("2024-01-02", 40), ("2024-01-03", 40)]

        shorter = assignment.model_copy(update={"deadline": datetime(2024, 1, 2, 9), "estimated": 50})
        async with database.get_session() as session:
            await recompute_day_allocation(session, shorter)

        assert await read_days("a1") == [("2024-01-01", 25), ("2024-01-02", 25)]

    @pytest.mark.asyncio
    async def test_recompute_twice_no_duplicates(self, database, subject, read_days):
        assignment = make_assignment(subject)
        async with database.get_session() as session:
            await AssignmentRepository.create(session, assignment)
            await recompute_day_allocation(session, assignment)
            await recompute_day_allocation(session, assignment)

        assert len(await read_days("a1")) == 3

    @pytest.mark.asyncio
    async def test_deleting_assignment_cascades(self, database, subject, read_days):
        assignment = make_assignment(subject)
        async with database.get_session() as session:
            await AssignmentRepository.create(session, assignment)
            await recompute_day_allocation(session, assignment)

        async with database.get_session() as session:
            await AssignmentRepository.delete(session, "a1")

        assert await read_days("a1") == []
