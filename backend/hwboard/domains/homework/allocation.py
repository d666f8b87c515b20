"""每日分配计算 - 把作业的 estimated 平均摊到 [created, deadline] 的每一个自然日"""

import logging
from datetime import date, datetime, timedelta
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from hwboard.common.exceptions import InvalidScheduleError
from hwboard.domains.homework.repository import DayRecordRepository
from hwboard.domains.homework.schemas import AssignmentSchema

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def plan_day_allocation(
    assignment_id: str,
    subject_id: str,
    created: datetime,
    deadline: datetime,
    estimated: float,
) -> List[dict]:
    """Build one row per local calendar day in ``[created.date(), deadline.date()]``.

    Every day gets the same share regardless of how many hours of it the
    assignment actually covers. The divisor is the number of rows produced,
    so ``sum(taken) == estimated``.

    Raises:
        InvalidScheduleError: ``deadline`` is before ``created``.
    """
    if deadline < created:
        raise InvalidScheduleError(
            f"Assignment {assignment_id}: deadline {deadline.isoformat()} "
            f"is before created {created.isoformat()}"
        )

    first: date = created.date()
    last: date = deadline.date()
    day_count = (last - first).days + 1
    taken = estimated / day_count

    rows = []
    day = first
    while day <= last:
        rows.append({
            "date": day,
            "assignment_id": assignment_id,
            "subject_id": subject_id,
            "taken": taken,
        })
        day += ONE_DAY
    return rows


async def recompute_day_allocation(session: AsyncSession, assignment: AssignmentSchema) -> List[dict]:
    """删除该作业的全部分配行后重新生成，从不做增量修补"""
    removed = await DayRecordRepository.delete_for_assignment(session, assignment.id)
    rows = plan_day_allocation(
        assignment.id,
        assignment.subject.id,
        assignment.created,
        assignment.deadline,
        assignment.estimated,
    )
    await DayRecordRepository.insert_many(session, rows)
    logger.debug(
        f"Day allocation for {assignment.id}: removed {removed}, inserted {len(rows)} "
        f"({rows[0]['taken']:.2f} per day)"
    )
    return rows
