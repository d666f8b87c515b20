"""
作业相关的五种可撤销操作

| type               | apply(x)                        | revert(y)                          |
|--------------------|---------------------------------|------------------------------------|
| create-assignment  | insert + allocation -> assignment | delete -> assignment             |
| modify-assignment  | overwrite + allocation -> old   | overwrite back -> current          |
| remove-assignment  | id -> deleted assignment        | reinsert + allocation -> id        |
| create-submission  | insert -> submission            | delete -> submission               |
| finish-progress    | spent += delta -> changes       | spent -= delta -> changes          |

"modify" and "remove" read the stored row themselves instead of trusting
the caller's copy; both run inside the engine's transaction.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hwboard.domains.homework.allocation import recompute_day_allocation
from hwboard.domains.homework.repository import (
    AssignmentRepository,
    DayRecordRepository,
    SubmissionRepository,
)
from hwboard.domains.homework.schemas import AssignmentSchema, ProgressChange, SubmissionSchema
from hwboard.domains.operation.registry import Operation, OperationRegistry, PayloadKind

logger = logging.getLogger(__name__)

CREATE_ASSIGNMENT = "create-assignment"
MODIFY_ASSIGNMENT = "modify-assignment"
REMOVE_ASSIGNMENT = "remove-assignment"
CREATE_SUBMISSION = "create-submission"
FINISH_PROGRESS = "finish-progress"


def _dump(model) -> dict:
    return model.model_dump(mode="json")


async def _shift_spent(session: AsyncSession, changes: Any, sign: int) -> list:
    """按 sign 加减每条 delta; 返回值保持输入的形状 ([delta, id] 二元组或对象)"""
    result = []
    for item in changes:
        change = ProgressChange.model_validate(item)
        await AssignmentRepository.add_spent(session, change.assignment_id, sign * change.delta)
        if isinstance(item, (list, tuple)):
            result.append([change.delta, change.assignment_id])
        else:
            result.append(_dump(change))
    return result


# ── create-assignment ──

async def _create_assignment(session: AsyncSession, changes: Any) -> dict:
    assignment = AssignmentSchema.model_validate(changes)
    await AssignmentRepository.create(session, assignment)
    await recompute_day_allocation(session, assignment)
    return _dump(assignment)


async def _uncreate_assignment(session: AsyncSession, changes: Any) -> dict:
    assignment = AssignmentSchema.model_validate(changes)
    await DayRecordRepository.delete_for_assignment(session, assignment.id)
    await AssignmentRepository.delete(session, assignment.id)
    return _dump(assignment)


# ── modify-assignment ──

async def _modify_assignment(session: AsyncSession, changes: Any) -> dict:
    assignment = AssignmentSchema.model_validate(changes)
    old = await AssignmentRepository.get(session, assignment.id)
    await AssignmentRepository.update(session, assignment)
    await recompute_day_allocation(session, assignment)
    return _dump(old)


async def _unmodify_assignment(session: AsyncSession, changes: Any) -> dict:
    old = AssignmentSchema.model_validate(changes)
    current = await AssignmentRepository.get(session, old.id)
    await AssignmentRepository.update(session, old)
    await recompute_day_allocation(session, old)
    return _dump(current)


# ── remove-assignment ──

async def _remove_assignment(session: AsyncSession, changes: Any) -> dict:
    assignment_id = str(changes)
    old = await AssignmentRepository.get(session, assignment_id)
    await DayRecordRepository.delete_for_assignment(session, assignment_id)
    await AssignmentRepository.delete(session, assignment_id)
    return _dump(old)


async def _unremove_assignment(session: AsyncSession, changes: Any) -> str:
    assignment = AssignmentSchema.model_validate(changes)
    await AssignmentRepository.create(session, assignment)
    await recompute_day_allocation(session, assignment)
    return assignment.id


# ── create-submission ──

async def _create_submission(session: AsyncSession, changes: Any) -> dict:
    submission = SubmissionSchema.model_validate(changes)
    await SubmissionRepository.create(session, submission)
    return _dump(submission)


async def _uncreate_submission(session: AsyncSession, changes: Any) -> dict:
    submission = SubmissionSchema.model_validate(changes)
    await SubmissionRepository.delete(session, submission.id)
    return _dump(submission)


# ── finish-progress ──

async def _finish_progress(session: AsyncSession, changes: Any) -> list:
    return await _shift_spent(session, changes, 1)


async def _unfinish_progress(session: AsyncSession, changes: Any) -> list:
    return await _shift_spent(session, changes, -1)


HOMEWORK_OPERATIONS = (
    Operation(
        type=CREATE_ASSIGNMENT,
        apply=_create_assignment,
        revert=_uncreate_assignment,
        apply_kind=PayloadKind.ASSIGNMENT,
        revert_kind=PayloadKind.ASSIGNMENT,
    ),
    Operation(
        type=MODIFY_ASSIGNMENT,
        apply=_modify_assignment,
        revert=_unmodify_assignment,
        apply_kind=PayloadKind.ASSIGNMENT,
        revert_kind=PayloadKind.ASSIGNMENT,
    ),
    Operation(
        type=REMOVE_ASSIGNMENT,
        apply=_remove_assignment,
        revert=_unremove_assignment,
        apply_kind=PayloadKind.ASSIGNMENT_ID,
        revert_kind=PayloadKind.ASSIGNMENT,
    ),
    Operation(
        type=CREATE_SUBMISSION,
        apply=_create_submission,
        revert=_uncreate_submission,
        apply_kind=PayloadKind.SUBMISSION,
        revert_kind=PayloadKind.SUBMISSION,
    ),
    Operation(
        type=FINISH_PROGRESS,
        apply=_finish_progress,
        revert=_unfinish_progress,
        apply_kind=PayloadKind.PROGRESS,
        revert_kind=PayloadKind.PROGRESS,
    ),
)


def build_homework_registry() -> OperationRegistry:
    """构建包含五种作业操作的注册表"""
    registry = OperationRegistry()
    for operation in HOMEWORK_OPERATIONS:
        registry.register(operation)
    return registry
