"""审计日志瘦身 - 去掉载荷里与撤销/重做无关的大字段"""

import copy
import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hwboard.domains.operation.models import OperationLog
from hwboard.domains.operation.registry import PayloadKind

logger = logging.getLogger(__name__)

# 作业载荷中不写入日志的字段
ASSIGNMENT_DETAIL_FIELDS = ("submissions", "total_required_submissions", "tags")


def _strip_assignment(payload: dict) -> dict:
    for field in ASSIGNMENT_DETAIL_FIELDS:
        payload.pop(field, None)
    subject = payload.get("subject")
    if isinstance(subject, dict) and "config" in subject:
        subject["config"] = {}
    return payload


def _strip_submission(payload: dict) -> dict:
    assignment = payload.get("assignment")
    if isinstance(assignment, dict) and "id" in assignment:
        payload["assignment"] = {"id": assignment["id"]}
    return payload


def sanitize_payload(kind: PayloadKind, payload: Any) -> Any:
    """Return a stripped copy of ``payload``; stripping twice is a no-op."""
    if not isinstance(payload, dict):
        return payload

    kind = PayloadKind(kind)
    payload = copy.deepcopy(payload)
    if kind is PayloadKind.ASSIGNMENT:
        return _strip_assignment(payload)
    if kind is PayloadKind.SUBMISSION:
        return _strip_submission(payload)
    return payload


async def compact_operation_logs(session: AsyncSession) -> int:
    """重新瘦身全部历史日志，不改变 reverted 状态。返回被改写的行数。"""
    result = await session.execute(
        select(OperationLog.id, OperationLog.payload_kind, OperationLog.changes)
    )
    rewritten = 0
    for entry_id, payload_kind, changes in result.all():
        stripped = sanitize_payload(payload_kind, changes)
        if stripped != changes:
            await session.execute(
                update(OperationLog)
                .where(OperationLog.id == entry_id)
                .values(changes=stripped)
                .execution_options(synchronize_session=False)
            )
            rewritten += 1

    logger.info(f"Compacted operation logs: {rewritten} rewritten")
    return rewritten
