"""操作注册表 - 操作类型名 -> {apply, revert}"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from hwboard.common.exceptions import UnknownOperationError

logger = logging.getLogger(__name__)

OperationFunc = Callable[[AsyncSession, Any], Awaitable[Any]]


class PayloadKind(str, Enum):
    """changes 载荷的形状，写日志时由操作类型和方向确定"""
    ASSIGNMENT = "assignment"
    ASSIGNMENT_ID = "assignment_id"
    SUBMISSION = "submission"
    PROGRESS = "progress"


@dataclass(frozen=True)
class Operation:
    """
    A registered reversible operation.

    ``apply(session, x)`` performs the forward mutation and returns what
    ``revert`` needs; ``revert(session, y)`` undoes it and returns what
    ``apply`` needs. The two payload shapes may differ (``apply_kind`` vs
    ``revert_kind``) but ``revert(apply(x)) == x`` and ``apply(revert(y)) == y``.
    """

    type: str
    apply: OperationFunc
    revert: OperationFunc
    apply_kind: PayloadKind
    revert_kind: PayloadKind

    def payload_kind(self, reverted: bool) -> PayloadKind:
        """Shape of the stored changes for a log entry in the given state."""
        return self.apply_kind if reverted else self.revert_kind


class OperationRegistry:
    """Append-only table of operations, built once at startup."""

    def __init__(self):
        self._operations: Dict[str, Operation] = {}

    def register(self, operation: Operation) -> Operation:
        if operation.type in self._operations:
            raise ValueError(f"Operation type already registered: {operation.type}")
        self._operations[operation.type] = operation
        logger.debug(f"Registered operation {operation.type}")
        return operation

    def get(self, operation_type: str) -> Operation:
        try:
            return self._operations[operation_type]
        except KeyError:
            raise UnknownOperationError(operation_type) from None

    def types(self) -> List[str]:
        return list(self._operations)

    def __contains__(self, operation_type: str) -> bool:
        return operation_type in self._operations

    def __len__(self) -> int:
        return len(self._operations)
