"""操作日志模型 - 每次状态变更的可撤销记录（审计日志，只改不删）"""

from datetime import datetime
from typing import Any

from sqlalchemy import String, Text, JSON, Integer, Boolean, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from hwboard.common.base import Base, UUIDMixin, get_table_args


class OperationLog(Base, UUIDMixin):
    """
    操作日志表

    changes 始终保存"按当前方向再执行一次所需的数据":
    reverted=False 时是 revert() 的输入，reverted=True 时是 apply() 的输入。
    """

    __tablename__ = "operation_logs"
    __table_args__ = get_table_args(
        Index("idx_operation_logs_created", "created"),
        Index("idx_operation_logs_seq", "seq", unique=True),
        schema="operation"
    )

    # 记录顺序 (同一时间戳内也能区分先后)
    seq: Mapped[int] = mapped_column(Integer, nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)
    created: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # 操作类型 (create-assignment, finish-progress, ...)
    type: Mapped[str] = mapped_column(String(50), nullable=False)

    # changes 的载荷形状 (assignment / assignment_id / submission / progress)
    payload_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    changes: Mapped[Any] = mapped_column(JSON, nullable=True)

    reverted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<OperationLog(id={self.id}, type={self.type}, reverted={self.reverted})>"
