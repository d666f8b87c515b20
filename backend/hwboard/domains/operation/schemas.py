"""
Operation domain Pydantic schemas
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class OperationLogEntry(BaseModel):
    """操作日志条目"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    seq: int
    description: str
    created: datetime
    type: str
    payload_kind: str
    changes: Any = None
    reverted: bool


class ApplyOperationRequest(BaseModel):
    """执行一次操作"""
    type: str = Field(..., description="操作类型 (create-assignment, modify-assignment, ...)")
    changes: Any = Field(..., description="操作载荷，形状由操作类型决定")
    description: str = Field(default="", description="审计说明")


class ApplyOperationResponse(BaseModel):
    id: str


class CompactResponse(BaseModel):
    rewritten: int


class ToggleResponse(BaseModel):
    id: str
    toggled: bool
    reverted: Optional[bool] = None
