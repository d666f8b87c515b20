"""
Homework domain Pydantic schemas - 请求/响应及操作载荷模型
"""

from datetime import date as calendar_date, datetime
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hwboard.common.base import new_id


def to_local_naive(value: datetime) -> datetime:
    """带时区的时间统一转换为本地时间（去掉 tzinfo），与存储格式一致"""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


# ============================================================================
# Subject / Student
# ============================================================================

class SubjectSchema(BaseModel):
    """科目"""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=new_id)
    name: str
    color: str = Field(default="#888888", description="显示颜色")
    config: Dict[str, Any] = Field(default_factory=dict, description="科目配置 (assignment_presets 等)")

    @field_validator("config", mode="before")
    @classmethod
    def _ensure_config(cls, v):
        return v if isinstance(v, dict) else {}


class StudentSchema(BaseModel):
    """学生"""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=new_id)
    name: str
    group: str = ""


class StudentCreate(BaseModel):
    name: str
    group: str = ""


class TagSchema(BaseModel):
    """作业标签"""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=new_id)
    name: str
    color: str = Field(default="#888888", description="显示颜色")


# ============================================================================
# Assignment
# ============================================================================

class AssignmentSchema(BaseModel):
    """作业 - 操作日志中 create/modify/remove 的载荷形状"""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id)
    subject: SubjectSchema
    created: datetime
    deadline: datetime
    estimated: int = Field(..., ge=0, description="预计用时 (分钟)")
    spent: int = Field(default=0, description="已用时 (分钟)")
    title: str
    description: str = ""
    priority: int = 0
    config: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("created", "deadline")
    @classmethod
    def _normalize_datetime(cls, v: datetime) -> datetime:
        return to_local_naive(v)

    @field_validator("config", mode="before")
    @classmethod
    def _ensure_config(cls, v):
        return v if isinstance(v, dict) else {}

    @model_validator(mode="after")
    def _check_schedule(self):
        if self.deadline < self.created:
            raise ValueError(
                f"deadline {self.deadline.isoformat()} is before created {self.created.isoformat()}"
            )
        return self


class AssignmentData(AssignmentSchema):
    """作业 + 提交列表 + 应提交人数 + 标签"""
    submissions: List["SubmissionSchema"] = Field(default_factory=list)
    total_required_submissions: int = 0
    tags: List[TagSchema] = Field(default_factory=list)


# ============================================================================
# Submission
# ============================================================================

class AssignmentRef(BaseModel):
    """提交中引用的作业 - 审计日志中只保留 id"""
    model_config = ConfigDict(extra="ignore")

    id: str


class SubmissionSchema(BaseModel):
    """作业提交"""
    id: str = Field(default_factory=new_id)
    assignment: AssignmentRef
    student: StudentSchema
    created: datetime
    spent: Optional[int] = None
    feedback: Optional[str] = None

    @field_validator("created")
    @classmethod
    def _normalize_datetime(cls, v: datetime) -> datetime:
        return to_local_naive(v)


AssignmentData.model_rebuild()


# ============================================================================
# Progress / Day allocation
# ============================================================================

class ProgressChange(BaseModel):
    """单条进度变化: (delta, assignment_id)，也接受 [delta, assignment_id] 二元组"""
    delta: int
    assignment_id: str

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data):
        if isinstance(data, (list, tuple)) and len(data) == 2:
            return {"delta": data[0], "assignment_id": data[1]}
        return data


class DayAllocation(BaseModel):
    """每日分配行"""
    model_config = ConfigDict(from_attributes=True)

    date: calendar_date
    assignment_id: str
    subject_id: Optional[str] = None
    taken: float
