"""
Homework domain models - 科目、作业、学生、提交、每日分配
"""

from datetime import date as calendar_date, datetime
from typing import Optional, Dict, Any

from sqlalchemy import String, Text, JSON, Integer, Float, Date, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from hwboard.common.base import Base, UUIDMixin, get_table_args, get_table_ref

SCHEMA = "homework"


class Subject(Base, UUIDMixin):
    """科目 - 名称、颜色、作业预设等配置"""

    __tablename__ = "subjects"
    __table_args__ = get_table_args(schema=SCHEMA)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(32), nullable=False)
    config: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self):
        return f"<Subject(id={self.id}, name={self.name})>"


class Assignment(Base, UUIDMixin):
    """作业 - estimated / spent 单位为分钟"""

    __tablename__ = "assignments"
    __table_args__ = get_table_args(
        Index("idx_assignments_subject", "subject_id"),
        Index("idx_assignments_range", "created", "deadline"),
        schema=SCHEMA
    )

    subject_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey(get_table_ref("subjects", schema=SCHEMA), ondelete="CASCADE"),
        nullable=False
    )
    created: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    deadline: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    estimated: Mapped[int] = mapped_column(Integer, nullable=False)
    spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    config: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self):
        return f"<Assignment(id={self.id}, title={self.title}, subject_id={self.subject_id})>"


class Student(Base, UUIDMixin):
    """学生"""

    __tablename__ = "students"
    __table_args__ = get_table_args(schema=SCHEMA)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    group: Mapped[str] = mapped_column(String(100), nullable=False, default="")


class AssignmentTag(Base, UUIDMixin):
    """作业标签; 作业通过 config.tags 保存标签 id 列表引用"""

    __tablename__ = "assignment_tags"
    __table_args__ = get_table_args(schema=SCHEMA)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(32), nullable=False)

    def __repr__(self):
        return f"<AssignmentTag(id={self.id}, name={self.name})>"


class Submission(Base, UUIDMixin):
    """作业提交记录"""

    __tablename__ = "submissions"
    __table_args__ = get_table_args(
        Index("idx_submissions_assignment", "assignment_id"),
        Index("idx_submissions_student", "student_id"),
        schema=SCHEMA
    )

    assignment_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey(get_table_ref("assignments", schema=SCHEMA), ondelete="CASCADE"),
        nullable=False
    )
    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey(get_table_ref("students", schema=SCHEMA), ondelete="CASCADE"),
        nullable=False
    )
    created: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    spent: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class DayRecord(Base):
    """每日分配 - 派生数据，由作业的 estimated 与日期范围计算得出，不手工编辑"""

    __tablename__ = "day_records"
    __table_args__ = get_table_args(
        Index("idx_day_records_date", "date"),
        Index("idx_day_records_assignment", "assignment_id"),
        schema=SCHEMA
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[calendar_date] = mapped_column(Date, nullable=False)
    assignment_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey(get_table_ref("assignments", schema=SCHEMA), ondelete="CASCADE"),
        nullable=False
    )
    subject_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey(get_table_ref("subjects", schema=SCHEMA), ondelete="SET NULL"),
        nullable=True
    )
    taken: Mapped[float] = mapped_column(Float, nullable=False)
