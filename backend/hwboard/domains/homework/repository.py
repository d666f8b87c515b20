"""Homework domain repository - 数据访问层 (AsyncSession)"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy import select, insert, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from hwboard.common.exceptions import EntityNotFoundError
from hwboard.domains.homework.models import (
    Assignment,
    AssignmentTag,
    DayRecord,
    Student,
    Subject,
    Submission,
)
from hwboard.domains.homework.schemas import (
    AssignmentSchema,
    StudentSchema,
    SubjectSchema,
    SubmissionSchema,
    TagSchema,
)

logger = logging.getLogger(__name__)


def _assignment_from_row(assignment: Assignment, subject: Subject) -> AssignmentSchema:
    return AssignmentSchema(
        id=assignment.id,
        subject=SubjectSchema.model_validate(subject),
        created=assignment.created,
        deadline=assignment.deadline,
        estimated=assignment.estimated,
        spent=assignment.spent,
        title=assignment.title,
        description=assignment.description,
        priority=assignment.priority,
        config=assignment.config or {},
    )


def _assignment_values(assignment: AssignmentSchema) -> dict:
    return {
        "subject_id": assignment.subject.id,
        "created": assignment.created,
        "deadline": assignment.deadline,
        "estimated": assignment.estimated,
        "spent": assignment.spent,
        "title": assignment.title,
        "description": assignment.description,
        "priority": assignment.priority,
        "config": assignment.config or {},
    }


# ---------------------------------------------------------------------------
# SubjectRepository
# ---------------------------------------------------------------------------

class SubjectRepository:

    @staticmethod
    async def list_all(session: AsyncSession) -> List[SubjectSchema]:
        stmt = select(Subject).order_by(Subject.id).execution_options(populate_existing=True)
        result = await session.execute(stmt)
        return [SubjectSchema.model_validate(row) for row in result.scalars().all()]

    @staticmethod
    async def create(session: AsyncSession, subject: SubjectSchema) -> None:
        await session.execute(insert(Subject).values(**subject.model_dump()))

    @staticmethod
    async def update(session: AsyncSession, subject: SubjectSchema) -> bool:
        stmt = (
            update(Subject)
            .where(Subject.id == subject.id)
            .values(name=subject.name, color=subject.color, config=subject.config)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    async def delete(session: AsyncSession, subject_id: str) -> bool:
        result = await session.execute(delete(Subject).where(Subject.id == subject_id))
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# StudentRepository
# ---------------------------------------------------------------------------

class StudentRepository:

    @staticmethod
    async def list_all(session: AsyncSession) -> List[StudentSchema]:
        stmt = select(Student).order_by(Student.group, Student.name).execution_options(populate_existing=True)
        result = await session.execute(stmt)
        return [StudentSchema.model_validate(row) for row in result.scalars().all()]

    @staticmethod
    async def count(session: AsyncSession) -> int:
        return (await session.execute(select(func.count()).select_from(Student))).scalar_one()

    @staticmethod
    async def create(session: AsyncSession, student: StudentSchema) -> None:
        await session.execute(insert(Student).values(**student.model_dump()))

    @staticmethod
    async def update(session: AsyncSession, student: StudentSchema) -> bool:
        stmt = (
            update(Student)
            .where(Student.id == student.id)
            .values(name=student.name, group=student.group)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    async def delete(session: AsyncSession, student_id: str) -> bool:
        result = await session.execute(delete(Student).where(Student.id == student_id))
        return result.rowcount > 0

    @staticmethod
    async def clear(session: AsyncSession) -> int:
        result = await session.execute(delete(Student))
        return result.rowcount


# ---------------------------------------------------------------------------
# TagRepository
# ---------------------------------------------------------------------------

class TagRepository:

    @staticmethod
    async def list_all(session: AsyncSession) -> List[TagSchema]:
        stmt = select(AssignmentTag).order_by(AssignmentTag.id).execution_options(populate_existing=True)
        result = await session.execute(stmt)
        return [TagSchema.model_validate(row) for row in result.scalars().all()]

    @staticmethod
    async def list_by_ids(session: AsyncSession, tag_ids: Iterable[str]) -> List[TagSchema]:
        """按 id 批量取标签，不存在的 id 直接忽略"""
        tag_ids = list(tag_ids)
        if not tag_ids:
            return []
        stmt = (
            select(AssignmentTag)
            .where(AssignmentTag.id.in_(tag_ids))
            .order_by(AssignmentTag.id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return [TagSchema.model_validate(row) for row in result.scalars().all()]

    @staticmethod
    async def create(session: AsyncSession, tag: TagSchema) -> None:
        await session.execute(insert(AssignmentTag).values(**tag.model_dump()))

    @staticmethod
    async def update(session: AsyncSession, tag: TagSchema) -> bool:
        stmt = (
            update(AssignmentTag)
            .where(AssignmentTag.id == tag.id)
            .values(name=tag.name, color=tag.color)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    async def delete(session: AsyncSession, tag_id: str) -> bool:
        result = await session.execute(delete(AssignmentTag).where(AssignmentTag.id == tag_id))
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# AssignmentRepository
# ---------------------------------------------------------------------------

class AssignmentRepository:

    @staticmethod
    async def find(session: AsyncSession, assignment_id: str) -> Optional[AssignmentSchema]:
        stmt = (
            select(Assignment, Subject)
            .join(Subject, Assignment.subject_id == Subject.id)
            .where(Assignment.id == assignment_id)
            .execution_options(populate_existing=True)
        )
        row = (await session.execute(stmt)).one_or_none()
        return _assignment_from_row(*row) if row else None

    @staticmethod
    async def get(session: AsyncSession, assignment_id: str) -> AssignmentSchema:
        assignment = await AssignmentRepository.find(session, assignment_id)
        if assignment is None:
            raise EntityNotFoundError("Assignment", assignment_id)
        return assignment

    @staticmethod
    async def list_range(
        session: AsyncSession,
        begin: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[AssignmentSchema]:
        """列出与 [begin, end] 有交集的作业，按创建时间排序"""
        stmt = select(Assignment, Subject).join(Subject, Assignment.subject_id == Subject.id)
        if begin is not None:
            stmt = stmt.where(Assignment.deadline >= begin)
        if end is not None:
            stmt = stmt.where(Assignment.created <= end)
        stmt = stmt.order_by(Assignment.created).execution_options(populate_existing=True)
        result = await session.execute(stmt)
        return [_assignment_from_row(a, s) for a, s in result.all()]

    @staticmethod
    async def create(session: AsyncSession, assignment: AssignmentSchema) -> None:
        await session.execute(
            insert(Assignment).values(id=assignment.id, **_assignment_values(assignment))
        )

    @staticmethod
    async def update(session: AsyncSession, assignment: AssignmentSchema) -> None:
        stmt = (
            update(Assignment)
            .where(Assignment.id == assignment.id)
            .values(**_assignment_values(assignment))
        )
        result = await session.execute(stmt)
        if result.rowcount == 0:
            raise EntityNotFoundError("Assignment", assignment.id)

    @staticmethod
    async def delete(session: AsyncSession, assignment_id: str) -> bool:
        result = await session.execute(delete(Assignment).where(Assignment.id == assignment_id))
        return result.rowcount > 0

    @staticmethod
    async def add_spent(session: AsyncSession, assignment_id: str, delta: int) -> bool:
        stmt = (
            update(Assignment)
            .where(Assignment.id == assignment_id)
            .values(spent=Assignment.spent + delta)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        if result.rowcount == 0:
            logger.warning(f"Progress change skipped, assignment {assignment_id} not found")
            return False
        return True


# ---------------------------------------------------------------------------
# SubmissionRepository
# ---------------------------------------------------------------------------

class SubmissionRepository:

    @staticmethod
    async def create(session: AsyncSession, submission: SubmissionSchema) -> None:
        await session.execute(
            insert(Submission).values(
                id=submission.id,
                assignment_id=submission.assignment.id,
                student_id=submission.student.id,
                created=submission.created,
                spent=submission.spent,
                feedback=submission.feedback,
            )
        )

    @staticmethod
    async def delete(session: AsyncSession, submission_id: str) -> bool:
        result = await session.execute(delete(Submission).where(Submission.id == submission_id))
        return result.rowcount > 0

    @staticmethod
    async def list_for_assignment(session: AsyncSession, assignment_id: str) -> List[SubmissionSchema]:
        stmt = (
            select(Submission, Student)
            .join(Student, Submission.student_id == Student.id)
            .where(Submission.assignment_id == assignment_id)
            .order_by(Submission.created)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return [
            SubmissionSchema(
                id=sub.id,
                assignment={"id": sub.assignment_id},
                student=StudentSchema.model_validate(stu),
                created=sub.created,
                spent=sub.spent,
                feedback=sub.feedback,
            )
            for sub, stu in result.all()
        ]

    @staticmethod
    async def list_for_student(session: AsyncSession, student_id: str) -> List[SubmissionSchema]:
        stmt = (
            select(Submission, Student)
            .join(Student, Submission.student_id == Student.id)
            .where(Submission.student_id == student_id)
            .order_by(Submission.created)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return [
            SubmissionSchema(
                id=sub.id,
                assignment={"id": sub.assignment_id},
                student=StudentSchema.model_validate(stu),
                created=sub.created,
                spent=sub.spent,
                feedback=sub.feedback,
            )
            for sub, stu in result.all()
        ]


# ---------------------------------------------------------------------------
# DayRecordRepository
# ---------------------------------------------------------------------------

class DayRecordRepository:

    @staticmethod
    async def delete_for_assignment(session: AsyncSession, assignment_id: str) -> int:
        result = await session.execute(delete(DayRecord).where(DayRecord.assignment_id == assignment_id))
        return result.rowcount

    @staticmethod
    async def insert_many(session: AsyncSession, rows: Iterable[dict]) -> None:
        rows = list(rows)
        if rows:
            await session.execute(insert(DayRecord), rows)

    @staticmethod
    async def list_for_assignment(session: AsyncSession, assignment_id: str) -> List[DayRecord]:
        stmt = (
            select(DayRecord)
            .where(DayRecord.assignment_id == assignment_id)
            .order_by(DayRecord.date)
            .execution_options(populate_existing=True)
        )
        return list((await session.execute(stmt)).scalars().all())

    @staticmethod
    async def list_between(session: AsyncSession, begin: date, end: date) -> List[DayRecord]:
        stmt = (
            select(DayRecord)
            .where(DayRecord.date.between(begin, end))
            .order_by(DayRecord.date, DayRecord.id)
            .execution_options(populate_existing=True)
        )
        return list((await session.execute(stmt)).scalars().all())
