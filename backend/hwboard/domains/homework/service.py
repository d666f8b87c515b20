"""
Homework domain service - 业务逻辑层

Plain CRUD (subjects, students) writes directly and fires the change
notifier; assignment/submission/progress mutations go through the
operation engine so they can be undone.
"""

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple, Union

from hwboard.common.database import DatabaseManager
from hwboard.common.events import ChangeNotifier
from hwboard.domains.homework import operations as ops
from hwboard.domains.homework.repository import (
    AssignmentRepository,
    DayRecordRepository,
    StudentRepository,
    SubjectRepository,
    SubmissionRepository,
    TagRepository,
)
from hwboard.domains.homework.schemas import (
    AssignmentData,
    AssignmentSchema,
    DayAllocation,
    ProgressChange,
    StudentSchema,
    SubjectSchema,
    SubmissionSchema,
    TagSchema,
    to_local_naive,
)
from hwboard.domains.operation.engine import OperationEngine

logger = logging.getLogger(__name__)

ProgressInput = Union[ProgressChange, Tuple[int, str], Sequence]


class HomeworkService:
    """作业板数据服务"""

    def __init__(self, database: DatabaseManager, engine: OperationEngine, notifier: ChangeNotifier):
        self.database = database
        self.engine = engine
        self.notifier = notifier

    # ── Subjects ──

    async def list_subjects(self) -> List[SubjectSchema]:
        async with self.database.get_session() as session:
            return await SubjectRepository.list_all(session)

    async def add_subject(self, subject: SubjectSchema) -> SubjectSchema:
        async with self.database.get_session() as session:
            await SubjectRepository.create(session, subject)
        self.notifier.emit()
        return subject

    async def update_subject(self, subject: SubjectSchema) -> bool:
        async with self.database.get_session() as session:
            updated = await SubjectRepository.update(session, subject)
        self.notifier.emit()
        return updated

    async def remove_subject(self, subject_id: str) -> bool:
        async with self.database.get_session() as session:
            removed = await SubjectRepository.delete(session, subject_id)
        self.notifier.emit()
        return removed

    # ── Students ──

    async def list_students(self) -> List[StudentSchema]:
        """按分组、姓名排序"""
        async with self.database.get_session() as session:
            return await StudentRepository.list_all(session)

    async def add_student(self, student: Union[StudentSchema, str], group: str = "") -> StudentSchema:
        if isinstance(student, str):
            student = StudentSchema(name=student, group=group)
        async with self.database.get_session() as session:
            await StudentRepository.create(session, student)
        self.notifier.emit()
        return student

    async def update_student(self, student: StudentSchema) -> bool:
        async with self.database.get_session() as session:
            updated = await StudentRepository.update(session, student)
        self.notifier.emit()
        return updated

    async def remove_student(self, student_id: str) -> bool:
        async with self.database.get_session() as session:
            removed = await StudentRepository.delete(session, student_id)
        self.notifier.emit()
        return removed

    async def clear_students(self) -> int:
        async with self.database.get_session() as session:
            removed = await StudentRepository.clear(session)
        logger.info(f"Cleared {removed} students")
        self.notifier.emit()
        return removed

    # ── Tags ──

    async def list_tags(self) -> List[TagSchema]:
        async with self.database.get_session() as session:
            return await TagRepository.list_all(session)

    async def add_tag(self, tag: TagSchema) -> TagSchema:
        async with self.database.get_session() as session:
            await TagRepository.create(session, tag)
        self.notifier.emit()
        return tag

    async def update_tag(self, tag: TagSchema) -> bool:
        async with self.database.get_session() as session:
            updated = await TagRepository.update(session, tag)
        self.notifier.emit()
        return updated

    async def remove_tag(self, tag_id: str) -> bool:
        """作业 config.tags 中残留的 id 在读取时被忽略"""
        async with self.database.get_session() as session:
            removed = await TagRepository.delete(session, tag_id)
        self.notifier.emit()
        return removed

    # ── Assignments (read) ──

    async def get_assignment(self, assignment_id: str) -> AssignmentData:
        async with self.database.get_session() as session:
            assignment = await AssignmentRepository.get(session, assignment_id)
            return await self._assignment_data(session, assignment)

    async def list_assignments(
        self,
        begin: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[AssignmentData]:
        begin = to_local_naive(begin) if begin else None
        end = to_local_naive(end) if end else None
        async with self.database.get_session() as session:
            assignments = await AssignmentRepository.list_range(session, begin, end)
            return [await self._assignment_data(session, a) for a in assignments]

    @staticmethod
    async def _assignment_data(session, assignment: AssignmentSchema) -> AssignmentData:
        submissions = await SubmissionRepository.list_for_assignment(session, assignment.id)
        total = await StudentRepository.count(session)
        tags = await TagRepository.list_by_ids(session, assignment.config.get("tags") or [])
        return AssignmentData(
            **assignment.model_dump(),
            submissions=submissions,
            total_required_submissions=total,
            tags=tags,
        )

    # ── Submissions (read) ──

    async def list_submissions(self, student_id: str) -> List[SubmissionSchema]:
        async with self.database.get_session() as session:
            return await SubmissionRepository.list_for_student(session, student_id)

    # ── Day allocation (read) ──

    async def get_days(self, begin: date, end: date) -> Dict[str, List[DayAllocation]]:
        """[begin, end] 内的每日分配，按 ISO 日期分组"""
        async with self.database.get_session() as session:
            rows = await DayRecordRepository.list_between(session, begin, end)
        days: Dict[str, List[DayAllocation]] = defaultdict(list)
        for row in rows:
            days[row.date.isoformat()].append(DayAllocation.model_validate(row))
        return dict(days)

    # ── Reversible mutations ──

    async def create_assignment(self, assignment: AssignmentSchema, description: str) -> str:
        return await self.engine.apply(ops.CREATE_ASSIGNMENT, assignment, description)

    async def modify_assignment(self, assignment: AssignmentSchema, description: str) -> str:
        return await self.engine.apply(ops.MODIFY_ASSIGNMENT, assignment, description)

    async def remove_assignment(self, assignment_id: str, description: str) -> str:
        return await self.engine.apply(ops.REMOVE_ASSIGNMENT, assignment_id, description)

    async def create_submission(self, submission: SubmissionSchema, description: str) -> str:
        return await self.engine.apply(ops.CREATE_SUBMISSION, submission, description)

    async def update_progress(self, progress: Sequence[ProgressInput], description: str) -> str:
        """二元组按二元组记录，对象按对象记录"""
        progress = list(progress)
        for item in progress:
            ProgressChange.model_validate(item)
        return await self.engine.apply(ops.FINISH_PROGRESS, progress, description)

    async def recompute(self, assignment: AssignmentSchema) -> None:
        await self.engine.recompute_day_allocation(assignment)


_service: Optional[HomeworkService] = None


def get_homework_service() -> HomeworkService:
    global _service
    if _service is None:
        from hwboard.domains.operation.engine import get_operation_engine

        engine = get_operation_engine()
        _service = HomeworkService(engine.database, engine, engine.notifier)
    return _service
