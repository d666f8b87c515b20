"""Shared fixtures: every test gets its own in-memory SQLite store."""

import os

# 测试环境: 不写日志文件，全局 db_manager 使用内存数据库
os.environ.setdefault("LOG_DIR", "")
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")

from datetime import datetime

import pytest

from hwboard.common.database import DatabaseManager
from hwboard.common.events import ChangeNotifier
from hwboard.domains.homework.operations import build_homework_registry
from hwboard.domains.homework.repository import AssignmentRepository, DayRecordRepository
from hwboard.domains.homework.schemas import AssignmentSchema, StudentSchema, SubjectSchema
from hwboard.domains.homework.service import HomeworkService
from hwboard.domains.operation.engine import OperationEngine


def make_assignment(subject: SubjectSchema, **overrides) -> AssignmentSchema:
    """Helper to create a 3-day, 120-minute assignment."""
    data = {
        "id": "a1",
        "subject": subject,
        "created": datetime(2024, 1, 1, 8, 0),
        "deadline": datetime(2024, 1, 3, 18, 0),
        "estimated": 120,
        "spent": 0,
        "title": "练习册 P12-15",
        "description": "完成所有选择题",
        "priority": 1,
        "config": {},
    }
    data.update(overrides)
    return AssignmentSchema(**data)


@pytest.fixture
async def database():
    manager = DatabaseManager("sqlite+aiosqlite:///:memory:", echo=False)
    await manager.initialize()
    await manager.create_tables()
    yield manager
    await manager.dispose()


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def engine(database, notifier):
    return OperationEngine(database, build_homework_registry(), notifier)


@pytest.fixture
def service(database, engine, notifier):
    return HomeworkService(database, engine, notifier)


@pytest.fixture
async def subject(service):
    return await service.add_subject(SubjectSchema(
        id="math",
        name="数学",
        color="#e53935",
        config={"assignment_presets": [{"name": "练习册", "duration": 2, "estimated": 60, "priority": 1}]},
    ))


@pytest.fixture
async def students(service):
    return [
        await service.add_student(StudentSchema(id="s1", name="张三", group="1班")),
        await service.add_student(StudentSchema(id="s2", name="李四", group="1班")),
    ]


@pytest.fixture
def read_assignment(database):
    async def _read(assignment_id: str):
        async with database.get_session() as session:
            return await AssignmentRepository.find(session, assignment_id)
    return _read


@pytest.fixture
def read_days(database):
    async def _read(assignment_id: str):
        async with database.get_session() as session:
            rows = await DayRecordRepository.list_for_assignment(session, assignment_id)
            return [(row.date.isoformat(), row.taken) for row in rows]
    return _read
