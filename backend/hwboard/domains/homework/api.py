"""
Homework domain API routes - 科目、学生、作业、提交、每日分配
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError

from hwboard.common.exceptions import EntityNotFoundError, InvalidScheduleError
from hwboard.domains.homework import schemas
from hwboard.domains.homework.service import get_homework_service

router = APIRouter()


class DescribedAssignment(BaseModel):
    assignment: schemas.AssignmentSchema
    description: str = ""


class DescribedRemoval(BaseModel):
    description: str = ""


class DescribedSubmission(BaseModel):
    submission: schemas.SubmissionSchema
    description: str = ""


class DescribedProgress(BaseModel):
    progress: List[schemas.ProgressChange] = Field(..., min_length=1)
    description: str = ""


class OperationCreated(BaseModel):
    operation_id: str


def _service():
    return get_homework_service()


# ============================================================================
# Subjects
# ============================================================================

@router.get("/subjects", response_model=List[schemas.SubjectSchema], summary="列出科目")
async def list_subjects():
    return await _service().list_subjects()


@router.post("/subjects", response_model=schemas.SubjectSchema, status_code=status.HTTP_201_CREATED)
async def add_subject(subject: schemas.SubjectSchema):
    try:
        return await _service().add_subject(subject)
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Subject already exists")


@router.put("/subjects/{subject_id}", response_model=schemas.SubjectSchema)
async def update_subject(subject_id: str, subject: schemas.SubjectSchema):
    subject = subject.model_copy(update={"id": subject_id})
    if not await _service().update_subject(subject):
        raise HTTPException(status_code=404, detail="Subject not found")
    return subject


@router.delete("/subjects/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_subject(subject_id: str):
    if not await _service().remove_subject(subject_id):
        raise HTTPException(status_code=404, detail="Subject not found")


# ============================================================================
# Students
# ============================================================================

@router.get("/students", response_model=List[schemas.StudentSchema], summary="列出学生")
async def list_students():
    return await _service().list_students()


@router.post("/students", response_model=schemas.StudentSchema, status_code=status.HTTP_201_CREATED)
async def add_student(data: schemas.StudentCreate):
    return await _service().add_student(data.name, data.group)


@router.put("/students/{student_id}", response_model=schemas.StudentSchema)
async def update_student(student_id: str, data: schemas.StudentCreate):
    student = schemas.StudentSchema(id=student_id, name=data.name, group=data.group)
    if not await _service().update_student(student):
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.delete("/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_student(student_id: str):
    if not await _service().remove_student(student_id):
        raise HTTPException(status_code=404, detail="Student not found")


@router.get("/students/{student_id}/submissions", response_model=List[schemas.SubmissionSchema])
async def list_student_submissions(student_id: str):
    return await _service().list_submissions(student_id)


# ============================================================================
# Tags
# ============================================================================

@router.get("/tags", response_model=List[schemas.TagSchema], summary="列出标签")
async def list_tags():
    return await _service().list_tags()


@router.post("/tags", response_model=schemas.TagSchema, status_code=status.HTTP_201_CREATED)
async def add_tag(tag: schemas.TagSchema):
    try:
        return await _service().add_tag(tag)
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Tag already exists")


@router.put("/tags/{tag_id}", response_model=schemas.TagSchema)
async def update_tag(tag_id: str, tag: schemas.TagSchema):
    tag = tag.model_copy(update={"id": tag_id})
    if not await _service().update_tag(tag):
        raise HTTPException(status_code=404, detail="Tag not found")
    return tag


@router.delete("/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_tag(tag_id: str):
    if not await _service().remove_tag(tag_id):
        raise HTTPException(status_code=404, detail="Tag not found")


# ============================================================================
# Assignments
# ============================================================================

@router.get("/assignments", response_model=List[schemas.AssignmentData], summary="列出作业")
async def list_assignments(
    begin: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
):
    return await _service().list_assignments(begin, end)


@router.get("/assignments/{assignment_id}", response_model=schemas.AssignmentData)
async def get_assignment(assignment_id: str):
    try:
        return await _service().get_assignment(assignment_id)
    except EntityNotFoundError:
        raise HTTPException(status_code=404, detail="Assignment not found")


@router.post("/assignments", response_model=OperationCreated, status_code=status.HTTP_201_CREATED)
async def create_assignment(data: DescribedAssignment):
    try:
        operation_id = await _service().create_assignment(data.assignment, data.description)
    except IntegrityError:
        # id 重复或科目不存在
        raise HTTPException(status_code=409, detail="Assignment conflicts with stored data")
    return OperationCreated(operation_id=operation_id)


@router.put("/assignments/{assignment_id}", response_model=OperationCreated)
async def modify_assignment(assignment_id: str, data: DescribedAssignment):
    assignment = data.assignment.model_copy(update={"id": assignment_id})
    try:
        operation_id = await _service().modify_assignment(assignment, data.description)
    except EntityNotFoundError:
        raise HTTPException(status_code=404, detail="Assignment not found")
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Subject not found")
    return OperationCreated(operation_id=operation_id)


@router.post("/assignments/{assignment_id}/remove", response_model=OperationCreated)
async def remove_assignment(assignment_id: str, data: DescribedRemoval):
    try:
        operation_id = await _service().remove_assignment(assignment_id, data.description)
    except EntityNotFoundError:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return OperationCreated(operation_id=operation_id)


@router.post("/assignments/recompute", status_code=status.HTTP_204_NO_CONTENT, summary="重新计算每日分配")
async def recompute_assignment(assignment: schemas.AssignmentSchema):
    try:
        await _service().recompute(assignment)
    except InvalidScheduleError as e:
        raise HTTPException(status_code=422, detail=str(e))


# ============================================================================
# Submissions / Progress
# ============================================================================

@router.post("/submissions", response_model=OperationCreated, status_code=status.HTTP_201_CREATED)
async def create_submission(data: DescribedSubmission):
    try:
        operation_id = await _service().create_submission(data.submission, data.description)
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Submission conflicts with stored data")
    return OperationCreated(operation_id=operation_id)


@router.post("/progress", response_model=OperationCreated, status_code=status.HTTP_201_CREATED)
async def update_progress(data: DescribedProgress):
    operation_id = await _service().update_progress(data.progress, data.description)
    return OperationCreated(operation_id=operation_id)


# ============================================================================
# Day allocation
# ============================================================================

@router.get("/days", response_model=Dict[str, List[schemas.DayAllocation]], summary="每日分配")
async def get_days(begin: date = Query(...), end: date = Query(...)):
    if end < begin:
        raise HTTPException(status_code=422, detail="end is before begin")
    return await _service().get_days(begin, end)
