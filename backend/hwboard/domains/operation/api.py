"""
Operation domain API routes - 操作日志的撤销/重做
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from hwboard.common.exceptions import EntityNotFoundError, UnknownOperationError
from hwboard.domains.operation import schemas
from hwboard.domains.operation.engine import get_operation_engine

router = APIRouter()


def _engine():
    return get_operation_engine()


@router.get("", response_model=List[schemas.OperationLogEntry], summary="列出操作日志")
async def list_operations(
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    since: Optional[datetime] = Query(None, description="只返回此时间之后的操作"),
    q: Optional[str] = Query(None, description="描述中包含的文字"),
):
    return await _engine().list(limit, offset, since=since, description_contains=q)


@router.post(
    "",
    response_model=schemas.ApplyOperationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="执行操作",
)
async def apply_operation(data: schemas.ApplyOperationRequest):
    try:
        entry_id = await _engine().apply(data.type, data.changes, data.description)
    except UnknownOperationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except IntegrityError as e:
        raise HTTPException(status_code=409, detail=str(e.orig))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    return schemas.ApplyOperationResponse(id=entry_id)


@router.get("/{entry_id}", response_model=schemas.OperationLogEntry, summary="获取操作日志")
async def get_operation(entry_id: str):
    entry = await _engine().get(entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Operation not found")
    return entry


async def _toggle(entry_id: str, action) -> schemas.ToggleResponse:
    try:
        toggled = await action(entry_id)
    except (EntityNotFoundError, IntegrityError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    entry = await _engine().get(entry_id)
    return schemas.ToggleResponse(
        id=entry_id,
        toggled=toggled,
        reverted=entry.reverted if entry else None,
    )


@router.post("/{entry_id}/undo", response_model=schemas.ToggleResponse, summary="撤销")
async def undo_operation(entry_id: str):
    """已撤销或不存在的记录不做任何事"""
    return await _toggle(entry_id, _engine().undo)


@router.post("/{entry_id}/redo", response_model=schemas.ToggleResponse, summary="重做")
async def redo_operation(entry_id: str):
    return await _toggle(entry_id, _engine().redo)


@router.post("/{entry_id}/toggle", response_model=schemas.ToggleResponse, summary="按线性历史撤销/重做")
async def toggle_operation(entry_id: str):
    """先撤销之后的所有操作，切换该操作，再按顺序重做"""
    return await _toggle(entry_id, _engine().toggle)


@router.post("/maintenance/compact", response_model=schemas.CompactResponse, summary="日志瘦身")
async def compact_operations():
    rewritten = await _engine().compact_logs()
    return schemas.CompactResponse(rewritten=rewritten)
