"""
操作日志引擎 - apply / undo / redo / list

Every state change goes through ``apply(type, changes, description)``: the
entry is inserted as reverted and immediately redone, so recording and the
first execution share the redo path. ``undo``/``redo`` address an entry by
id, anywhere in history; the engine does not order them. ``toggle`` is the
linear-history helper: it undoes every later active entry (newest first),
flips the target, then redoes those entries (oldest first).

Each call runs in a single database transaction under an engine-wide lock.
If a registry function raises, the transaction is rolled back and the log
row keeps its pre-call state.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, List, Optional, Union

from sqlalchemy import select, insert, update, func
from pydantic_core import to_jsonable_python
from sqlalchemy.ext.asyncio import AsyncSession

from hwboard.common.base import new_id
from hwboard.common.database import DatabaseManager
from hwboard.common.events import ChangeNotifier
from hwboard.domains.homework.allocation import recompute_day_allocation
from hwboard.domains.homework.schemas import AssignmentSchema, to_local_naive
from hwboard.domains.operation.models import OperationLog
from hwboard.domains.operation.registry import OperationRegistry
from hwboard.domains.operation.sanitize import compact_operation_logs, sanitize_payload
from hwboard.domains.operation.schemas import OperationLogEntry

logger = logging.getLogger(__name__)


class OperationEngine:
    """Reversible mutation engine over a DatabaseManager."""

    def __init__(
        self,
        database: DatabaseManager,
        registry: OperationRegistry,
        notifier: ChangeNotifier,
        max_list_limit: int = 500,
    ):
        self.database = database
        self.registry = registry
        self.notifier = notifier
        self.max_list_limit = max_list_limit
        self._lock = asyncio.Lock()

    # ── public surface ──

    async def apply(self, operation_type: str, changes: Any, description: str = "") -> str:
        """Record and execute an operation; returns the new log entry id.

        Raises:
            UnknownOperationError: ``operation_type`` is not registered.
        """
        operation = self.registry.get(operation_type)
        entry_id = new_id()
        payload = sanitize_payload(operation.payload_kind(reverted=True), to_jsonable_python(changes))

        async with self._lock:
            async with self.database.get_session() as session:
                seq = await self._next_seq(session)
                await session.execute(
                    insert(OperationLog).values(
                        id=entry_id,
                        seq=seq,
                        description=description,
                        created=datetime.now(),
                        type=operation.type,
                        payload_kind=operation.payload_kind(reverted=True).value,
                        changes=payload,
                        reverted=True,
                    )
                )
                await self._transition(session, entry_id, forward=True)

        logger.info(f"Applied {operation_type} as {entry_id}: {description}")
        self.notifier.emit()
        return entry_id

    async def undo(self, entry_id: str) -> bool:
        """Revert an active entry. Unknown or already reverted ids are a no-op."""
        return await self._run_single(entry_id, forward=False)

    async def redo(self, entry_id: str) -> bool:
        """Re-apply a reverted entry. Unknown or already active ids are a no-op."""
        return await self._run_single(entry_id, forward=True)

    async def toggle(self, entry_id: str) -> bool:
        """Undo or redo ``entry_id`` while keeping linear-history semantics.

        Later active entries are undone newest first, the target is flipped,
        then those entries are redone oldest first, all in one transaction.
        """
        async with self._lock:
            async with self.database.get_session() as session:
                target = await self._get_row(session, entry_id)
                if target is None:
                    logger.debug(f"Toggle skipped, entry {entry_id} not found")
                    return False

                stmt = (
                    select(OperationLog.id)
                    .where(OperationLog.seq > target.seq, OperationLog.reverted.is_(False))
                    .order_by(OperationLog.seq.desc())
                )
                later = list((await session.execute(stmt)).scalars().all())

                for later_id in later:
                    await self._transition(session, later_id, forward=False)
                await self._transition(session, entry_id, forward=target.reverted)
                for later_id in reversed(later):
                    await self._transition(session, later_id, forward=True)

        logger.info(f"Toggled {entry_id} around {len(later)} later entries")
        self.notifier.emit()
        return True

    async def list(
        self,
        limit: int = 50,
        offset: int = 0,
        since: Optional[datetime] = None,
        description_contains: Optional[str] = None,
    ) -> List[OperationLogEntry]:
        """Newest first, optionally filtered by ``created >= since`` and description substring."""
        limit = max(0, min(limit, self.max_list_limit))
        stmt = select(OperationLog)
        if since is not None:
            stmt = stmt.where(OperationLog.created >= to_local_naive(since))
        if description_contains:
            stmt = stmt.where(OperationLog.description.contains(description_contains, autoescape=True))
        stmt = (
            stmt.order_by(OperationLog.created.desc(), OperationLog.seq.desc())
            .limit(limit)
            .offset(max(0, offset))
            .execution_options(populate_existing=True)
        )

        async with self.database.get_session() as session:
            result = await session.execute(stmt)
            return [OperationLogEntry.model_validate(row) for row in result.scalars().all()]

    async def get(self, entry_id: str) -> Optional[OperationLogEntry]:
        async with self.database.get_session() as session:
            row = await self._get_row(session, entry_id)
            return OperationLogEntry.model_validate(row) if row else None

    async def recompute_day_allocation(self, assignment: Union[AssignmentSchema, dict]) -> None:
        """Rebuild an assignment's day allocation rows (manual repair entry point)."""
        assignment = AssignmentSchema.model_validate(assignment)
        async with self._lock:
            async with self.database.get_session() as session:
                await recompute_day_allocation(session, assignment)
        self.notifier.emit()

    async def compact_logs(self) -> int:
        """Re-strip bulky fields from every stored payload."""
        async with self._lock:
            async with self.database.get_session() as session:
                return await compact_operation_logs(session)

    def on_changed(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self.notifier.on_changed(callback)

    # ── internals ──

    async def _run_single(self, entry_id: str, forward: bool) -> bool:
        async with self._lock:
            async with self.database.get_session() as session:
                changed = await self._transition(session, entry_id, forward=forward)
        if changed:
            self.notifier.emit()
        return changed

    async def _transition(self, session: AsyncSession, entry_id: str, forward: bool) -> bool:
        """The only place a forward or inverse transition is executed and persisted."""
        row = await self._get_row(session, entry_id)
        if row is None:
            logger.debug(f"Entry {entry_id} not found, nothing to {'redo' if forward else 'undo'}")
            return False
        # reverted=True 才能 redo，reverted=False 才能 undo
        if row.reverted != forward:
            logger.debug(f"Entry {entry_id} already {'active' if forward else 'reverted'}")
            return False

        operation = self.registry.get(row.type)
        func_ = operation.apply if forward else operation.revert
        try:
            result = await func_(session, row.changes)
        except Exception as e:
            logger.error(f"{'Redo' if forward else 'Undo'} of {row.type} {entry_id} failed: {e}")
            raise

        reverted = not forward
        kind = operation.payload_kind(reverted)
        await session.execute(
            update(OperationLog)
            .where(OperationLog.id == entry_id)
            .values(changes=sanitize_payload(kind, result), payload_kind=kind.value, reverted=reverted)
            .execution_options(synchronize_session=False)
        )
        logger.debug(f"{'Redid' if forward else 'Undid'} {row.type} {entry_id}")
        return True

    @staticmethod
    async def _get_row(session: AsyncSession, entry_id: str) -> Optional[OperationLog]:
        stmt = (
            select(OperationLog)
            .where(OperationLog.id == entry_id)
            .execution_options(populate_existing=True)
        )
        return (await session.execute(stmt)).scalar_one_or_none()

    @staticmethod
    async def _next_seq(session: AsyncSession) -> int:
        current = (await session.execute(select(func.max(OperationLog.seq)))).scalar_one_or_none()
        return (current or 0) + 1


_engine: Optional[OperationEngine] = None


def get_operation_engine() -> OperationEngine:
    """Process-wide engine bound to the global db_manager and change_notifier."""
    global _engine
    if _engine is None:
        from hwboard.common.config import settings
        from hwboard.common.database import db_manager
        from hwboard.common.events import change_notifier
        from hwboard.domains.homework.operations import build_homework_registry

        _engine = OperationEngine(
            db_manager,
            build_homework_registry(),
            change_notifier,
            max_list_limit=settings.operation_list_max_limit,
        )
    return _engine
