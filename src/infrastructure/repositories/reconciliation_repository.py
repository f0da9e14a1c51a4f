"""PostgreSQL implementation of ReconciliationRepository."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.entities import (
    ReconciliationStatus,
    ReconciliationTask,
    SettlementOperation,
)
from src.domain.interfaces import ReconciliationRepository
from src.infrastructure.database.models import ReconciliationTaskModel

_UNRESOLVED = or_(
    ReconciliationTaskModel.status == ReconciliationStatus.PENDING.value,
    ReconciliationTaskModel.status == ReconciliationStatus.RETRYING.value,
)


class PostgresReconciliationRepository(ReconciliationRepository):
    """
    PostgreSQL implementation of the Reconciliation repository.

    Uses SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, task: ReconciliationTask) -> ReconciliationTask:
        """Persist a reconciliation task to the database."""
        model = ReconciliationTaskModel(
            id=str(task.id),
            operation=task.operation.value,
            idempotency_key=task.idempotency_key,
            payload=task.payload,
            status=task.status.value,
            attempts=task.attempts,
            last_error=task.last_error,
            last_attempt_at=task.last_attempt_at,
            resolved_ref=task.resolved_ref,
            created_at=task.created_at,
        )

        self._session.add(model)
        await self._session.flush()

        return task

    async def update(self, task: ReconciliationTask) -> ReconciliationTask:
        """Update an existing reconciliation task."""
        stmt = select(ReconciliationTaskModel).where(
            ReconciliationTaskModel.id == str(task.id)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            raise ValueError(f"Reconciliation task {task.id} not found")

        model.status = task.status.value
        model.attempts = task.attempts
        model.last_error = task.last_error
        model.last_attempt_at = task.last_attempt_at
        model.resolved_ref = task.resolved_ref

        await self._session.flush()

        return task

    async def get_by_id(self, task_id: UUID) -> Optional[ReconciliationTask]:
        """Retrieve a reconciliation task by ID."""
        stmt = select(ReconciliationTaskModel).where(
            ReconciliationTaskModel.id == str(task_id)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def get_pending(self, limit: int = 100) -> List[ReconciliationTask]:
        """Retrieve unresolved tasks, oldest first."""
        stmt = (
            select(ReconciliationTaskModel)
            .where(_UNRESOLVED)
            .order_by(ReconciliationTaskModel.created_at.asc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    async def count_pending(self) -> int:
        """Count unresolved tasks."""
        stmt = select(func.count()).select_from(ReconciliationTaskModel).where(_UNRESOLVED)
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    def _to_entity(self, model: ReconciliationTaskModel) -> ReconciliationTask:
        """Convert database model to domain entity."""
        return ReconciliationTask(
            id=UUID(model.id),
            operation=SettlementOperation(model.operation),
            idempotency_key=model.idempotency_key,
            payload=model.payload,
            status=ReconciliationStatus(model.status),
            attempts=model.attempts,
            last_error=model.last_error,
            last_attempt_at=model.last_attempt_at,
            resolved_ref=model.resolved_ref,
            created_at=model.created_at,
        )
