"""
Escalation engine.

Opens a remediation task for negative feedback, assigns it to the store
manager or tenant owner, and maintains the task audit trail through
resolution and reassignment. Governance policy is not checked here; see
vibecheck.engine.governance.
"""
import asyncio
import logging
import weakref
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vibecheck.database import session_scope
from vibecheck.engine.background import BackgroundRunner
from vibecheck.engine.escalation_rules import (
    DEFAULT_SLA_HOURS,
    needs_task,
    sla_deadline,
    task_priority,
)
from vibecheck.errors import TaskNotFoundError
from vibecheck.models import FeedbackResponse, Task, TaskAssignment, TaskHistoryEntry, Tenant
from vibecheck.notifications.dispatcher import NotificationDispatcher
from vibecheck.schemas.task import HistoryAction, TaskFilters, TaskStatus
from vibecheck.storage.repositories import (
    get_store_by_id,
    get_task_by_response,
    get_task_for_update,
    list_tasks,
    utcnow,
)

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "SYSTEM"
DEFAULT_LOCATION_NAME = "Default Location"
DEFAULT_RESOLUTION_NOTE = "Marked as resolved"
DEFAULT_TRANSFER_REASON = "Task Transfer"
UNASSIGNED = "Unassigned"

# Reassignment sends these back to the active queue; VERIFIED is final
_RESET_ON_REASSIGN = {TaskStatus.IN_PROGRESS.value, TaskStatus.RESOLVED.value}


def _normalize_contact(contact: str) -> str:
    return contact.strip().lower()


def _score_text(score: Optional[int]) -> str:
    return "n/a" if score is None else str(score)


class EscalationEngine:
    """Task creation, resolution, reassignment and listing."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: NotificationDispatcher,
        runner: BackgroundRunner,
        *,
        sla_hours: int = DEFAULT_SLA_HOURS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.dispatcher = dispatcher
        self.runner = runner
        self.sla_hours = sla_hours
        self.clock = clock
        # Per-task locks; entries drop out once no mutation holds them
        self._task_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _task_lock(self, task_id: str) -> asyncio.Lock:
        lock = self._task_locks.get(task_id)
        if lock is None:
            lock = asyncio.Lock()
            self._task_locks[task_id] = lock
        return lock

    @asynccontextmanager
    async def _get_session(self, session: Optional[AsyncSession] = None):
        if session is not None:
            yield session
        else:
            async with session_scope(self.session_factory) as new_session:
                yield new_session

    async def check_and_create_task(
        self, response: FeedbackResponse, tenant: Tenant
    ) -> Optional[Task]:
        """
        Open a task if the response breaches NPS <= 6 or CSAT <= 2.

        Returns None when no task is needed, when the response already has
        one, or when creation fails; failures are logged and never raised.
        """
        metrics = response.metrics
        if not needs_task(metrics):
            return None

        logger.info(
            "Negative feedback detected, opening task",
            extra={
                "tenant_id": tenant.tenant_id,
                "response_id": response.response_id,
                "nps_score": metrics.nps_score,
                "csat_score": metrics.csat_score,
            },
        )

        try:
            async with self._get_session() as db:
                if await get_task_by_response(db, response.response_id):
                    logger.info("Task already exists for response %s", response.response_id)
                    return None

                location_id = None
                assigned_to = tenant.owner_email
                alert_to = tenant.owner_phone
                store_name = DEFAULT_LOCATION_NAME
                if response.store_id:
                    store = await get_store_by_id(db, response.store_id, tenant.tenant_id)
                    if store:
                        location_id = store.store_id
                        store_name = store.name
                        if store.manager_email:
                            assigned_to = store.manager_email
                            # Message channel needs a phone; fall back to the email address
                            alert_to = store.manager_phone or _normalize_contact(
                                store.manager_email
                            )
                assigned_to = _normalize_contact(assigned_to)

                now = self.clock()
                task = Task(
                    task_id=str(uuid4()),
                    tenant_id=tenant.tenant_id,
                    location_id=location_id,
                    response_id=response.response_id,
                    status=TaskStatus.OPEN.value,
                    priority=task_priority(metrics).value,
                    assigned_to=assigned_to,
                    sla_breach_at=sla_deadline(now, self.sla_hours),
                    created_at=now,
                    updated_at=now,
                    history=[
                        TaskHistoryEntry(
                            action=HistoryAction.CREATED.value,
                            note=(
                                "Auto-generated from feedback. "
                                f"NPS: {_score_text(metrics.nps_score)}, "
                                f"CSAT: {_score_text(metrics.csat_score)}"
                            ),
                            timestamp=now,
                            actor=SYSTEM_ACTOR,
                        )
                    ],
                    assignment_history=[],
                )
                db.add(task)
                await db.flush()
        except Exception as e:
            logger.error(
                "Failed to create task for response %s: %s",
                response.response_id,
                e,
                exc_info=True,
                extra={"tenant_id": tenant.tenant_id, "response_id": response.response_id},
            )
            return None

        logger.info("Task %s created, assigned to %s", task.task_id, assigned_to)

        # Not awaited: a failed alert must not undo the task
        self.runner.spawn(
            self.dispatcher.send_task_alert(task, tenant, alert_to, store_name),
            name=f"task-alert-{task.task_id}",
        )
        return task

    async def resolve_task(
        self,
        task_id: str,
        actor: str,
        note: Optional[str] = None,
        proof_url: Optional[str] = None,
        *,
        tenant_id: Optional[str] = None,
        session: Optional[AsyncSession] = None,
    ) -> Task:
        """Mark a task RESOLVED and record who did it."""
        async with self._task_lock(task_id), self._get_session(session) as db:
            task = await get_task_for_update(db, task_id, tenant_id)
            if task is None:
                raise TaskNotFoundError(task_id)

            now = self.clock()
            task.status = TaskStatus.RESOLVED.value
            if note:
                task.resolution_note = note
            if proof_url:
                task.resolution_proof_url = proof_url
            task.updated_at = now
            task.history.append(
                TaskHistoryEntry(
                    action=HistoryAction.RESOLVED.value,
                    note=note or DEFAULT_RESOLUTION_NOTE,
                    timestamp=now,
                    actor=actor,
                )
            )
            await db.flush()

        logger.info("Task %s resolved by %s", task_id, actor)
        return task

    async def reassign_task(
        self,
        task_id: str,
        new_assignee: str,
        actor: str,
        new_due_date: Optional[datetime] = None,
        reason: Optional[str] = None,
        *,
        tenant_id: Optional[str] = None,
        session: Optional[AsyncSession] = None,
    ) -> Task:
        """Transfer a task, keeping the previous assignee in assignment_history."""
        reason = reason or DEFAULT_TRANSFER_REASON
        new_assignee = _normalize_contact(new_assignee)

        async with self._task_lock(task_id), self._get_session(session) as db:
            task = await get_task_for_update(db, task_id, tenant_id)
            if task is None:
                raise TaskNotFoundError(task_id)

            now = self.clock()
            previous = task.assigned_to or UNASSIGNED
            task.assignment_history.append(
                TaskAssignment(
                    assigned_to=previous,
                    assigned_by=actor,
                    assigned_at=now,
                    reason=reason,
                )
            )
            task.assigned_to = new_assignee
            if new_due_date is not None:
                task.due_date = new_due_date
            if task.status in _RESET_ON_REASSIGN:
                task.status = TaskStatus.OPEN.value
            task.updated_at = now
            task.history.append(
                TaskHistoryEntry(
                    action=HistoryAction.REASSIGNED.value,
                    note=f"Transferred from {previous} to {new_assignee}. Reason: {reason}",
                    timestamp=now,
                    actor=actor,
                )
            )
            await db.flush()

        logger.info("Task %s reassigned from %s to %s by %s", task_id, previous, new_assignee, actor)
        return task

    async def get_tasks(
        self,
        tenant_id: str,
        filters: Optional[TaskFilters] = None,
        *,
        session: Optional[AsyncSession] = None,
    ) -> list[Task]:
        """List tenant tasks. Query errors propagate to the caller."""
        async with self._get_session(session) as db:
            return await list_tasks(db, tenant_id, filters or TaskFilters())
