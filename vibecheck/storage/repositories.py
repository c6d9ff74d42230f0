"""Repository functions for tenants, forms, responses, stores and tasks."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from vibecheck.models import FeedbackResponse, Form, Store, Task, Tenant
from vibecheck.schemas.submission import CustomerMetadata, Metrics
from vibecheck.schemas.task import TaskFilters, TaskPriority


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# HIGH first, then MEDIUM, then LOW
_PRIORITY_RANK = case(
    {
        TaskPriority.HIGH.value: 0,
        TaskPriority.MEDIUM.value: 1,
        TaskPriority.LOW.value: 2,
    },
    value=Task.priority,
    else_=3,
)


async def get_tenant_by_id(db: AsyncSession, tenant_id: str) -> Tenant | None:
    result = await db.execute(select(Tenant).where(Tenant.tenant_id == tenant_id))
    return result.scalar_one_or_none()


async def get_tenant_by_api_key_hash(db: AsyncSession, api_key_hash: str) -> Tenant | None:
    result = await db.execute(select(Tenant).where(Tenant.api_key_hash == api_key_hash))
    return result.scalar_one_or_none()


async def get_form_for_submission(
    db: AsyncSession, tenant_id: str, form_id: str | None = None
) -> Form | None:
    """The requested form (tenant-scoped), or the tenant's active form."""
    query = select(Form).where(Form.tenant_id == tenant_id)
    if form_id:
        query = query.where(Form.form_id == form_id)
    else:
        query = query.where(Form.active.is_(True)).limit(1)
    result = await db.execute(query)
    return result.scalars().first()


async def create_response(
    db: AsyncSession,
    tenant_id: str,
    form_id: str,
    answers: list[dict],
    metrics: Metrics,
    metadata: CustomerMetadata,
    source: str,
) -> FeedbackResponse:
    """Create the write-once response record."""
    response = FeedbackResponse(
        response_id=str(uuid4()),
        tenant_id=tenant_id,
        form_id=form_id,
        answers=answers,
        nps_score=metrics.nps_score,
        csat_score=metrics.csat_score,
        customer_phone=metadata.phone,
        order_id=metadata.order_id,
        store_id=metadata.store_id,
        source=source,
        submitted_at=utcnow(),
    )
    db.add(response)
    await db.flush()
    return response


async def get_store_by_id(db: AsyncSession, store_id: str, tenant_id: str) -> Store | None:
    result = await db.execute(
        select(Store).where(Store.store_id == store_id, Store.tenant_id == tenant_id)
    )
    return result.scalar_one_or_none()


async def get_task_by_response(db: AsyncSession, response_id: str) -> Task | None:
    result = await db.execute(select(Task).where(Task.response_id == response_id))
    return result.scalar_one_or_none()


async def get_task_for_update(
    db: AsyncSession, task_id: str, tenant_id: str | None = None
) -> Task | None:
    """Load a task and lock its row for the rest of the transaction."""
    query = select(Task).where(Task.task_id == task_id).with_for_update()
    if tenant_id is not None:
        query = query.where(Task.tenant_id == tenant_id)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def list_tasks(db: AsyncSession, tenant_id: str, filters: TaskFilters) -> list[Task]:
    """Tenant tasks, most urgent priority first, then soonest SLA deadline."""
    query = select(Task).where(Task.tenant_id == tenant_id)
    if filters.status:
        query = query.where(Task.status == filters.status.value)
    if filters.priority:
        query = query.where(Task.priority == filters.priority.value)
    if filters.assigned_to:
        query = query.where(Task.assigned_to == filters.assigned_to.strip().lower())
    if filters.location_id:
        query = query.where(Task.location_id == filters.location_id)
    query = query.order_by(_PRIORITY_RANK, Task.sla_breach_at.asc())
    result = await db.execute(query)
    return list(result.scalars().all())
