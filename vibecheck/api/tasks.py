"""Task endpoints - listing, resolution, reassignment, quick-resolve link."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from vibecheck.api.deps import EscalationDep
from vibecheck.auth.middleware import ActorDep, TenantDep
from vibecheck.database import get_db
from vibecheck.engine.governance import check_reassignment_policy, check_resolution_policy
from vibecheck.errors import GovernanceViolationError, TaskNotFoundError
from vibecheck.schemas.task import (
    ReassignTaskRequest,
    ResolveTaskRequest,
    TaskFilters,
    TaskListResponse,
    TaskOut,
    TaskPriority,
    TaskResponse,
    TaskStatus,
)

router = APIRouter()

QUICK_LINK_ACTOR = "Quick Link (Manager)"

_QUICK_RESOLVE_PAGE = """
<html>
    <body style="font-family: sans-serif; text-align: center; padding: 50px;">
        <h1 style="color: #10b981;">Task Resolved!</h1>
        <p>Thank you for taking quick action.</p>
    </body>
</html>
"""


@router.get("/tasks", response_model=TaskListResponse)
async def list_tasks(
    tenant: TenantDep,
    escalation: EscalationDep,
    db: Annotated[AsyncSession, Depends(get_db)],
    status_filter: Annotated[TaskStatus | None, Query(alias="status")] = None,
    priority: TaskPriority | None = None,
    assigned_to: str | None = None,
    location_id: str | None = None,
):
    """List tasks for the authenticated tenant, most urgent first."""
    filters = TaskFilters(
        status=status_filter,
        priority=priority,
        assigned_to=assigned_to,
        location_id=location_id,
    )
    tasks = await escalation.get_tasks(str(tenant.tenant_id), filters, session=db)
    return TaskListResponse(data=[TaskOut.model_validate(t) for t in tasks])


async def _resolve(
    task_id: str,
    body: ResolveTaskRequest,
    tenant,
    actor: str,
    escalation,
    db: AsyncSession,
) -> TaskResponse:
    try:
        check_resolution_policy(tenant, body.note, body.proof_url)
    except GovernanceViolationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    try:
        task = await escalation.resolve_task(
            task_id,
            actor,
            body.note,
            body.proof_url,
            tenant_id=str(tenant.tenant_id),
            session=db,
        )
    except TaskNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return TaskResponse(data=TaskOut.model_validate(task))


@router.post("/tasks/{task_id}/resolve", response_model=TaskResponse)
async def resolve_task(
    task_id: str,
    body: ResolveTaskRequest,
    tenant: TenantDep,
    actor: ActorDep,
    escalation: EscalationDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Mark a task resolved; tenant policy may require a note and/or proof."""
    return await _resolve(task_id, body, tenant, actor, escalation, db)


@router.post("/tasks/{task_id}/update", response_model=TaskResponse)
async def update_task(
    task_id: str,
    body: ResolveTaskRequest,
    tenant: TenantDep,
    actor: ActorDep,
    escalation: EscalationDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Alias of resolve."""
    return await _resolve(task_id, body, tenant, actor, escalation, db)


@router.post("/tasks/{task_id}/reassign", response_model=TaskResponse)
async def reassign_task(
    task_id: str,
    body: ReassignTaskRequest,
    tenant: TenantDep,
    actor: ActorDep,
    escalation: EscalationDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Transfer a task to another assignee."""
    try:
        check_reassignment_policy(tenant)
    except GovernanceViolationError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if not body.new_assignee or not body.new_assignee.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New assignee email is required",
        )
    try:
        task = await escalation.reassign_task(
            task_id,
            body.new_assignee,
            actor,
            body.new_due_date,
            body.reason,
            tenant_id=str(tenant.tenant_id),
            session=db,
        )
    except TaskNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return TaskResponse(data=TaskOut.model_validate(task))


@router.get("/tasks/{task_id}/quick-resolve", response_class=HTMLResponse)
async def quick_resolve(
    task_id: str,
    escalation: EscalationDep,
    db: Annotated[AsyncSession, Depends(get_db)],
    action: str | None = None,
):
    """Magic link from the task alert."""
    # TODO: require a signed token in the link before resolving
    if action != "fixed":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")
    try:
        await escalation.resolve_task(task_id, QUICK_LINK_ACTOR, session=db)
    except TaskNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return HTMLResponse(_QUICK_RESOLVE_PAGE)
