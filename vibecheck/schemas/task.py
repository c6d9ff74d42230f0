"""Task schemas and enums."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    VERIFIED = "VERIFIED"


class TaskPriority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class HistoryAction(str, Enum):
    CREATED = "CREATED"
    RESOLVED = "RESOLVED"
    REASSIGNED = "REASSIGNED"


class TaskFilters(BaseModel):
    """Optional filters for task listing."""

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: str | None = None
    location_id: str | None = None


class HistoryEntryOut(BaseModel):
    model_config = {"from_attributes": True}

    action: str
    note: str | None = None
    timestamp: datetime
    actor: str


class AssignmentEntryOut(BaseModel):
    model_config = {"from_attributes": True}

    assigned_to: str
    assigned_by: str
    assigned_at: datetime
    reason: str | None = None


class TaskOut(BaseModel):
    """Task as returned by the task API."""

    model_config = {"from_attributes": True}

    task_id: str
    tenant_id: str
    location_id: str | None = None
    response_id: str
    status: TaskStatus
    priority: TaskPriority
    assigned_to: str | None = None
    resolution_note: str | None = None
    resolution_proof_url: str | None = None
    due_date: datetime | None = None
    sla_breach_at: datetime
    created_at: datetime
    history: list[HistoryEntryOut] = Field(default_factory=list)
    assignment_history: list[AssignmentEntryOut] = Field(default_factory=list)


class ResolveTaskRequest(BaseModel):
    """POST /v1/tasks/{id}/resolve request."""

    note: str | None = None
    proof_url: str | None = None


class ReassignTaskRequest(BaseModel):
    """POST /v1/tasks/{id}/reassign request."""

    new_assignee: str | None = None
    new_due_date: datetime | None = None
    reason: str | None = None


class TaskResponse(BaseModel):
    success: bool = True
    data: TaskOut


class TaskListResponse(BaseModel):
    success: bool = True
    data: list[TaskOut] = Field(default_factory=list)
