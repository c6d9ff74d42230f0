"""Database models."""

from vibecheck.models.tenant import Tenant
from vibecheck.models.store import Store
from vibecheck.models.form import Form
from vibecheck.models.response import FeedbackResponse
from vibecheck.models.task import Task, TaskAssignment, TaskHistoryEntry

__all__ = [
    "Tenant",
    "Store",
    "Form",
    "FeedbackResponse",
    "Task",
    "TaskHistoryEntry",
    "TaskAssignment",
]
