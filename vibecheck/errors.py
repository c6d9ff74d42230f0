"""Domain errors raised by the pipeline's synchronous operations."""


class VibeCheckError(Exception):
    """Base class for domain errors."""


class TenantNotFoundError(VibeCheckError):
    """Raised when a submission names an unknown tenant."""

    def __init__(self, tenant_id: str):
        super().__init__(f"Tenant not found: {tenant_id}")
        self.tenant_id = tenant_id


class FormNotFoundError(VibeCheckError):
    """Raised when neither the requested form nor an active form exists."""

    def __init__(self, tenant_id: str, form_id: str | None = None):
        super().__init__(
            f"Form not found: {form_id}" if form_id else "No active form found for this tenant"
        )
        self.tenant_id = tenant_id
        self.form_id = form_id


class TaskNotFoundError(VibeCheckError):
    """Raised by resolve/reassign when the task id does not resolve."""

    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class GovernanceViolationError(VibeCheckError):
    """Raised by the calling boundary when tenant task policy rejects a request."""
