"""Tenant task-governance checks, applied by the calling boundary."""

from vibecheck.errors import GovernanceViolationError
from vibecheck.models import Tenant


def check_resolution_policy(tenant: Tenant, note: str | None, proof_url: str | None) -> None:
    if tenant.require_resolution_note and not (note and note.strip()):
        raise GovernanceViolationError("Resolution note is required by organization policy.")
    if tenant.require_resolution_proof and not (proof_url and proof_url.strip()):
        raise GovernanceViolationError("Photo evidence is required to resolve this task.")


def check_reassignment_policy(tenant: Tenant) -> None:
    if not tenant.allow_reassignment:
        raise GovernanceViolationError("Task reassignment is disabled by organization policy.")
