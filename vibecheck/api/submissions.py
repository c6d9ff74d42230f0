"""Feedback submission endpoint."""

import logging

from fastapi import APIRouter, HTTPException, status

from vibecheck.api.deps import OrchestratorDep
from vibecheck.errors import FormNotFoundError, TenantNotFoundError
from vibecheck.schemas.submission import SubmissionData, SubmitRequest, SubmitResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/submit", response_model=SubmitResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback(body: SubmitRequest, orchestrator: OrchestratorDep):
    """
    Store a customer response and trigger alerts/escalation in the background.
    Returns as soon as the response is persisted.
    """
    # Honeypot filled: answer like a success so bots learn nothing
    if body.honeypot and body.honeypot.strip():
        logger.info("Honeypot submission dropped for tenant %s", body.tenant_id)
        return SubmitResponse()

    try:
        result = await orchestrator.submit(
            tenant_id=body.tenant_id,
            answers=body.answers,
            metadata=body.metadata,
            form_id=body.form_id,
        )
    except TenantNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    except FormNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return SubmitResponse(
        data=SubmissionData(
            response_id=result.response_id,
            metrics=result.metrics,
            tenant=result.tenant,
        )
    )
