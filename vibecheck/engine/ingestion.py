"""Ingestion orchestrator - persists a submission, then fans out side effects."""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vibecheck.database import session_scope
from vibecheck.engine.background import BackgroundRunner
from vibecheck.engine.escalation import EscalationEngine
from vibecheck.engine.metrics import extract_metrics, should_trigger_alert
from vibecheck.errors import FormNotFoundError, TenantNotFoundError
from vibecheck.models import FeedbackResponse, Tenant
from vibecheck.notifications.dispatcher import NotificationDispatcher
from vibecheck.schemas.submission import (
    Answer,
    CustomerMetadata,
    Metrics,
    TenantDisplayInfo,
)
from vibecheck.storage.repositories import (
    create_response,
    get_form_for_submission,
    get_tenant_by_id,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    response_id: str
    metrics: Metrics
    tenant: TenantDisplayInfo


def submission_source(metadata: CustomerMetadata) -> str:
    """Order-linked QR codes are 'magic'; everything else is the static code."""
    if metadata.source:
        return metadata.source
    return "qr_magic" if metadata.order_id else "qr_static"


class IngestionOrchestrator:
    """
    Accepts a validated submission.

    The response is committed before submit() returns; the owner alert,
    escalation check and webhook run afterwards as background tasks and
    can only fail into the logs.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: NotificationDispatcher,
        escalation: EscalationEngine,
        runner: BackgroundRunner,
    ):
        self.session_factory = session_factory
        self.dispatcher = dispatcher
        self.escalation = escalation
        self.runner = runner

    async def submit(
        self,
        tenant_id: str,
        answers: list[Answer],
        metadata: Optional[CustomerMetadata] = None,
        form_id: Optional[str] = None,
    ) -> SubmissionResult:
        metadata = metadata or CustomerMetadata()
        raw_answers = [a.model_dump() for a in answers]

        async with session_scope(self.session_factory) as db:
            tenant = await get_tenant_by_id(db, tenant_id)
            if tenant is None:
                raise TenantNotFoundError(tenant_id)
            form = await get_form_for_submission(db, tenant_id, form_id)
            if form is None:
                raise FormNotFoundError(tenant_id, form_id)

            metrics = extract_metrics(raw_answers, form.fields)
            response = await create_response(
                db,
                tenant_id=tenant_id,
                form_id=form.form_id,
                answers=raw_answers,
                metrics=metrics,
                metadata=metadata,
                source=submission_source(metadata),
            )

        logger.info(
            "Response %s stored",
            response.response_id,
            extra={
                "tenant_id": tenant_id,
                "response_id": response.response_id,
                "nps_score": metrics.nps_score,
                "csat_score": metrics.csat_score,
            },
        )

        self._fan_out(tenant, response)

        return SubmissionResult(
            response_id=response.response_id,
            metrics=metrics,
            tenant=TenantDisplayInfo(name=tenant.name),
        )

    def _fan_out(self, tenant: Tenant, response: FeedbackResponse) -> None:
        rid = response.response_id
        if should_trigger_alert(response.nps_score, tenant.alert_threshold):
            self.runner.spawn(
                self.dispatcher.send_low_score_alert(tenant, response), name=f"alert-{rid}"
            )
        self.runner.spawn(
            self.escalation.check_and_create_task(response, tenant), name=f"escalate-{rid}"
        )
        if tenant.webhook_url:
            self.runner.spawn(self.dispatcher.send_webhook(tenant, response), name=f"webhook-{rid}")
