"""
Notification dispatcher.

Best-effort delivery of owner alerts, task alerts and tenant webhooks.
Every send is retried with linear backoff and then suppressed: callers
never see an exception, only a DispatchOutcome.

Retry: up to max_retries + 1 attempts, sleeping delay_ms * attempt between
them. 4xx responses other than 429 are not retried.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from vibecheck.config import Settings
from vibecheck.models import FeedbackResponse, Task, Tenant

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10.0
FEEDBACK_PREVIEW_LIMIT = 200

LOW_SCORE_TEMPLATE = "low_nps_alert"
TASK_ALERT_TEMPLATE = "task_assigned"


class Channel(str, Enum):
    MESSAGE = "message"
    WEBHOOK = "webhook"


class DispatchOutcome(str, Enum):
    SUCCESS = "success"
    SUPPRESSED = "suppressed"


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 2
    delay_ms: int = 1000

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


@dataclass(frozen=True)
class DispatchContext:
    service: str
    tenant_id: str
    response_id: Optional[str] = None


def failure_status_code(exc: BaseException) -> Optional[int]:
    """HTTP status carried by a failed attempt, if any."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return None


def is_permanent_failure(status_code: Optional[int]) -> bool:
    """Client errors are not transient, except rate limiting."""
    return status_code is not None and 400 <= status_code < 500 and status_code != 429


def format_alert_message(
    tenant_name: str,
    nps_score: int,
    order_id: Optional[str] = None,
    feedback: Optional[str] = None,
) -> str:
    """Human-readable low-score alert text."""
    lines = [f"Low NPS Alert - {tenant_name}", f"Score: {nps_score}/10"]
    if order_id:
        lines.append(f"Order: {order_id}")
    if feedback:
        if len(feedback) > FEEDBACK_PREVIEW_LIMIT:
            feedback = feedback[: FEEDBACK_PREVIEW_LIMIT - 3] + "..."
        lines.append(f"Feedback: {feedback}")
    return "\n".join(lines)


def _first_text_answer(answers: List[Dict[str, Any]]) -> Optional[str]:
    for answer in answers or []:
        value = answer.get("value") if isinstance(answer, dict) else None
        if isinstance(value, str) and value.strip():
            return value
    return None


class NotificationDispatcher:
    """
    Sends templated messages and webhooks through an injected HTTP client.

    With live=False every send short-circuits to SUCCESS without touching the
    transport, so development and test runs make no external calls.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        live: bool,
        message_api_url: str,
        message_api_token: str,
        public_base_url: str = "http://localhost:8000",
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = REQUEST_TIMEOUT,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.live = live
        self.message_api_url = message_api_url
        self.message_api_token = message_api_token
        self.public_base_url = public_base_url.rstrip("/")
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        self._sleep = sleep

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, settings: Settings) -> "NotificationDispatcher":
        return cls(
            client,
            live=settings.is_production,
            message_api_url=settings.whatsapp_api_url,
            message_api_token=settings.whatsapp_api_token,
            public_base_url=settings.public_base_url,
            retry_policy=RetryPolicy(
                max_retries=settings.alert_max_retries,
                delay_ms=settings.alert_retry_delay_ms,
            ),
            timeout=settings.alert_request_timeout_seconds,
        )

    # ---- Core send with retry ----

    async def send(
        self,
        channel: Channel,
        destination: str,
        payload: Dict[str, Any],
        context: DispatchContext,
    ) -> DispatchOutcome:
        """Deliver one payload; returns SUPPRESSED instead of raising."""
        if not self.live:
            logger.debug(
                "[ALERT_DEV] %s %s would be sent in production",
                context.service,
                channel.value,
                extra={"tag": "ALERT_DEV", "service": context.service, "payload": payload},
            )
            return DispatchOutcome.SUCCESS

        policy = self.retry_policy
        last_error: Optional[BaseException] = None

        for attempt in range(1, policy.max_attempts + 1):
            try:
                await self._deliver(channel, destination, payload)
            except Exception as exc:
                last_error = exc
                status_code = failure_status_code(exc)
                logger.warning(
                    "[ALERT_RETRY] %s attempt %d/%d failed (status=%s): %s",
                    context.service,
                    attempt,
                    policy.max_attempts,
                    status_code,
                    exc,
                    extra={
                        "tag": "ALERT_RETRY",
                        "service": context.service,
                        "tenant_id": context.tenant_id,
                        "response_id": context.response_id,
                        "attempt": attempt,
                        "max_attempts": policy.max_attempts,
                        "status_code": status_code,
                        "error": str(exc),
                    },
                )
                if is_permanent_failure(status_code):
                    break
                if attempt < policy.max_attempts:
                    await self._sleep(policy.delay_ms * attempt / 1000)
            else:
                logger.info(
                    "[ALERT_SUCCESS] %s sent to %s",
                    context.service,
                    destination,
                    extra={
                        "tag": "ALERT_SUCCESS",
                        "service": context.service,
                        "tenant_id": context.tenant_id,
                        "response_id": context.response_id,
                    },
                )
                return DispatchOutcome.SUCCESS

        logger.error(
            "[ALERT_FAILED] %s failed after %d attempts: %s",
            context.service,
            attempt,
            last_error,
            extra={
                "tag": "ALERT_FAILED",
                "service": context.service,
                "tenant_id": context.tenant_id,
                "response_id": context.response_id,
                "error": str(last_error),
            },
        )
        return DispatchOutcome.SUPPRESSED

    async def _deliver(self, channel: Channel, destination: str, payload: Dict[str, Any]) -> None:
        if channel is Channel.MESSAGE:
            response = await self.client.post(
                self.message_api_url,
                json={"to": destination, **payload},
                headers={"Authorization": f"Bearer {self.message_api_token}"},
                timeout=self.timeout,
            )
        else:
            response = await self.client.post(destination, json=payload, timeout=self.timeout)
        response.raise_for_status()

    # ---- Channels ----

    @staticmethod
    def _template(name: str, parameters: List[str]) -> Dict[str, Any]:
        return {
            "type": "template",
            "template": {
                "name": name,
                "language": {"code": "en"},
                "components": [
                    {
                        "type": "body",
                        "parameters": [{"type": "text", "text": p} for p in parameters],
                    }
                ],
            },
        }

    async def send_low_score_alert(self, tenant: Tenant, response: FeedbackResponse) -> DispatchOutcome:
        """Templated low-NPS alert to the tenant owner."""
        nps = response.nps_score if response.nps_score is not None else 0
        logger.info(
            "[ALERT_TRIGGERED] Low NPS alert for %s",
            tenant.name,
            extra={
                "tag": "ALERT_TRIGGERED",
                "tenant_id": tenant.tenant_id,
                "response_id": response.response_id,
                "nps_score": nps,
                "order_id": response.order_id,
                "alert_message": format_alert_message(
                    tenant.name, nps, response.order_id, _first_text_answer(response.answers)
                ),
            },
        )
        payload = self._template(
            LOW_SCORE_TEMPLATE,
            [
                tenant.name,
                str(nps),
                response.order_id or "N/A",
                response.customer_phone or "Anonymous",
            ],
        )
        return await self.send(
            Channel.MESSAGE,
            tenant.owner_phone,
            payload,
            DispatchContext("WhatsApp", tenant.tenant_id, response.response_id),
        )

    def quick_resolve_link(self, task_id: str) -> str:
        return f"{self.public_base_url}/v1/tasks/{task_id}/quick-resolve?action=fixed"

    async def send_task_alert(
        self, task: Task, tenant: Tenant, recipient: str, store_name: str
    ) -> DispatchOutcome:
        """Templated new-task alert to the assignee."""
        payload = self._template(
            TASK_ALERT_TEMPLATE,
            [
                tenant.name,
                store_name,
                task.priority,
                task.sla_breach_at.isoformat(),
                self.quick_resolve_link(task.task_id),
                task.task_id,
            ],
        )
        return await self.send(
            Channel.MESSAGE,
            recipient,
            payload,
            DispatchContext("TaskAlert", tenant.tenant_id, task.response_id),
        )

    async def send_webhook(self, tenant: Tenant, response: FeedbackResponse) -> DispatchOutcome:
        """Generic new_response webhook; suppressed when no URL is configured."""
        if not tenant.webhook_url:
            return DispatchOutcome.SUPPRESSED
        payload = {
            "event": "new_response",
            "tenant_id": tenant.tenant_id,
            "response": {
                "id": response.response_id,
                "metrics": response.metrics.model_dump(),
                "customer": {
                    "phone": response.customer_phone,
                    "order_id": response.order_id,
                    "store_id": response.store_id,
                    "source": response.source,
                },
                "submitted_at": response.submitted_at.isoformat(),
            },
        }
        return await self.send(
            Channel.WEBHOOK,
            tenant.webhook_url,
            payload,
            DispatchContext("Webhook", tenant.tenant_id, response.response_id),
        )
