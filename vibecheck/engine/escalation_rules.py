"""Escalation decision rules - pure threshold logic."""

from datetime import datetime, timedelta

from vibecheck.schemas.submission import Metrics
from vibecheck.schemas.task import TaskPriority

# Missing scores fall back to the non-triggering extreme
DEFAULT_NPS = 10
DEFAULT_CSAT = 5

NPS_TASK_THRESHOLD = 6
CSAT_TASK_THRESHOLD = 2
NPS_HIGH_PRIORITY_THRESHOLD = 3
CSAT_HIGH_PRIORITY_THRESHOLD = 1

DEFAULT_SLA_HOURS = 24


def effective_scores(metrics: Metrics) -> tuple[int, int]:
    nps = metrics.nps_score if metrics.nps_score is not None else DEFAULT_NPS
    csat = metrics.csat_score if metrics.csat_score is not None else DEFAULT_CSAT
    return nps, csat


def needs_task(metrics: Metrics) -> bool:
    """A task is opened when NPS <= 6 or CSAT <= 2."""
    nps, csat = effective_scores(metrics)
    return nps <= NPS_TASK_THRESHOLD or csat <= CSAT_TASK_THRESHOLD


def task_priority(metrics: Metrics) -> TaskPriority:
    """HIGH for NPS <= 3 or CSAT <= 1, otherwise MEDIUM. LOW is manual only."""
    nps, csat = effective_scores(metrics)
    if nps <= NPS_HIGH_PRIORITY_THRESHOLD or csat <= CSAT_HIGH_PRIORITY_THRESHOLD:
        return TaskPriority.HIGH
    return TaskPriority.MEDIUM


def sla_deadline(created_at: datetime, hours: int = DEFAULT_SLA_HOURS) -> datetime:
    return created_at + timedelta(hours=hours)
