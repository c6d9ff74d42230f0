"""Metrics extractor - derives NPS/CSAT scores from raw answers."""

import math
from collections.abc import Iterable, Mapping
from typing import Any, Literal

from vibecheck.schemas.submission import Metrics

NPS_RANGE = (0, 10)
CSAT_RANGE = (1, 5)

NpsCategory = Literal["promoter", "passive", "detractor"]


def _numeric(value: Any) -> float | None:
    """Return value if it is a finite number (bools excluded), else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _clamp(value: float, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return int(round(max(low, min(high, value))))


def extract_metrics(answers: Iterable[Any], schema: Iterable[Any]) -> Metrics:
    """
    Compute Metrics from answers against the form's field-type schema.

    answers: [{"question_id": ..., "value": ...}], schema: [{"id": ..., "type": ...}].
    Unknown question ids, non-score field types and non-numeric values are
    ignored; out-of-range scores are clamped. Never raises on malformed input.
    """
    field_types: dict[str, str] = {}
    for field in schema or []:
        if isinstance(field, Mapping) and "id" in field:
            field_types[field["id"]] = field.get("type")

    nps: int | None = None
    csat: int | None = None
    for answer in answers or []:
        if not isinstance(answer, Mapping):
            continue
        field_type = field_types.get(answer.get("question_id"))
        value = _numeric(answer.get("value"))
        if value is None:
            continue
        if field_type == "nps":
            nps = _clamp(value, NPS_RANGE)
        elif field_type == "csat":
            csat = _clamp(value, CSAT_RANGE)

    return Metrics(nps_score=nps, csat_score=csat)


def classify_nps(score: int) -> NpsCategory:
    """Promoter (9-10), passive (7-8) or detractor (0-6)."""
    if score >= 9:
        return "promoter"
    if score >= 7:
        return "passive"
    return "detractor"


def should_trigger_alert(nps_score: int | None, threshold: int = 5) -> bool:
    """Low-score owner alert fires strictly below the tenant threshold."""
    if nps_score is None:
        return False
    return nps_score < threshold
