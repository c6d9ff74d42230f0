#!/usr/bin/env python3
"""
Generate sample_responses.json: metrics and escalation decisions for a set
of sample submissions. Runs in-memory (no DB/API needed).
Usage: python scripts/generate_sample_responses.py
"""

import json
import sys
from pathlib import Path

# Add project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from vibecheck.engine.escalation_rules import needs_task, task_priority
from vibecheck.engine.metrics import classify_nps, extract_metrics, should_trigger_alert

# Same form as seed
FORM_FIELDS = [
    {"id": "nps_score", "type": "nps"},
    {"id": "csat_score", "type": "csat"},
    {"id": "feedback", "type": "text"},
]

SAMPLE_SUBMISSIONS = [
    {"label": "promoter", "answers": [{"question_id": "nps_score", "value": 10}, {"question_id": "csat_score", "value": 5}]},
    {"label": "passive", "answers": [{"question_id": "nps_score", "value": 7}, {"question_id": "csat_score", "value": 3}]},
    {"label": "mild detractor", "answers": [{"question_id": "nps_score", "value": 5}]},
    {"label": "angry detractor", "answers": [{"question_id": "nps_score", "value": 2}, {"question_id": "feedback", "value": "Food was cold"}]},
    {"label": "csat only, unhappy", "answers": [{"question_id": "csat_score", "value": 1}]},
    {"label": "out of range", "answers": [{"question_id": "nps_score", "value": 14}, {"question_id": "csat_score", "value": 0}]},
    {"label": "text only", "answers": [{"question_id": "feedback", "value": "Nice place"}]},
]

ALERT_THRESHOLD = 5


def main():
    examples_dir = Path(__file__).resolve().parent.parent / "examples"
    examples_dir.mkdir(exist_ok=True)
    responses_path = examples_dir / "sample_responses.json"

    responses = []
    for sample in SAMPLE_SUBMISSIONS:
        metrics = extract_metrics(sample["answers"], FORM_FIELDS)
        escalate = needs_task(metrics)
        responses.append(
            {
                "label": sample["label"],
                "answers": sample["answers"],
                "metrics": metrics.model_dump(),
                "nps_category": (
                    classify_nps(metrics.nps_score) if metrics.nps_score is not None else None
                ),
                "owner_alert": should_trigger_alert(metrics.nps_score, ALERT_THRESHOLD),
                "task": {"priority": task_priority(metrics).value} if escalate else None,
            }
        )

    with open(responses_path, "w") as f:
        json.dump(responses, f, indent=2)

    print(f"Generated {len(responses)} sample responses -> {responses_path}")


if __name__ == "__main__":
    main()
