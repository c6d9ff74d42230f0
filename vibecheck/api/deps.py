"""Pipeline component dependencies, built once in the app lifespan."""

from typing import Annotated

from fastapi import Depends, Request

from vibecheck.engine.escalation import EscalationEngine
from vibecheck.engine.ingestion import IngestionOrchestrator


def get_escalation_engine(request: Request) -> EscalationEngine:
    return request.app.state.escalation


def get_orchestrator(request: Request) -> IngestionOrchestrator:
    return request.app.state.orchestrator


EscalationDep = Annotated[EscalationEngine, Depends(get_escalation_engine)]
OrchestratorDep = Annotated[IngestionOrchestrator, Depends(get_orchestrator)]
