"""VibeCheck FastAPI application."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vibecheck.api.health import router as health_router
from vibecheck.api.submissions import router as submissions_router
from vibecheck.api.tasks import router as tasks_router
from vibecheck.config import settings
from vibecheck.database import async_session_maker
from vibecheck.engine.background import BackgroundRunner
from vibecheck.engine.escalation import EscalationEngine
from vibecheck.engine.ingestion import IngestionOrchestrator
from vibecheck.notifications.dispatcher import NotificationDispatcher

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = httpx.AsyncClient(timeout=settings.alert_request_timeout_seconds)
    runner = BackgroundRunner()
    dispatcher = NotificationDispatcher.from_settings(client, settings)
    escalation = EscalationEngine(
        async_session_maker, dispatcher, runner, sla_hours=settings.task_sla_hours
    )
    app.state.runner = runner
    app.state.dispatcher = dispatcher
    app.state.escalation = escalation
    app.state.orchestrator = IngestionOrchestrator(
        async_session_maker, dispatcher, escalation, runner
    )
    logger.info(
        "VibeCheck started (%s mode, live alerts: %s)", settings.environment, dispatcher.live
    )

    yield

    logger.info("Shutting down, waiting for %d background tasks", runner.pending)
    await runner.drain()
    await client.aclose()


app = FastAPI(
    title="VibeCheck - Feedback Pipeline",
    description="Collects NPS/CSAT feedback and escalates negative responses into tracked tasks",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, tags=["Health"])
app.include_router(submissions_router, prefix="/v1", tags=["Submissions"])
app.include_router(tasks_router, prefix="/v1", tags=["Tasks"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"service": "VibeCheck", "version": "0.1.0", "docs": "/docs"}
