"""Shared fixtures: in-memory database, simulated notification transport, pipeline wiring."""

import json
from datetime import datetime, timezone
from uuid import uuid4

import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from vibecheck.auth.middleware import hash_api_key
from vibecheck.database import Base, create_session_factory, get_db, session_scope
from vibecheck.engine.background import BackgroundRunner
from vibecheck.engine.escalation import EscalationEngine
from vibecheck.engine.ingestion import IngestionOrchestrator
from vibecheck.main import app
from vibecheck.models import FeedbackResponse, Form, Store
from vibecheck.notifications.dispatcher import NotificationDispatcher, RetryPolicy

from tests.factories import API_KEY, MESSAGE_API_URL, build_tenant

TEST_DATABASE_URL = "sqlite+aiosqlite://"

FORM_FIELDS = [
    {"id": "nps_score", "type": "nps", "label": "How likely?", "required": True},
    {"id": "csat_score", "type": "csat", "label": "Rate experience", "required": True},
    {"id": "feedback", "type": "text", "label": "Comments", "required": False},
]


class FakeTransport:
    """Records outbound requests and answers with scripted status codes per host."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.statuses: dict[str, list[int]] = {}
        self.errors: dict[str, Exception] = {}

    def fail_with(self, host: str, *statuses: int) -> None:
        self.statuses[host] = list(statuses)

    def raise_on(self, host: str, exc: Exception) -> None:
        self.errors[host] = exc

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host in self.errors:
            raise self.errors[host]
        scripted = self.statuses.get(host)
        status = scripted.pop(0) if scripted and len(scripted) > 1 else (scripted or [200])[0]
        return httpx.Response(status, json={"ok": status < 400})

    def sent_to(self, host: str) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.url.host == host]


class SleepRecorder:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
async def http_client(transport):
    async with httpx.AsyncClient(transport=httpx.MockTransport(transport)) as client:
        yield client


@pytest.fixture
def dispatcher(http_client, sleeps):
    return NotificationDispatcher(
        http_client,
        live=True,
        message_api_url=MESSAGE_API_URL,
        message_api_token="test-token",
        public_base_url="https://vibecheck.test",
        retry_policy=RetryPolicy(max_retries=2, delay_ms=1000),
        sleep=sleeps,
    )


@pytest.fixture
async def runner(session_factory):
    runner = BackgroundRunner()
    yield runner
    await runner.drain()


@pytest.fixture
def escalation(session_factory, dispatcher, runner):
    return EscalationEngine(session_factory, dispatcher, runner)


@pytest.fixture
def orchestrator(session_factory, dispatcher, escalation, runner):
    return IngestionOrchestrator(session_factory, dispatcher, escalation, runner)


@pytest.fixture
async def tenant(session_factory):
    tenant = build_tenant(api_key_hash=hash_api_key(API_KEY))
    async with session_factory() as db:
        db.add(tenant)
        await db.commit()
    return tenant


@pytest.fixture
async def store(session_factory, tenant):
    store = Store(
        store_id=str(uuid4()),
        tenant_id=tenant.tenant_id,
        name="Downtown",
        manager_email="Manager@Test.com",
        active=True,
    )
    async with session_factory() as db:
        db.add(store)
        await db.commit()
    return store


@pytest.fixture
async def form(session_factory, tenant):
    form = Form(
        form_id=str(uuid4()),
        tenant_id=tenant.tenant_id,
        name="Feedback Form",
        active=True,
        fields=FORM_FIELDS,
    )
    async with session_factory() as db:
        db.add(form)
        await db.commit()
    return form


@pytest.fixture
def make_response(session_factory, tenant, form):
    """Persist a response with the given scores and return it."""

    async def _make(nps=None, csat=None, store_id=None, order_id=None, phone=None):
        response = FeedbackResponse(
            response_id=str(uuid4()),
            tenant_id=tenant.tenant_id,
            form_id=form.form_id,
            answers=[],
            nps_score=nps,
            csat_score=csat,
            customer_phone=phone,
            order_id=order_id,
            store_id=store_id,
            source="qr_static",
            submitted_at=datetime.now(timezone.utc),
        )
        async with session_factory() as db:
            db.add(response)
            await db.commit()
        return response

    return _make


@pytest.fixture
async def client(session_factory, runner, dispatcher, escalation, orchestrator):
    """API client against the app with test sessions and pipeline components."""

    async def override_get_db():
        async with session_scope(session_factory) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.runner = runner
    app.state.dispatcher = dispatcher
    app.state.escalation = escalation
    app.state.orchestrator = orchestrator

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {API_KEY}"}
