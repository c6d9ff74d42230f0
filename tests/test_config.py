"""Tests for settings parsing and dispatcher wiring."""

import httpx
import pytest

from vibecheck.config import Settings
from vibecheck.notifications.dispatcher import NotificationDispatcher


def test_plain_postgres_url_gets_asyncpg_driver():
    """Test postgresql:// URLs are switched to asyncpg."""
    settings = Settings(database_url="postgresql://u:p@host:5432/db")
    assert settings.database_url == "postgresql+asyncpg://u:p@host:5432/db"


def test_environment_controls_production_flag():
    """Test only the production environment is live."""
    assert Settings(environment="production").is_production is True
    assert Settings(environment="Production").is_production is True
    assert Settings(environment="development").is_production is False


async def test_dispatcher_from_settings():
    """Test alert settings flow into the dispatcher and dev mode disables delivery."""
    settings = Settings(
        environment="development",
        alert_max_retries=4,
        alert_retry_delay_ms=250,
        alert_request_timeout_seconds=3.0,
        public_base_url="https://vc.test/",
    )
    async with httpx.AsyncClient() as client:
        dispatcher = NotificationDispatcher.from_settings(client, settings)

    assert dispatcher.live is False
    assert dispatcher.retry_policy.max_attempts == 5
    assert dispatcher.retry_policy.delay_ms == 250
    assert dispatcher.timeout == 3.0
    assert dispatcher.quick_resolve_link("t1") == "https://vc.test/v1/tasks/t1/quick-resolve?action=fixed"
