"""Shared fixtures for repair tracker tests."""

from datetime import date

import pytest

from repair_tracker.domain.models import JobRecord
from repair_tracker.logging.context import clear_log_context

ENV_VARS = (
    "APPS_SCRIPT_URL",
    "SHEETS_PROXY_URL",
    "WHATSAPP_GATEWAY_URL",
    "LOG_LEVEL",
    "DATABASE_URL",
    "USE_LOCAL_STORE",
    "ENVIRONMENT",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the application reads from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture(autouse=True)
def reset_log_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def today():
    return date(2024, 3, 15)


@pytest.fixture
def make_job():
    """Factory for JobRecord with sensible defaults."""

    def _make(**overrides):
        values = {
            "date": "2024-03-15",
            "customer_name": "Ravi Kumar",
            "mobile": "9876543210",
            "device_model": "Samsung 32 inch LED",
            "work_description": "Backlight replaced",
            "price": 1000,
            "parts_cost": 400,
        }
        values.update(overrides)
        return JobRecord(**values)

    return _make


@pytest.fixture
def sample_jobs(make_job):
    """A small job book spanning two months and an undated entry."""
    return [
        make_job(date="2024-03-15", device_model="Samsung LED", price=1000, parts_cost=400),
        make_job(date="2024-03-15", device_model="LG OLED", price=2500, parts_cost=1000),
        make_job(date="2024-03-02", device_model="Samsung Smart", price=500, parts_cost=100),
        make_job(date="2024-02-20", device_model="Sony Bravia", price=1500, parts_cost=500),
        make_job(date="", device_model="", price=300, parts_cost=0),
    ]
