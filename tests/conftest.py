"""
Shared pytest fixtures.

Environment is configured before anything under app/ is imported so the
engine binds to an in-memory SQLite database and webhooks skip Redis.
"""

import itertools
import os
from datetime import datetime
from typing import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TWILIO_VALIDATE_WEBHOOKS"] = "false"
os.environ["FRONTEND_URL"] = "https://app.homelube.test"

from app.database import Base, SessionLocal, engine  # noqa: E402
from app.domain.appointments.service import AppointmentLifecycleService  # noqa: E402
from app.email_service import EmailDelivery  # noqa: E402
from app.main import app  # noqa: E402
from app.services.twilio_service import SmsReceipt  # noqa: E402

_sid_counter = itertools.count(1)


def make_sms_gateway() -> AsyncMock:
    """SMS gateway double returning a unique Twilio-style SID per send"""
    gateway = AsyncMock()
    gateway.send.side_effect = lambda to_phone, body: SmsReceipt(
        sid=f"SM{next(_sid_counter):032d}", status="queued"
    )
    gateway.is_configured = True
    return gateway


def make_email_gateway() -> AsyncMock:
    gateway = AsyncMock()
    gateway.send.return_value = EmailDelivery(message_id="email-123")
    gateway.verify.return_value = (True, "Email configuration is valid")
    gateway.is_configured = True
    return gateway


class FixedClock:
    """Clock returning a settable instant"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
def db_session() -> Generator:
    """Fresh schema per test on the shared in-memory database"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def sms_gateway() -> AsyncMock:
    return make_sms_gateway()


@pytest.fixture
def email_gateway() -> AsyncMock:
    return make_email_gateway()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 3, 1, 9, 0, 0))


@pytest.fixture
def service(db_session, email_gateway, sms_gateway, clock) -> AppointmentLifecycleService:
    return AppointmentLifecycleService(
        db_session,
        email_gateway=email_gateway,
        sms_gateway=sms_gateway,
        frontend_url="https://app.homelube.test",
        support_phone="+15550001111",
        company_name="HomeLube",
        clock=clock,
    )


@pytest.fixture
def booking_payload() -> dict:
    return {
        "vehicleInfo": {"make": "Toyota", "model": "Camry", "year": 2019, "licensePlate": "ABC123"},
        "serviceAddress": {
            "street": "12 Main St",
            "city": "Austin",
            "state": "TX",
            "zipCode": "78701",
        },
        "preferredDate": "2026-03-10",
        "preferredTime": "14:30",
        "urgency": "routine",
        "customerEmail": "customer@example.com",
        "customerPhone": "555-123-4567",
        "serviceProviderEmail": "provider@example.com",
    }


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture
def client(db_session, email_gateway, sms_gateway) -> Generator:
    """TestClient with notification gateways swapped for doubles"""
    with TestClient(app) as test_client:
        app.state.email_gateway = email_gateway
        app.state.sms_gateway = sms_gateway
        yield test_client
