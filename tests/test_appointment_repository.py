from datetime import datetime

import pytest

from app.database import SessionLocal
from app.domain.appointments.errors import DuplicateKeyError, PersistenceError
from app.domain.appointments.repository import AppointmentRepository
from app.models import Appointment, generate_tracking_id


def make_appointment(tracking_id=None, phone="+15551234567", created_at=None) -> Appointment:
    appointment = Appointment(
        tracking_id=tracking_id or generate_tracking_id(),
        vehicle_make="Honda",
        vehicle_model="Civic",
        vehicle_year="2020",
        address_street="1 Elm St",
        address_city="Denver",
        address_state="CO",
        address_zip_code="80202",
        appointment_date=datetime(2026, 5, 1, 10, 0),
        customer_email="customer@example.com",
        customer_phone=phone,
        service_provider_email="provider@example.com",
    )
    if created_at:
        appointment.created_at = created_at
    return appointment


def test_insert_sets_defaults_and_version(db_session):
    appointment = AppointmentRepository.insert(db_session, make_appointment())

    assert appointment.id is not None
    assert appointment.version == 1
    assert appointment.status == "pending"
    assert appointment.acknowledged is False


def test_duplicate_tracking_id_raises(db_session):
    AppointmentRepository.insert(db_session, make_appointment(tracking_id="abc"))

    with pytest.raises(DuplicateKeyError):
        AppointmentRepository.insert(db_session, make_appointment(tracking_id="abc"))


def test_latest_unacknowledged_ignores_acknowledged_and_other_numbers(db_session):
    oldest = AppointmentRepository.insert(
        db_session, make_appointment(created_at=datetime(2026, 1, 1))
    )
    acknowledged = AppointmentRepository.insert(
        db_session, make_appointment(created_at=datetime(2026, 1, 3))
    )
    AppointmentRepository.update(db_session, acknowledged, acknowledged=True)
    AppointmentRepository.insert(
        db_session, make_appointment(phone="+15559999999", created_at=datetime(2026, 1, 4))
    )

    found = AppointmentRepository.find_latest_unacknowledged_by_phone(db_session, "+15551234567")

    assert found.id == oldest.id


def test_update_bumps_version(db_session):
    appointment = AppointmentRepository.insert(db_session, make_appointment())

    AppointmentRepository.update(db_session, appointment, calendar_invite_status="tentative")

    assert appointment.version == 2
    assert appointment.calendar_invite_status == "tentative"


def test_concurrent_write_is_detected(db_session):
    appointment = AppointmentRepository.insert(db_session, make_appointment())

    other_session = SessionLocal()
    try:
        other_copy = AppointmentRepository.find_by_tracking_id(other_session, appointment.tracking_id)
        AppointmentRepository.update(other_session, other_copy, acknowledged=True)
    finally:
        other_session.close()

    with pytest.raises(PersistenceError):
        AppointmentRepository.update(db_session, appointment, calendar_invite_status="declined")


def test_inbound_message_lookup(db_session):
    appointment = AppointmentRepository.insert(db_session, make_appointment())
    AppointmentRepository.log_sms(
        db_session,
        appointment_id=appointment.id,
        direction="inbound",
        phone="+15551234567",
        body="Y",
        message_type="customer_reply",
        external_message_id="SM123",
        status="received",
    )

    assert AppointmentRepository.has_inbound_message(db_session, "SM123") is True
    assert AppointmentRepository.has_inbound_message(db_session, "SM456") is False
