"""Appointment repository - Database operations for appointments and the SMS log"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ...models import Appointment
from ...models_sms import SmsMessage
from .errors import DuplicateKeyError, PersistenceError

logger = logging.getLogger(__name__)


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def insert(db: Session, appointment: Appointment) -> Appointment:
        """Persist a new appointment; a reused tracking id raises DuplicateKeyError"""
        try:
            db.add(appointment)
            db.commit()
            db.refresh(appointment)
            return appointment
        except IntegrityError as e:
            db.rollback()
            logger.error(f"❌ Duplicate appointment key for {appointment.tracking_id}: {e}")
            raise DuplicateKeyError("Appointment tracking id already exists") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Failed to insert appointment: {e}")
            raise PersistenceError("Failed to save appointment") from e

    @staticmethod
    def find_by_tracking_id(db: Session, tracking_id: str) -> Optional[Appointment]:
        try:
            return db.query(Appointment).filter(Appointment.tracking_id == tracking_id).first()
        except SQLAlchemyError as e:
            logger.error(f"❌ Appointment lookup failed for {tracking_id}: {e}")
            raise PersistenceError("Failed to load appointment") from e

    @staticmethod
    def find_latest_unacknowledged_by_phone(db: Session, phone: str) -> Optional[Appointment]:
        """Newest appointment for this number that nobody has acknowledged yet"""
        try:
            return (
                db.query(Appointment)
                .filter(Appointment.customer_phone == phone, Appointment.acknowledged.is_(False))
                .order_by(Appointment.created_at.desc(), Appointment.id.desc())
                .first()
            )
        except SQLAlchemyError as e:
            logger.error(f"❌ Appointment lookup failed for {phone}: {e}")
            raise PersistenceError("Failed to load appointment") from e

    @staticmethod
    def update(db: Session, appointment: Appointment, **updates) -> Appointment:
        """Apply field updates and write back; a concurrent writer raises PersistenceError"""
        for key, value in updates.items():
            if hasattr(appointment, key):
                setattr(appointment, key, value)

        try:
            db.commit()
            db.refresh(appointment)
            return appointment
        except StaleDataError as e:
            db.rollback()
            logger.warning(f"⚠️ Concurrent update detected for {appointment.tracking_id}")
            raise PersistenceError("Appointment was modified concurrently") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Failed to update appointment {appointment.tracking_id}: {e}")
            raise PersistenceError("Failed to update appointment") from e

    # SMS log

    @staticmethod
    def has_inbound_message(db: Session, external_message_id: str) -> bool:
        try:
            return (
                db.query(SmsMessage.id)
                .filter(
                    SmsMessage.external_message_id == external_message_id,
                    SmsMessage.direction == "inbound",
                )
                .first()
                is not None
            )
        except SQLAlchemyError as e:
            logger.error(f"❌ SMS log lookup failed for {external_message_id}: {e}")
            raise PersistenceError("Failed to load SMS log") from e

    @staticmethod
    def log_sms(db: Session, **message_data) -> SmsMessage:
        message = SmsMessage(**message_data)
        try:
            db.add(message)
            db.commit()
            return message
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Failed to log SMS message: {e}")
            raise PersistenceError("Failed to log SMS message") from e
