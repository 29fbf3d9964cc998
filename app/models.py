import secrets
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String
from sqlalchemy.orm import relationship

from .database import Base


def generate_tracking_id() -> str:
    """Generate a 128-bit random tracking token rendered as 32 hex chars"""
    return secrets.token_hex(16)


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    # Only identifier handed to customers and calendar clients
    tracking_id = Column(String(64), unique=True, index=True, nullable=False)

    # Vehicle
    vehicle_make = Column(String(100), nullable=True)
    vehicle_model = Column(String(100), nullable=True)
    vehicle_year = Column(String(10), nullable=True)
    vehicle_license_plate = Column(String(20), nullable=True)

    # Service address
    address_street = Column(String(255), nullable=True)
    address_city = Column(String(100), nullable=True)
    address_state = Column(String(50), nullable=True)
    address_zip_code = Column(String(20), nullable=True)

    appointment_date = Column(DateTime, nullable=False)
    urgency = Column(String(20), default="routine", nullable=False)  # routine, urgent, emergency

    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(20), nullable=False, index=True)  # E.164
    service_provider_email = Column(String(255), nullable=False)

    # pending, confirmed, completed, cancelled
    status = Column(String(20), default="pending", nullable=False)

    # Notification sub-state
    email_sent = Column(Boolean, default=False, nullable=False)
    email_message_id = Column(String(255), nullable=True)
    email_preview_url = Column(String(500), nullable=True)
    confirmation_sms_sent = Column(Boolean, default=False, nullable=False)
    acknowledged = Column(Boolean, default=False, nullable=False)
    acknowledged_at = Column(DateTime, nullable=True)
    calendar_invite_sent = Column(Boolean, default=False, nullable=False)
    # pending, accepted, declined, tentative
    calendar_invite_status = Column(String(20), default="pending", nullable=False)
    calendar_invite_responded_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Optimistic concurrency: a stale write-back raises StaleDataError
    version = Column(Integer, nullable=False)

    sms_messages = relationship("SmsMessage", back_populates="appointment")

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        Index("ix_appointments_phone_ack_created", "customer_phone", "acknowledged", "created_at"),
    )

    @property
    def vehicle_description(self) -> str:
        return f"{self.vehicle_make or ''} {self.vehicle_model or ''} {self.vehicle_year or ''}".strip()

    @property
    def service_address(self) -> dict:
        return {
            "street": self.address_street,
            "city": self.address_city,
            "state": self.address_state,
            "zipCode": self.address_zip_code,
        }

    @property
    def service_address_line(self) -> str:
        return (
            f"{self.address_street}, {self.address_city}, "
            f"{self.address_state} {self.address_zip_code}"
        )

    def __repr__(self):
        return f"<Appointment {self.tracking_id} status={self.status}>"
