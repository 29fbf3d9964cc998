"""
SMS Message Models
Delivery log for outbound notifications and inbound customer replies
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .database import Base
from .models import utcnow


class SmsMessage(Base):
    """Track SMS messages sent to and received from customers"""

    __tablename__ = "sms_messages"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True, index=True)

    direction = Column(String(10), nullable=False)  # inbound, outbound
    phone = Column(String(20), nullable=False)
    body = Column(Text, nullable=False)
    message_type = Column(String(50), nullable=False)

    # Provider message id (Twilio MessageSid / Vonage messageId)
    external_message_id = Column(String(255), nullable=True, unique=True)
    status = Column(String(20), nullable=False)  # sent, failed, received
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    appointment = relationship("Appointment", back_populates="sms_messages")
