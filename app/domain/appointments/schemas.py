"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email


class Urgency(str, Enum):
    ROUTINE = "routine"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CalendarInviteStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    TENTATIVE = "tentative"


# Statuses a calendar client may report back
CALENDAR_RESPONSE_STATUSES = {
    CalendarInviteStatus.ACCEPTED.value,
    CalendarInviteStatus.DECLINED.value,
    CalendarInviteStatus.TENTATIVE.value,
}


class VehicleInfo(BaseModel):
    make: str
    model: str
    year: str
    licensePlate: Optional[str] = None

    @field_validator("year", mode="before")
    @classmethod
    def coerce_year(cls, v):
        return str(v) if v is not None else v


class ServiceAddress(BaseModel):
    street: str
    city: str
    state: str
    zipCode: str

    @field_validator("zipCode", mode="before")
    @classmethod
    def coerce_zip(cls, v):
        return str(v) if v is not None else v


class AppointmentCreate(BaseModel):
    """Schema for booking a new oil change appointment"""

    vehicleInfo: VehicleInfo
    serviceAddress: ServiceAddress
    preferredDate: date
    preferredTime: time
    urgency: Urgency = Urgency.ROUTINE
    customerEmail: str
    # Presence and format are checked by the lifecycle service so the
    # customer gets the notification-specific error message
    customerPhone: Optional[str] = None
    serviceProviderEmail: str

    @field_validator("customerEmail", "serviceProviderEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @property
    def appointment_date(self) -> datetime:
        return datetime.combine(self.preferredDate, self.preferredTime).replace(tzinfo=None)


class CalendarResponseRequest(BaseModel):
    status: str


class NotificationFlags(BaseModel):
    emailSent: bool
    smsSent: bool


class BookingResponse(BaseModel):
    success: bool = True
    trackingId: str
    message: str
    notifications: NotificationFlags


class AddressView(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipCode: Optional[str] = None


class AppointmentSummary(BaseModel):
    """Customer-facing projection returned by confirmation endpoints"""

    date: datetime
    vehicle: str
    address: AddressView
    calendarStatus: CalendarInviteStatus


class AppointmentDetails(BaseModel):
    date: datetime
    vehicle: str
    address: AddressView


class CalendarInviteView(BaseModel):
    sent: bool
    status: CalendarInviteStatus
    respondedAt: Optional[datetime] = None


class StatusView(BaseModel):
    """Read-only projection of coarse status plus notification sub-state"""

    status: AppointmentStatus
    emailSent: bool
    acknowledged: bool
    acknowledgedAt: Optional[datetime] = None
    calendarInvite: CalendarInviteView
    appointment: AppointmentDetails


class ConfirmationResponse(BaseModel):
    success: bool = True
    message: str
    appointment: AppointmentSummary
