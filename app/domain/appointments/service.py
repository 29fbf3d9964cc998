"""Appointment lifecycle service - booking, acknowledgment and RSVP reconciliation"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...config import (
    APPOINTMENT_DURATION_MINUTES,
    COMPANY_NAME,
    FRONTEND_URL,
    SUPPORT_PHONE_NUMBER,
)
from ...email_templates import appointment_confirmation_template, provider_new_appointment_template
from ...models import Appointment, generate_tracking_id, utcnow
from ...services.calendar_invite import appointment_event, build_calendar_invite
from ...services.twilio_service import (
    SmsReceipt,
    appointment_confirmed_sms,
    appointment_declined_sms,
    confirmation_request_sms,
    invalid_response_sms,
)
from ...shared.validators import normalize_phone, validate_phone
from .errors import GatewayError, NotFound, PersistenceError, ValidationError
from .repository import AppointmentRepository
from .schemas import (
    CALENDAR_RESPONSE_STATUSES,
    AddressView,
    AppointmentCreate,
    AppointmentDetails,
    AppointmentStatus,
    AppointmentSummary,
    CalendarInviteStatus,
    CalendarInviteView,
    StatusView,
)

logger = logging.getLogger(__name__)

AFFIRMATIVE_REPLIES = {"Y", "YES"}
NEGATIVE_REPLIES = {"N", "NO"}


class SmsOutcome(str, Enum):
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    INVALID_RESPONSE = "invalid_response"
    DUPLICATE = "duplicate"


@dataclass
class BookingResult:
    appointment: Appointment
    tracking_id: str
    email_sent: bool
    sms_sent: bool


def format_appointment_time(value: datetime) -> str:
    return value.strftime("%a, %b %d, %Y at %I:%M %p UTC")


def to_summary(appointment: Appointment) -> AppointmentSummary:
    return AppointmentSummary(
        date=appointment.appointment_date,
        vehicle=appointment.vehicle_description,
        address=AddressView(**appointment.service_address),
        calendarStatus=appointment.calendar_invite_status,
    )


def to_status_view(appointment: Appointment) -> StatusView:
    return StatusView(
        status=appointment.status,
        emailSent=appointment.email_sent,
        acknowledged=appointment.acknowledged,
        acknowledgedAt=appointment.acknowledged_at,
        calendarInvite=CalendarInviteView(
            sent=appointment.calendar_invite_sent,
            status=appointment.calendar_invite_status,
            respondedAt=appointment.calendar_invite_responded_at,
        ),
        appointment=AppointmentDetails(
            date=appointment.appointment_date,
            vehicle=appointment.vehicle_description,
            address=AddressView(**appointment.service_address),
        ),
    )


class AppointmentLifecycleService:
    """
    Owns the appointment state machine.

    Every operation re-reads the appointment by tracking id (or phone), applies
    one write-back and only then dispatches notifications. Notification
    failures are logged and reported through delivery flags; they never undo
    or fail the state change.
    """

    def __init__(
        self,
        db: Session,
        email_gateway,
        sms_gateway,
        frontend_url: str = FRONTEND_URL,
        support_phone: str = SUPPORT_PHONE_NUMBER,
        company_name: str = COMPANY_NAME,
        duration_minutes: int = APPOINTMENT_DURATION_MINUTES,
        calendar_builder: Callable = build_calendar_invite,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.repo = AppointmentRepository()
        self.email_gateway = email_gateway
        self.sms_gateway = sms_gateway
        self.frontend_url = frontend_url.rstrip("/")
        self.support_phone = support_phone
        self.company_name = company_name
        self.duration_minutes = duration_minutes
        self.calendar_builder = calendar_builder
        self.clock = clock

    def tracking_url(self, tracking_id: str) -> str:
        return f"{self.frontend_url}/appointment/{tracking_id}"

    def confirm_url(self, tracking_id: str) -> str:
        return f"{self.frontend_url}/appointment/{tracking_id}/confirm"

    def _get_by_tracking_id(self, tracking_id: str) -> Appointment:
        appointment = self.repo.find_by_tracking_id(self.db, tracking_id)
        if not appointment:
            logger.info(f"Appointment not found for tracking id {tracking_id}")
            raise NotFound("Appointment not found")
        return appointment

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    async def create_appointment(self, data: AppointmentCreate) -> BookingResult:
        """Persist a new pending appointment, then send SMS and email notifications"""
        if not data.customerPhone:
            raise ValidationError("Phone number is required for appointment notifications")
        if not validate_phone(data.customerPhone):
            raise ValidationError(
                "Invalid phone number format. Please provide a valid phone number."
            )
        if not data.serviceProviderEmail:
            raise ValidationError("Service provider email is required")

        customer_phone = normalize_phone(data.customerPhone)
        tracking_id = generate_tracking_id()

        appointment = Appointment(
            tracking_id=tracking_id,
            vehicle_make=data.vehicleInfo.make,
            vehicle_model=data.vehicleInfo.model,
            vehicle_year=data.vehicleInfo.year,
            vehicle_license_plate=data.vehicleInfo.licensePlate,
            address_street=data.serviceAddress.street,
            address_city=data.serviceAddress.city,
            address_state=data.serviceAddress.state,
            address_zip_code=data.serviceAddress.zipCode,
            appointment_date=data.appointment_date,
            urgency=data.urgency.value,
            customer_email=data.customerEmail,
            customer_phone=customer_phone,
            service_provider_email=data.serviceProviderEmail,
            status=AppointmentStatus.PENDING.value,
            email_sent=False,
            confirmation_sms_sent=False,
            acknowledged=False,
            calendar_invite_sent=False,
            calendar_invite_status=CalendarInviteStatus.PENDING.value,
        )
        appointment = self.repo.insert(self.db, appointment)
        logger.info(f"📥 Appointment {tracking_id} created for {customer_phone}")

        sms_sent = await self._send_sms(
            appointment,
            confirmation_request_sms(format_appointment_time(appointment.appointment_date)),
            "confirmation_request",
        )

        invite = self.calendar_builder(
            appointment_event(
                appointment,
                self.tracking_url(tracking_id),
                duration_minutes=self.duration_minutes,
                company_name=self.company_name,
            )
        )
        attachments = [
            {
                "filename": "appointment.ics",
                "content": invite,
                "content_type": "text/calendar",
            }
        ]

        delivery = None
        try:
            delivery = await self.email_gateway.send(
                to=appointment.customer_email,
                subject="Oil Change Appointment Confirmation",
                mjml_content=appointment_confirmation_template(
                    vehicle=appointment.vehicle_description,
                    appointment_date=format_appointment_time(appointment.appointment_date),
                    service_address=appointment.service_address,
                    tracking_id=tracking_id,
                    tracking_url=self.tracking_url(tracking_id),
                    confirm_url=self.confirm_url(tracking_id),
                    company_name=self.company_name,
                ),
                attachments=attachments,
            )
            logger.info(f"✅ Confirmation email sent for {tracking_id}")
        except GatewayError as e:
            logger.error(f"❌ Failed to send confirmation email for {tracking_id}: {e.message}")

        await self._notify_provider(appointment, attachments)

        email_sent = delivery is not None
        try:
            appointment = self.repo.update(
                self.db,
                appointment,
                confirmation_sms_sent=sms_sent,
                email_sent=email_sent,
                calendar_invite_sent=email_sent,
                email_message_id=delivery.message_id if delivery else None,
                email_preview_url=delivery.preview_url if delivery else None,
            )
        except PersistenceError as e:
            # The booking itself is already stored
            logger.error(f"❌ Failed to record delivery flags for {tracking_id}: {e.message}")

        return BookingResult(
            appointment=appointment,
            tracking_id=tracking_id,
            email_sent=email_sent,
            sms_sent=sms_sent,
        )

    async def _notify_provider(self, appointment: Appointment, attachments: list[dict]) -> bool:
        try:
            await self.email_gateway.send(
                to=appointment.service_provider_email,
                subject=f"New {self.company_name} Oil Change Appointment",
                mjml_content=provider_new_appointment_template(
                    vehicle=appointment.vehicle_description,
                    appointment_date=format_appointment_time(appointment.appointment_date),
                    service_address=appointment.service_address,
                    tracking_id=appointment.tracking_id,
                    customer_email=appointment.customer_email,
                    customer_phone=appointment.customer_phone,
                    urgency=appointment.urgency,
                    company_name=self.company_name,
                ),
                attachments=attachments,
            )
            return True
        except GatewayError as e:
            logger.warning(
                f"⚠️ Failed to notify provider about {appointment.tracking_id}: {e.message}"
            )
            return False

    # ------------------------------------------------------------------
    # Acknowledgment paths
    # ------------------------------------------------------------------

    def record_calendar_response(self, tracking_id: str, status: str) -> AppointmentSummary:
        """Apply an RSVP from a calendar client; accepting also acknowledges"""
        appointment = self._get_by_tracking_id(tracking_id)

        if status not in CALENDAR_RESPONSE_STATUSES:
            raise ValidationError("Invalid calendar response status")

        now = self.clock()
        updates = {
            "calendar_invite_status": status,
            "calendar_invite_responded_at": now,
        }
        if status == CalendarInviteStatus.ACCEPTED.value:
            updates["acknowledged"] = True
            updates["acknowledged_at"] = now

        appointment = self.repo.update(self.db, appointment, **updates)
        logger.info(f"📅 Calendar response '{status}' recorded for {tracking_id}")
        return to_summary(appointment)

    def confirm_by_link(self, tracking_id: str) -> AppointmentSummary:
        """Acknowledge regardless of invite status"""
        appointment = self._get_by_tracking_id(tracking_id)
        appointment = self.repo.update(
            self.db, appointment, acknowledged=True, acknowledged_at=self.clock()
        )
        logger.info(f"✅ Appointment {tracking_id} confirmed by link")
        return to_summary(appointment)

    async def process_inbound_sms(
        self,
        from_number: str,
        text: Optional[str],
        external_message_id: Optional[str] = None,
    ) -> SmsOutcome:
        """Reconcile a Y/N reply against the sender's newest unacknowledged appointment"""
        try:
            phone = normalize_phone(from_number)
        except ValueError as e:
            raise ValidationError("Sender phone number is required") from e

        if external_message_id and self.repo.has_inbound_message(self.db, external_message_id):
            logger.info(f"🔁 Ignoring redelivered SMS {external_message_id} from {phone}")
            return SmsOutcome.DUPLICATE

        appointment = self.repo.find_latest_unacknowledged_by_phone(self.db, phone)
        if not appointment:
            logger.info(f"No pending appointment found for: {phone}")
            raise NotFound("No pending appointment found")

        response = (text or "").strip().upper()

        if response in AFFIRMATIVE_REPLIES:
            now = self.clock()
            appointment = self.repo.update(
                self.db,
                appointment,
                acknowledged=True,
                acknowledged_at=now,
                calendar_invite_status=CalendarInviteStatus.ACCEPTED.value,
            )
            outcome = SmsOutcome.CONFIRMED
            reply = appointment_confirmed_sms(
                format_appointment_time(appointment.appointment_date), self.support_phone
            )
            reply_type = "appointment_confirmed"
        elif response in NEGATIVE_REPLIES:
            # Only the invite sub-state changes; the coarse status stays as is
            appointment = self.repo.update(
                self.db,
                appointment,
                calendar_invite_status=CalendarInviteStatus.DECLINED.value,
            )
            outcome = SmsOutcome.DECLINED
            reply = appointment_declined_sms()
            reply_type = "appointment_declined"
        else:
            outcome = SmsOutcome.INVALID_RESPONSE
            reply = invalid_response_sms()
            reply_type = "invalid_response"

        logger.info(f"📱 SMS reply from {phone} for {appointment.tracking_id}: {outcome.value}")
        self._record_sms(
            appointment,
            direction="inbound",
            phone=phone,
            body=text or "",
            message_type="customer_reply",
            external_message_id=external_message_id,
            status="received",
        )

        await self._send_sms(appointment, reply, reply_type)
        return outcome

    # ------------------------------------------------------------------
    # Queries and operator actions
    # ------------------------------------------------------------------

    def get_status(self, tracking_id: str) -> StatusView:
        return to_status_view(self._get_by_tracking_id(tracking_id))

    async def resend_confirmation_request(self, tracking_id: str) -> SmsReceipt:
        """Re-send the Y/N request; delivery failure is reported to the caller"""
        appointment = self._get_by_tracking_id(tracking_id)
        body = confirmation_request_sms(format_appointment_time(appointment.appointment_date))

        try:
            receipt = await self.sms_gateway.send(appointment.customer_phone, body)
        except GatewayError as e:
            self._record_sms(
                appointment,
                direction="outbound",
                phone=appointment.customer_phone,
                body=body,
                message_type="confirmation_request",
                status="failed",
                error_message=e.message,
            )
            raise

        self._record_sms(
            appointment,
            direction="outbound",
            phone=appointment.customer_phone,
            body=body,
            message_type="confirmation_request",
            external_message_id=receipt.sid,
            status="sent",
        )
        self.repo.update(self.db, appointment, confirmation_sms_sent=True)
        return receipt

    async def send_test_sms(self, phone_number: str, message: str) -> SmsReceipt:
        if not phone_number or not message:
            raise ValidationError("Phone number and message are required")
        if not validate_phone(phone_number):
            raise ValidationError("Invalid phone number format. Please provide a valid phone number.")

        return await self.sms_gateway.send(normalize_phone(phone_number), message)

    # ------------------------------------------------------------------
    # SMS helpers
    # ------------------------------------------------------------------

    async def _send_sms(self, appointment: Appointment, body: str, message_type: str) -> bool:
        """Best-effort SMS to the appointment's customer"""
        phone = appointment.customer_phone
        try:
            receipt = await self.sms_gateway.send(phone, body)
        except GatewayError as e:
            logger.error(f"❌ Failed to send {message_type} SMS to {phone}: {e.message}")
            self._record_sms(
                appointment,
                direction="outbound",
                phone=phone,
                body=body,
                message_type=message_type,
                status="failed",
                error_message=e.message,
            )
            return False

        self._record_sms(
            appointment,
            direction="outbound",
            phone=phone,
            body=body,
            message_type=message_type,
            external_message_id=receipt.sid if receipt else None,
            status="sent",
        )
        return True

    def _record_sms(self, appointment: Appointment, **message_data) -> None:
        try:
            self.repo.log_sms(self.db, appointment_id=appointment.id, **message_data)
        except PersistenceError as e:
            logger.warning(f"⚠️ SMS log entry dropped for {appointment.tracking_id}: {e.message}")
