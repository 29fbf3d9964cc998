"""
Twilio SMS Service
Sends appointment SMS through the Twilio Messages REST API
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..domain.appointments.errors import GatewayError

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


@dataclass
class SmsReceipt:
    sid: Optional[str]
    status: Optional[str]


class TwilioSmsGateway:
    """SMS gateway backed by Twilio; raises GatewayError on any delivery failure"""

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: Optional[str] = None,
        messaging_service_sid: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.messaging_service_sid = messaging_service_sid
        self.timeout = timeout
        self.transport = transport

        if not self.is_configured:
            logger.warning("⚠️ Twilio credentials not configured. SMS notifications will be disabled.")

    @property
    def is_configured(self) -> bool:
        return bool(
            self.account_sid
            and self.auth_token
            and (self.from_number or self.messaging_service_sid)
        )

    async def send(self, to_phone: str, message_body: str) -> SmsReceipt:
        """
        Send SMS via Twilio

        Args:
            to_phone: Recipient phone number in E.164 format
            message_body: SMS message content

        Returns:
            SmsReceipt with the Twilio message SID
        """
        if not self.is_configured:
            raise GatewayError("SMS gateway not configured")

        if not to_phone or not to_phone.startswith("+"):
            logger.warning(f"Phone number not in E.164 format: {to_phone}")
            raise GatewayError("Phone number must be in E.164 format (e.g., +1234567890)")

        data = {"To": to_phone, "Body": message_body}
        if self.messaging_service_sid:
            data["MessagingServiceSid"] = self.messaging_service_sid
        else:
            data["From"] = self.from_number

        try:
            logger.info(f"🚀 Sending SMS to Twilio API for {to_phone}")
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(
                    f"{TWILIO_API_BASE}/Accounts/{self.account_sid}/Messages.json",
                    auth=(self.account_sid, self.auth_token),
                    data=data,
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Twilio API error: {str(e)}")
            raise GatewayError(f"SMS delivery failed: {str(e)}") from e

        logger.info(f"📡 Twilio API response status: {response.status_code}")

        if response.status_code in (200, 201):
            try:
                result = response.json()
            except ValueError as e:
                logger.error(f"❌ Twilio returned an unreadable response: {response.text[:200]}")
                raise GatewayError("SMS delivery status unknown: malformed Twilio response") from e
            if not isinstance(result, dict):
                raise GatewayError("SMS delivery status unknown: malformed Twilio response")
            logger.info(f"✅ SMS sent successfully to {to_phone} (SID: {result.get('sid')})")
            return SmsReceipt(sid=result.get("sid"), status=result.get("status"))

        try:
            error_data = response.json()
        except ValueError:
            error_data = {}
        error_message = error_data.get("message", "Unknown error")
        error_code = error_data.get("code")

        logger.error(f"❌ Twilio API error [{error_code}]: {error_message}")
        raise GatewayError(f"[{error_code}] {error_message}" if error_code else error_message)


# SMS Template Functions
def confirmation_request_sms(appointment_time: str) -> str:
    """Ask the customer to confirm a freshly booked appointment"""
    return (
        f"Your oil change appointment is scheduled for {appointment_time}. "
        f"Please reply with Y to confirm or N to cancel."
    )


def appointment_confirmed_sms(appointment_time: str, support_phone: str) -> str:
    message = (
        f"Thank you for confirming your appointment! We'll send you a reminder 24 hours "
        f"before your scheduled time ({appointment_time})."
    )
    if support_phone:
        message += f" If you need to make any changes, please call us at {support_phone}."
    return message


def appointment_declined_sms() -> str:
    return "Your appointment has been cancelled. Please call us to reschedule at your convenience."


def invalid_response_sms() -> str:
    return "Invalid response. Please reply with Y to confirm or N to cancel."
