"""
SMS Routes
Inbound customer replies (Twilio or Vonage webhooks) and operator SMS actions
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ...config import TWILIO_AUTH_TOKEN, TWILIO_VALIDATE_WEBHOOKS
from ...rate_limiter import create_rate_limiter
from ...webhook_security import verify_twilio_webhook
from ..appointments.errors import ValidationError
from ..appointments.router import get_lifecycle_service
from ..appointments.service import AppointmentLifecycleService, SmsOutcome

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sms", tags=["sms"])

# Rate limiter for webhooks - 100 requests per minute
rate_limit_webhook = create_rate_limiter(
    limit=100,
    window_seconds=60,
    key_prefix="webhook_sms",
)


# Pydantic Models
class InboundSms(BaseModel):
    fromNumber: str
    text: str = ""
    externalMessageId: Optional[str] = None


class TestSMSRequest(BaseModel):
    phoneNumber: str
    message: str


class SendConfirmationRequest(BaseModel):
    trackingId: str


OUTCOME_MESSAGES = {
    SmsOutcome.CONFIRMED: "Appointment confirmed",
    SmsOutcome.DECLINED: "Appointment cancelled",
    SmsOutcome.DUPLICATE: "Message already processed",
}


def parse_inbound_sms(payload: dict) -> InboundSms:
    """
    Map provider payloads onto one shape.

    Twilio posts form fields From/Body/MessageSid; Vonage sends
    msisdn/text/messageId (SMS API) or from/text/message_uuid (Messages API).
    """
    from_number = payload.get("From") or payload.get("msisdn") or payload.get("from")
    if isinstance(from_number, dict):
        from_number = from_number.get("number")
    if not from_number:
        raise ValidationError("Sender phone number is required")

    return InboundSms(
        fromNumber=str(from_number),
        text=str(payload.get("Body") or payload.get("text") or ""),
        externalMessageId=(
            payload.get("MessageSid") or payload.get("messageId") or payload.get("message_uuid")
        ),
    )


async def read_webhook_payload(request: Request) -> tuple[dict, bool]:
    """Return the payload and whether it arrived as a form post"""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError as e:
            raise ValidationError("Malformed JSON payload") from e
        if not isinstance(payload, dict):
            raise ValidationError("Malformed JSON payload")
        return payload, False

    form = await request.form()
    return {key: value for key, value in form.items()}, True


@router.post("/webhook")
async def handle_sms_webhook(
    request: Request,
    service: AppointmentLifecycleService = Depends(get_lifecycle_service),
    _: None = Depends(rate_limit_webhook),
):
    """Handle incoming SMS responses"""
    payload, is_form = await read_webhook_payload(request)

    if TWILIO_VALIDATE_WEBHOOKS and is_form:
        if not TWILIO_AUTH_TOKEN:
            logger.warning("⚠️ TWILIO_AUTH_TOKEN not configured - signature verification skipped")
        else:
            verify_twilio_webhook(request, TWILIO_AUTH_TOKEN, payload)

    inbound = parse_inbound_sms(payload)
    logger.info(
        f"📥 Received SMS webhook: from={inbound.fromNumber} messageId={inbound.externalMessageId}"
    )

    outcome = await service.process_inbound_sms(
        inbound.fromNumber, inbound.text, inbound.externalMessageId
    )

    if outcome == SmsOutcome.INVALID_RESPONSE:
        return JSONResponse(status_code=400, content={"success": False, "message": "Invalid response"})

    return {"success": True, "message": OUTCOME_MESSAGES[outcome]}


@router.post("/test")
async def send_test_sms(
    data: TestSMSRequest,
    service: AppointmentLifecycleService = Depends(get_lifecycle_service),
):
    """Send a test SMS to verify the gateway configuration"""
    logger.info(f"Attempting to send test SMS to {data.phoneNumber}")
    receipt = await service.send_test_sms(data.phoneNumber, data.message)
    return {
        "success": True,
        "message": "Test SMS sent successfully",
        "response": {"sid": receipt.sid, "status": receipt.status},
    }


@router.post("/send-confirmation")
async def send_confirmation_request(
    data: SendConfirmationRequest,
    service: AppointmentLifecycleService = Depends(get_lifecycle_service),
):
    """Re-send the Y/N confirmation request for an appointment"""
    await service.resend_confirmation_request(data.trackingId)
    return {"success": True, "message": "Confirmation request sent successfully"}
