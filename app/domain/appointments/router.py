"""Appointment router - FastAPI endpoints for booking and acknowledgment"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import (
    AppointmentCreate,
    BookingResponse,
    CalendarResponseRequest,
    ConfirmationResponse,
    NotificationFlags,
    StatusView,
)
from .service import AppointmentLifecycleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/oil-changes", tags=["Appointments"])


def get_lifecycle_service(
    request: Request, db: Session = Depends(get_db)
) -> AppointmentLifecycleService:
    """Dependency injection for AppointmentLifecycleService"""
    return AppointmentLifecycleService(
        db,
        email_gateway=request.app.state.email_gateway,
        sms_gateway=request.app.state.sms_gateway,
    )


@router.get("/verify-email-config")
async def verify_email_config(request: Request):
    """Check that the configured email transport accepts our credentials"""
    success, message = await request.app.state.email_gateway.verify()
    return {"success": success, "message": message}


@router.post("", response_model=BookingResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    service: AppointmentLifecycleService = Depends(get_lifecycle_service),
):
    """Create a new oil change appointment"""
    result = await service.create_appointment(data)
    return BookingResponse(
        trackingId=result.tracking_id,
        message="Appointment scheduled successfully",
        notifications=NotificationFlags(emailSent=result.email_sent, smsSent=result.sms_sent),
    )


@router.post("/calendar-response/{tracking_id}", response_model=ConfirmationResponse)
async def record_calendar_response(
    tracking_id: str,
    data: CalendarResponseRequest,
    service: AppointmentLifecycleService = Depends(get_lifecycle_service),
):
    """Record an RSVP sent back by the customer's calendar client"""
    summary = service.record_calendar_response(tracking_id, data.status)
    return ConfirmationResponse(
        message="Calendar response recorded successfully", appointment=summary
    )


@router.get("/confirm/{tracking_id}", response_model=ConfirmationResponse)
async def confirm_appointment(
    tracking_id: str,
    service: AppointmentLifecycleService = Depends(get_lifecycle_service),
):
    """Acknowledge an appointment from the emailed confirmation link"""
    summary = service.confirm_by_link(tracking_id)
    return ConfirmationResponse(message="Appointment confirmed successfully", appointment=summary)


@router.get("/status/{tracking_id}", response_model=StatusView)
async def get_appointment_status(
    tracking_id: str,
    service: AppointmentLifecycleService = Depends(get_lifecycle_service),
):
    """Read-only view of appointment and notification status"""
    return service.get_status(tracking_id)
