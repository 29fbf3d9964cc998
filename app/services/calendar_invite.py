"""
Calendar Invite Builder
Renders appointment events as iCalendar REQUEST invites for email attachments
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from icalendar import Calendar, Event, vCalAddress, vText

from ..models import utcnow

PRODID = "-//HomeLube Assist//Appointments//EN"


@dataclass
class CalendarEvent:
    uid: str
    start: datetime
    end: datetime
    summary: str
    organizer_email: str
    organizer_name: str = "HomeLube"
    description: str = ""
    location: str = ""
    url: Optional[str] = None
    attendees: list[str] = field(default_factory=list)


def as_utc(value: datetime) -> datetime:
    """Stored datetimes are naive UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def build_calendar_invite(event: CalendarEvent) -> bytes:
    """Build a METHOD:REQUEST calendar with a single event"""
    calendar = Calendar()
    calendar.add("prodid", PRODID)
    calendar.add("version", "2.0")
    calendar.add("calscale", "GREGORIAN")
    calendar.add("method", "REQUEST")

    vevent = Event()
    vevent.add("uid", event.uid)
    vevent.add("dtstamp", as_utc(utcnow()))
    vevent.add("dtstart", as_utc(event.start))
    vevent.add("dtend", as_utc(event.end))
    vevent.add("summary", event.summary)
    if event.description:
        vevent.add("description", event.description)
    if event.location:
        vevent.add("location", event.location)
    if event.url:
        vevent.add("url", event.url)

    organizer = vCalAddress(f"mailto:{event.organizer_email}")
    organizer.params["cn"] = vText(event.organizer_name)
    vevent.add("organizer", organizer, encode=0)

    for email in event.attendees:
        attendee = vCalAddress(f"mailto:{email}")
        attendee.params["role"] = vText("REQ-PARTICIPANT")
        attendee.params["partstat"] = vText("NEEDS-ACTION")
        attendee.params["rsvp"] = vText("TRUE")
        vevent.add("attendee", attendee, encode=0)

    vevent.add("status", "CONFIRMED")
    vevent.add("sequence", 0)
    calendar.add_component(vevent)
    return calendar.to_ical()


def appointment_event(
    appointment,
    tracking_url: str,
    duration_minutes: int = 60,
    company_name: str = "HomeLube",
) -> CalendarEvent:
    """Describe an appointment as a calendar event"""
    start = appointment.appointment_date
    return CalendarEvent(
        uid=f"{appointment.tracking_id}@homelubeassist.com",
        start=start,
        end=start + timedelta(minutes=duration_minutes),
        summary="Oil Change Service",
        description=(
            f"Vehicle: {appointment.vehicle_description}\n"
            f"Service Address: {appointment.service_address_line}\n"
            f"Urgency: {appointment.urgency}"
        ),
        location=appointment.service_address_line,
        url=tracking_url,
        organizer_name=company_name,
        organizer_email=appointment.service_provider_email,
        attendees=[appointment.customer_email, appointment.service_provider_email],
    )
