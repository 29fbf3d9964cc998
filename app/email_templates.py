"""
MJML Email Templates
Appointment email templates using MJML for responsive, cross-client compatibility
"""

from typing import Optional

# Brand colors - HomeLube green
THEME = {
    "primary": "#28a745",
    "primary_dark": "#1e7e34",
    "primary_light": "#e9f7ec",
    "background": "#f7f7f7",
    "card_bg": "#ffffff",
    "text_primary": "#222222",
    "text_secondary": "#444444",
    "text_muted": "#666666",
    "border": "#e9ecef",
}

LOGO_URL = "https://dummyimage.com/200x60/900/fff&text=HomeLube+Logo"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    company_name: str = "HomeLube",
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.5" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <!-- Header with Logo -->
        <mj-section background-color="#ffffff" padding="32px 20px 0 20px">
          <mj-column>
            <mj-image src="{LOGO_URL}" alt="{company_name} Logo" width="200px" padding="0" />
            <mj-text align="center" font-size="14px" color="{THEME['text_muted']}">
              Professional Mobile Oil Change Service
            </mj-text>
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="0 40px 40px 40px">
          <mj-column>
            <mj-text font-size="22px" font-weight="600" color="{THEME['text_primary']}" padding="16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="14px" color="{THEME['text_muted']}" padding="0">
              Need assistance? We're here to help!
            </mj-text>
            <mj-text align="center" font-size="12px" color="#888888" padding="12px 0 0 0">
              © {company_name}. All rights reserved.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _appointment_details_section(
    vehicle: str,
    appointment_date: str,
    service_address: dict,
    tracking_id: str,
) -> str:
    return f"""
    <mj-text font-size="18px" font-weight="600" color="{THEME['text_primary']}" padding="16px 0 8px 0">
      Appointment Details
    </mj-text>
    <mj-divider border-color="{THEME['primary']}" border-width="2px" padding="0 0 16px 0" />

    <mj-text padding="0 0 12px 0">
      <strong style="color: {THEME['primary']};">Vehicle Information</strong><br/>
      {vehicle}
    </mj-text>
    <mj-text padding="0 0 12px 0">
      <strong style="color: {THEME['primary']};">Date &amp; Time</strong><br/>
      {appointment_date}
    </mj-text>
    <mj-text padding="0 0 12px 0">
      <strong style="color: {THEME['primary']};">Service Address</strong><br/>
      {service_address.get('street') or ''}<br/>
      {service_address.get('city') or ''}, {service_address.get('state') or ''} {service_address.get('zipCode') or ''}
    </mj-text>
    <mj-text padding="0 0 12px 0" container-background-color="{THEME['primary_light']}">
      <span style="font-size: 14px; color: {THEME['text_muted']};">Tracking ID</span><br/>
      <strong style="color: {THEME['primary']};">{tracking_id}</strong>
    </mj-text>
    """


def appointment_confirmation_template(
    vehicle: str,
    appointment_date: str,
    service_address: dict,
    tracking_id: str,
    tracking_url: str,
    confirm_url: str,
    company_name: str = "HomeLube",
) -> str:
    """Customer booking confirmation with calendar invite attached"""
    content = f"""
    <mj-text>
      Thank you for choosing <strong style="color: {THEME['primary']};">{company_name}</strong>!
      We're excited to provide you with our premium mobile oil change service.
    </mj-text>

    {_appointment_details_section(vehicle, appointment_date, service_address, tracking_id)}

    <mj-text>
      A calendar invite is attached. Accept it, reply Y to our text message, or use the
      button below to confirm your appointment.
    </mj-text>

    <mj-text>
      You can track your appointment status at:
      <a href="{tracking_url}" style="color: {THEME['primary']};">{tracking_url}</a>
    </mj-text>
    """

    return get_base_template(
        title="Your Oil Change Appointment is Scheduled",
        preview_text=f"Appointment on {appointment_date}",
        content_sections=content,
        cta_url=confirm_url,
        cta_label="Confirm Appointment",
        company_name=company_name,
    )


def provider_new_appointment_template(
    vehicle: str,
    appointment_date: str,
    service_address: dict,
    tracking_id: str,
    customer_email: str,
    customer_phone: str,
    urgency: str,
    company_name: str = "HomeLube",
) -> str:
    """Service provider notification for a new booking"""
    content = f"""
    <mj-text>
      A new appointment has been scheduled.
    </mj-text>

    {_appointment_details_section(vehicle, appointment_date, service_address, tracking_id)}

    <mj-text padding="0 0 12px 0">
      <strong style="color: {THEME['primary']};">Customer</strong><br/>
      {customer_email}<br/>
      {customer_phone}
    </mj-text>
    <mj-text padding="0 0 12px 0">
      <strong style="color: {THEME['primary']};">Urgency</strong><br/>
      {urgency}
    </mj-text>
    """

    return get_base_template(
        title=f"New {company_name} Oil Change Appointment",
        preview_text=f"New appointment on {appointment_date}",
        content_sections=content,
        company_name=company_name,
    )
