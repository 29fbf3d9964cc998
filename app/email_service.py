"""
Email Gateway using custom SMTP (if configured) or Resend (fallback)
Templates are written in MJML and compiled to HTML right before dispatch
"""

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from io import StringIO
from typing import Optional

import resend
from mjml import mjml_to_html

from .domain.appointments.errors import GatewayError

logger = logging.getLogger(__name__)


@dataclass
class EmailDelivery:
    message_id: Optional[str]
    preview_url: Optional[str] = None


@dataclass
class SmtpSettings:
    host: str
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(StringIO(mjml_content))
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise GatewayError(f"Failed to compile MJML template: {str(e)}") from e

    errors = getattr(result, "errors", None)
    if errors is None and isinstance(result, dict):
        errors = result.get("errors")
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")

    html = getattr(result, "html", None)
    if html is None and isinstance(result, dict):
        html = result.get("html", "")
    return html if html is not None else str(result)


class EmailGateway:
    """Send email via SMTP when configured, otherwise Resend"""

    def __init__(
        self,
        from_address: str,
        resend_api_key: Optional[str] = None,
        smtp: Optional[SmtpSettings] = None,
    ):
        self.from_address = from_address
        self.resend_api_key = resend_api_key
        self.smtp = smtp
        if resend_api_key:
            resend.api_key = resend_api_key

        if not self.is_configured:
            logger.warning("⚠️ No email service configured - RESEND_API_KEY and SMTP_HOST missing")

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp or self.resend_api_key)

    async def send(
        self,
        to: str,
        subject: str,
        mjml_content: str,
        attachments: Optional[list[dict]] = None,
    ) -> EmailDelivery:
        """
        Send an email

        Args:
            to: Recipient email
            subject: Email subject line
            mjml_content: MJML template content (will be compiled to HTML)
            attachments: Optional list of {"filename", "content": bytes, "content_type"} dicts

        Returns:
            EmailDelivery with the provider message id
        """
        html_content = compile_mjml_to_html(mjml_content)
        attachments = attachments or []

        if self.smtp:
            try:
                logger.info(f"📧 Sending email via SMTP: {self.smtp.host}")
                return await asyncio.to_thread(
                    self._send_via_smtp, to, subject, html_content, attachments
                )
            except (smtplib.SMTPException, OSError) as e:
                if not self.resend_api_key:
                    logger.error(f"❌ SMTP send failed: {e}")
                    raise GatewayError(f"Failed to send email: {str(e)}") from e
                logger.warning(f"⚠️ SMTP failed, falling back to Resend: {e}")

        if not self.resend_api_key:
            logger.error("❌ No email service configured - RESEND_API_KEY missing and no SMTP")
            raise GatewayError("Email service not configured")

        try:
            logger.info(f"📧 Sending email via Resend to: {to}")
            email_data = {
                "from": self.from_address,
                "to": [to],
                "subject": subject,
                "html": html_content,
            }
            if attachments:
                email_data["attachments"] = [
                    {"filename": attachment["filename"], "content": list(attachment["content"])}
                    for attachment in attachments
                ]

            response = await asyncio.to_thread(resend.Emails.send, email_data)
            logger.info(f"✅ Email sent successfully via Resend: {response}")
            message_id = response.get("id") if isinstance(response, dict) else None
            return EmailDelivery(message_id=message_id)
        except Exception as e:
            logger.error(f"❌ Email send error to {to}: {e}")
            raise GatewayError(f"Failed to send email: {str(e)}") from e

    def _send_via_smtp(
        self, to: str, subject: str, html_content: str, attachments: list[dict]
    ) -> EmailDelivery:
        settings = self.smtp
        message_id = make_msgid(domain="homelubeassist.com")

        msg = MIMEMultipart("mixed")
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = to
        msg["Message-ID"] = message_id
        msg.attach(MIMEText(html_content, "html"))

        for attachment in attachments:
            maintype, _, subtype = attachment.get(
                "content_type", "application/octet-stream"
            ).partition("/")
            part = MIMEBase(maintype, subtype)
            part.set_payload(attachment["content"])
            encoders.encode_base64(part)
            part.add_header(
                "Content-Disposition", f'attachment; filename="{attachment["filename"]}"'
            )
            msg.attach(part)

        if settings.port == 465:
            context = ssl.create_default_context()
            server = smtplib.SMTP_SSL(settings.host, settings.port, context=context, timeout=30)
        else:
            server = smtplib.SMTP(settings.host, settings.port, timeout=30)
            if settings.use_tls:
                server.starttls(context=ssl.create_default_context())

        try:
            if settings.username:
                server.login(settings.username, settings.password or "")
            server.sendmail(
                self.from_address.split("<")[-1].rstrip(">"), [to], msg.as_string()
            )
        finally:
            server.quit()

        logger.info(f"✅ SMTP email sent successfully via {settings.host}")
        return EmailDelivery(message_id=message_id)

    def _check_smtp_login(self) -> None:
        server = smtplib.SMTP(self.smtp.host, self.smtp.port, timeout=10)
        try:
            if self.smtp.use_tls and self.smtp.port != 465:
                server.starttls(context=ssl.create_default_context())
            if self.smtp.username:
                server.login(self.smtp.username, self.smtp.password or "")
        finally:
            server.quit()

    async def verify(self) -> tuple[bool, str]:
        """Check that the configured transport accepts our credentials"""
        if self.smtp:
            try:
                await asyncio.to_thread(self._check_smtp_login)
                return True, "Email configuration is valid"
            except (smtplib.SMTPException, OSError) as e:
                return False, f"Email configuration error: {str(e)}"

        if not self.resend_api_key:
            return False, "Email configuration error: email service not configured"

        try:
            await asyncio.to_thread(resend.Domains.list)
            return True, "Email configuration is valid"
        except Exception as e:
            return False, f"Email configuration error: {str(e)}"
