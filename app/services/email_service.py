"""Service for sending account emails."""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.config import Settings
from app.utils.error_handler import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailService:
    """Sends password reset and verification emails via SMTP."""

    def __init__(self, settings: Settings):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_username = settings.SMTP_USERNAME
        self.smtp_password = settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.app_url = settings.APP_URL.rstrip("/")
        self.enabled = settings.smtp_enabled

    def reset_url(self, token: str) -> str:
        return f"{self.app_url}/reset-password?token={token}"

    def verification_url(self, token: str) -> str:
        return f"{self.app_url}/auth/verify-email/{token}"

    def send_password_reset_email(self, to_email: str, name: str, token: str) -> None:
        """
        Send the password reset link.

        Raises:
            EmailDeliveryError: if the SMTP transport fails
        """
        reset_url = self.reset_url(token)
        subject = "Password Reset Request - CareXchange"
        html_body = f"""
        <h1>Password Reset Request</h1>
        <p>Hello {html.escape(name or "")},</p>
        <p>You requested to reset your password. Please click the link below to reset your password:</p>
        <a href="{reset_url}" style="display: inline-block; padding: 12px 24px; background-color: #4F46E5;
           color: white; text-decoration: none; border-radius: 4px; margin: 16px 0;">Reset Password</a>
        <p>This link will expire in 1 hour.</p>
        <p>If you did not request this, please ignore this email and your password will remain unchanged.</p>
        <p>Best regards,<br>CareXchange Team</p>
        """
        text_body = (
            f"Hello {name},\n\n"
            f"Reset your CareXchange password here:\n{reset_url}\n\n"
            "This link will expire in 1 hour.\n"
            "If you did not request this, please ignore this email."
        )
        self._send_email(to_email, subject, html_body, text_body)

    def send_verification_email(self, to_email: str, token: str) -> None:
        """Send the email verification link."""
        verification_url = self.verification_url(token)
        text_body = (
            "Please verify your email address by clicking the link below:\n\n"
            f"{verification_url}\n\n"
            "If you did not create an account, please ignore this email."
        )
        html_body = text_body.replace("\n", "<br>")
        self._send_email(to_email, "Email Verification", html_body, text_body)

    def _send_email(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        if not self.enabled:
            # No transport configured: log instead of sending (development)
            logger.info(f"[EMAIL] SMTP disabled, would send '{subject}' to {to_email}")
            return

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.from_name} <{self.from_email}>"
            msg["To"] = to_email

            msg.attach(MIMEText(text_body, "plain", "utf-8"))
            msg.attach(MIMEText(html_body, "html", "utf-8"))

            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                if self.use_tls:
                    server.starttls()
                if self.smtp_username:
                    server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            logger.info(f"Email '{subject}' sent to {to_email}")

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise EmailDeliveryError() from e
