"""
WealthDesk - Email Service

Handles transactional email sending over SMTP.
When no relay is configured every send reports failure so callers can fall back
(for example by returning generated credentials to the operator).
"""

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

from app.config import settings
from app.utils.error_handling import DataUnavailable
from app.utils.timeouts import with_timeout

logger = logging.getLogger(__name__)


class EmailProvider:
    """Email provider types."""
    SMTP = "smtp"
    DISABLED = "disabled"


@dataclass
class EmailMessage:
    """Email message data structure."""
    to: List[str]
    subject: str
    body_text: str
    body_html: Optional[str] = None


class EmailService:
    """Service for sending transactional emails."""

    def __init__(self):
        self.from_email = settings.email_from
        self.from_name = settings.mail_from_name

        # SMTP settings
        self.smtp_host = settings.mail_server
        self.smtp_port = settings.mail_port
        self.smtp_username = settings.mail_username
        self.smtp_password = settings.mail_password
        self.smtp_use_tls = settings.mail_use_tls

    def _determine_provider(self) -> str:
        """Determine which email provider to use based on configuration."""
        if settings.mail_configured:
            return EmailProvider.SMTP
        return EmailProvider.DISABLED

    async def send_email(self, message: EmailMessage) -> bool:
        """
        Send an email using the configured provider.

        Returns True only when the relay accepted the message.
        """
        provider = self._determine_provider()
        if provider == EmailProvider.DISABLED:
            logger.warning(f"Email service not configured; not sending '{message.subject}'")
            return False

        try:
            await with_timeout(
                asyncio.to_thread(self._send_via_smtp, message),
                "SMTP send",
            )
        except DataUnavailable:
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP send failed: {e}")
            return False

        logger.info(f"Email sent via SMTP: '{message.subject}'")
        return True

    def _send_via_smtp(self, message: EmailMessage) -> None:
        """Blocking SMTP delivery; runs in a worker thread."""
        msg = MIMEMultipart('alternative')
        msg['Subject'] = message.subject
        msg['From'] = f"{self.from_name} <{self.from_email}>"
        msg['To'] = ', '.join(message.to)

        msg.attach(MIMEText(message.body_text, 'plain'))
        if message.body_html:
            msg.attach(MIMEText(message.body_html, 'html'))

        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=settings.io_timeout_seconds) as server:
            if self.smtp_use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.smtp_username and self.smtp_password:
                server.login(self.smtp_username, self.smtp_password)
            server.sendmail(self.from_email, message.to, msg.as_string())

    # ===========================================
    # TRANSACTIONAL EMAIL TEMPLATES
    # ===========================================

    async def send_welcome_email(
        self,
        to_email: str,
        name: str,
        temporary_password: str,
    ) -> bool:
        """Send login details to a newly provisioned user."""
        subject = "Welcome - Your Account Has Been Created"

        body_html = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2>Welcome {name}!</h2>
                <p>Your account has been successfully created.</p>
                <h3>Login Details:</h3>
                <ul>
                    <li><strong>Email:</strong> {to_email}</li>
                    <li><strong>Temporary Password:</strong> <code>{temporary_password}</code></li>
                </ul>
                <p><strong>Important:</strong> Please log in and change your password immediately.</p>
            </div>
        </body>
        </html>
        """

        body_text = f"""
        Dear {name},

        Your account has been successfully created!

        Login Details:
        Email: {to_email}
        Temporary Password: {temporary_password}

        Please log in and change your password immediately.
        """

        return await self.send_email(EmailMessage(
            to=[to_email],
            subject=subject,
            body_text=body_text,
            body_html=body_html,
        ))

    async def send_password_reset(
        self,
        to_email: str,
        name: str,
        reset_url: str,
    ) -> bool:
        """Send password reset email."""
        subject = "Password Reset Request"
        minutes = settings.reset_token_expire_minutes

        body_html = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2>Password Reset Request</h2>
                <p>Dear {name},</p>
                <p>You requested to reset your password. Click the button below to set a new password:</p>
                <p>
                    <a href="{reset_url}"
                       style="display: inline-block; background-color: #007bff; color: white; padding: 12px 24px; text-decoration: none; border-radius: 4px;">
                        Reset Password
                    </a>
                </p>
                <p>This link will expire in {minutes} minutes.</p>
                <p>If you didn't request this, you can safely ignore this email.</p>
            </div>
        </body>
        </html>
        """

        body_text = f"""
        Dear {name},

        You requested to reset your password. Visit the link below to set a new password:

        {reset_url}

        This link will expire in {minutes} minutes.

        If you didn't request this, you can safely ignore this email.
        """

        return await self.send_email(EmailMessage(
            to=[to_email],
            subject=subject,
            body_text=body_text,
            body_html=body_html,
        ))

    async def send_investment_receipt(
        self,
        to_email: str,
        name: str,
        amount: Decimal,
        remark: Optional[str],
        transaction_no: str,
    ) -> bool:
        """Send a provisional receipt for an investment request."""
        subject = f"Investment Receipt - {transaction_no}"
        receipt_date = date.today().strftime("%d/%m/%Y")
        formatted_amount = f"₹{amount:,.2f}"

        body_html = f"""
        <div style="max-width: 600px; margin: 0 auto; font-family: Arial, sans-serif;">
            <h2 style="color: #2563eb;">Investment Receipt</h2>
            <p>Dear {name},</p>
            <p>Thank you for your investment! Here are the details:</p>
            <table style="width: 100%; border-collapse: collapse;">
                <tr><td><strong>Transaction Number:</strong></td><td>{transaction_no}</td></tr>
                <tr><td><strong>Amount:</strong></td><td>{formatted_amount}</td></tr>
                <tr><td><strong>Remark:</strong></td><td>{remark or ''}</td></tr>
                <tr><td><strong>Date:</strong></td><td>{receipt_date}</td></tr>
            </table>
            <p><em>This is a temporary receipt. Your official receipt will be processed shortly.</em></p>
        </div>
        """

        body_text = f"""
        Dear {name},

        Thank you for your investment! Here are the details:

        Transaction Number: {transaction_no}
        Amount: {formatted_amount}
        Remark: {remark or ''}
        Date: {receipt_date}

        This is a temporary receipt. Your official receipt will be processed shortly.
        """

        return await self.send_email(EmailMessage(
            to=[to_email],
            subject=subject,
            body_text=body_text,
            body_html=body_html,
        ))
