"""
Email Service Module
====================

Outgoing email via SMTP (e.g. Gmail) or the Resend API.
Provider is selected via EMAIL_PROVIDER config ('smtp' or 'resend').
"""

import html
import logging
import re
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

import resend

from ...core.logging_service import LoggingService

# Rejects consecutive dots, leading/trailing dots in local part
_VALID_EMAIL = re.compile(r'^[a-zA-Z0-9_%+-]+(\.[a-zA-Z0-9_%+-]+)*@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$')

logger = logging.getLogger(__name__)


def is_valid_email(address):
    return bool(address) and bool(_VALID_EMAIL.match(address))


def text_to_html(text):
    """Escape plain text and keep its line breaks"""
    return html.escape(text).replace('\n', '<br>')


class EmailService:
    """
    Configurable email service supporting SMTP and Resend.

    Configuration (set in Flask app.config):
        EMAIL_PROVIDER: 'smtp' (default) or 'resend'
        EMAIL_ADDRESS: Sender address (also the SMTP login)
        EMAIL_PASSWORD: SMTP password/app password (required for 'smtp')
        EMAIL_HOST: SMTP server host (default: 'smtp.gmail.com')
        EMAIL_PORT: SMTP server port (default: 587)
        EMAIL_TIMEOUT: SMTP socket timeout in seconds (default: 30)
        RESEND_API_KEY: Your Resend API key (required for 'resend')
    """

    def __init__(self, app=None):
        self.provider = 'smtp'
        self.sender_email = None
        self.smtp_host = 'smtp.gmail.com'
        self.smtp_port = 587
        self.smtp_password = None
        self.timeout = 30
        self.api_key = None

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize email service with Flask app configuration"""
        self.provider = (app.config.get('EMAIL_PROVIDER') or 'smtp').lower()
        self.sender_email = app.config.get('EMAIL_ADDRESS')
        self.timeout = float(app.config.get('EMAIL_TIMEOUT', 30))
        logger.info(f"Initializing email service (provider: {self.provider})")

        if self.provider == 'resend':
            self._init_resend(app)
        else:
            self._init_smtp(app)

    def _init_resend(self, app):
        """Initialize Resend provider"""
        self.api_key = app.config.get('RESEND_API_KEY')
        if not self.api_key:
            logger.warning("RESEND_API_KEY not configured - email sending disabled")
            return
        resend.api_key = self.api_key

    def _init_smtp(self, app):
        """Initialize SMTP provider (e.g. Gmail)"""
        self.smtp_host = app.config.get('EMAIL_HOST', 'smtp.gmail.com')
        self.smtp_port = int(app.config.get('EMAIL_PORT', 587))
        self.smtp_password = app.config.get('EMAIL_PASSWORD')

        if not self.smtp_password or not self.sender_email:
            logger.warning("EMAIL_ADDRESS/EMAIL_PASSWORD not configured - SMTP email sending disabled")
            return
        logger.info(f"SMTP configured: {self.smtp_host}:{self.smtp_port}")

    def is_configured(self):
        if not self.sender_email:
            return False
        if self.provider == 'resend':
            return bool(self.api_key)
        return bool(self.smtp_password)

    def send_email(self, to: List[str], subject: str, html_body: str,
                   text_body: Optional[str] = None) -> bool:
        """
        Send an email to one or more recipients via the configured provider.

        Args:
            to: Recipient address or list of addresses
            subject: Email subject
            html_body: HTML content of the email
            text_body: Plain text content (optional)

        Returns:
            bool: True if at least one email was sent successfully, False otherwise
        """
        if isinstance(to, str):
            to = [to]
        if not self.is_configured():
            logger.error("Email provider not configured")
            return False

        recipients = []
        for addr in to or []:
            if is_valid_email(addr):
                recipients.append(addr)
            else:
                logger.warning(f"Skipping invalid email address: {addr}")
        if not recipients:
            logger.error("No valid recipients")
            return False

        sent_count = 0
        for recipient in recipients:
            try:
                if self.provider == 'resend':
                    success = self._send_via_resend(recipient, subject, html_body, text_body)
                else:
                    success = self._send_via_smtp(recipient, subject, html_body, text_body)
            except Exception as e:
                logger.error(f"Error sending to {recipient}: {e}")
                success = False

            if success:
                sent_count += 1
                LoggingService.info('email', f"Sent '{subject}'", details={'to': recipient})
            else:
                LoggingService.warning('email', f"Failed to send '{subject}'", details={'to': recipient})

        return sent_count > 0

    def _send_via_resend(self, recipient, subject, html_body, text_body=None):
        """Send a single email via Resend API"""
        params = {
            'from': self.sender_email,
            'to': recipient,
            'subject': subject,
            'html': html_body,
        }
        if text_body:
            params['text'] = text_body

        r = resend.Emails.send(params)
        if r and r.get('id'):
            logger.debug(f"Email sent to {recipient}, ID: {r['id']}")
            return True
        logger.error(f"Resend error for {recipient}: {r}")
        return False

    def _send_via_smtp(self, recipient, subject, html_body, text_body=None):
        """Send a single email via SMTP with STARTTLS"""
        msg = MIMEMultipart('alternative')
        msg['From'] = self.sender_email
        msg['To'] = recipient
        msg['Subject'] = subject

        if text_body:
            msg.attach(MIMEText(text_body, 'plain', 'utf-8'))
        msg.attach(MIMEText(html_body, 'html', 'utf-8'))

        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
            server.starttls()
            server.login(self.sender_email, self.smtp_password)
            server.send_message(msg)

        logger.info(f"SMTP email sent to {recipient}")
        return True
