"""
Email Module
============

Provides email sending over SMTP or the Resend API, and the admin
/api/send-email endpoint.
"""

from flask import Blueprint

email_bp = Blueprint('email', __name__, url_prefix='/api')

from .email_service import EmailService, is_valid_email, text_to_html  # noqa: E402
from . import routes  # noqa: E402,F401

__all__ = ['email_bp', 'EmailService', 'is_valid_email', 'text_to_html']
