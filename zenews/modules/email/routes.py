"""Send a one-off email from the admin dashboard."""

import logging

from flask import current_app, jsonify, request

from . import email_bp
from .email_service import is_valid_email, text_to_html
from ..auth.guard import privileged_required
from ...core.errors import ValidationError, ZeNewsError
from ...core.logging_service import LoggingService

logger = logging.getLogger(__name__)


@email_bp.route('/send-email', methods=['POST'])
@privileged_required
def send_email():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    fields = {key: data.get(key) or '' for key in ('to', 'subject', 'text')}
    if not all(isinstance(value, str) for value in fields.values()):
        raise ValidationError('to, subject and text must be strings')
    to = fields['to'].strip()
    subject = fields['subject'].strip()
    text = fields['text']

    if not to or not subject or not text.strip():
        raise ValidationError('Missing required fields')
    if not is_valid_email(to):
        raise ValidationError('Please enter a valid email address')

    email_service = current_app.extensions['zenews'].email
    if not email_service.is_configured():
        logger.info(f"Email not configured, logging message to {to}: {subject}")
        LoggingService.info('email', 'Email logged (not configured)', details={
            'to': to, 'subject': subject, 'text': text,
        })
        return jsonify({'success': True, 'message': 'Email logged (email configuration pending)'})

    if not email_service.send_email([to], subject, text_to_html(text), text):
        raise ZeNewsError('Failed to send email', status_code=502)

    return jsonify({'success': True, 'message': 'Email sent successfully'})
