"""Fact-check submission endpoint."""

import logging
from datetime import datetime, timezone

from flask import current_app, jsonify, request

from . import fact_check_bp
from ..email import text_to_html
from ...core.errors import ValidationError, ZeNewsError
from ...core.logging_service import LoggingService

logger = logging.getLogger(__name__)


def build_submission_text(title, url, description, media_info, submitted_at):
    return '\n'.join([
        'New Fact Check Submission',
        '',
        f"Title/Claim: {title}",
        f"Source URL: {url or 'Not provided'}",
        f"Description: {description}",
        media_info or 'No media attached',
        '',
        f"Submitted on: {submitted_at:%Y-%m-%d %H:%M UTC}",
    ])


def _submission_body():
    """JSON object or form post"""
    if not request.is_json:
        return request.form
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _text(data, field):
    value = data.get(field)
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value.strip()


@fact_check_bp.route('', methods=['POST'])
def submit_fact_check():
    data = _submission_body()
    title = _text(data, 'title')
    description = _text(data, 'description')
    if not title or not description:
        raise ValidationError('Title and description are required')

    text = build_submission_text(
        title,
        _text(data, 'url'),
        description,
        _text(data, 'media_info') or _text(data, 'mediaInfo'),
        datetime.now(timezone.utc),
    )

    email_service = current_app.extensions['zenews'].email
    if not email_service.is_configured():
        logger.info(f"Fact check submission (email not configured):\n{text}")
        LoggingService.info('fact_check', 'Submission logged (email not configured)',
                            details={'title': title})
        return jsonify({
            'success': True,
            'message': 'Submission logged successfully (email configuration pending)',
        })

    sent = email_service.send_email(
        [current_app.config['FACT_CHECK_EMAIL']],
        f"Fact Check Submission: {title}",
        text_to_html(text),
        text,
    )
    if not sent:
        raise ZeNewsError('Failed to send submission', status_code=502)

    LoggingService.info('fact_check', 'Submission sent', details={'title': title})
    return jsonify({'success': True, 'message': 'Fact check submission sent successfully'})
