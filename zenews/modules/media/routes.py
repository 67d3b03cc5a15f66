"""
Media Upload Routes
===================

All upload endpoints require an admin or editor session. Validation and
storage errors surface as JSON {error} through the app error handlers.
"""

import logging
import os

from flask import current_app, jsonify, request

from . import media_bp
from ..auth.guard import privileged_required
from ...core.errors import ValidationError
from ...core.logging_service import LoggingService

logger = logging.getLogger(__name__)


def _uploaded_file(*fields):
    """First non-empty file among the given form fields"""
    for field in fields:
        file = request.files.get(field)
        if file and file.filename:
            return file
    raise ValidationError('No file provided')


def _stream_size(stream):
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _upload(file, kind):
    uploader = current_app.extensions['zenews'].uploader
    result = uploader.upload(
        file.stream,
        filename=file.filename,
        content_type=file.mimetype,
        size=_stream_size(file.stream),
        kind=kind,
    )
    LoggingService.log_user_action('media', f"uploaded {result.category}", details={
        'key': result.key,
        'size': result.size,
        'attempts': result.attempts,
    })
    return result


@media_bp.route('/upload-media', methods=['POST'])
@privileged_required
def upload_media():
    """Upload an image or video for an article"""
    result = _upload(_uploaded_file('file'), 'media')
    return jsonify(result.to_dict())


@media_bp.route('/upload-video', methods=['POST'])
@privileged_required
def upload_video():
    """Upload a course video (field 'file', or 'video' from older forms)"""
    result = _upload(_uploaded_file('file', 'video'), 'video')
    data = result.to_dict()
    data.pop('category')
    return jsonify(data)


@media_bp.route('/upload-document', methods=['POST'])
@privileged_required
def upload_document():
    """Upload a course material document"""
    result = _upload(_uploaded_file('file'), 'document')
    data = result.to_dict()
    data.pop('category')
    return jsonify(data)
