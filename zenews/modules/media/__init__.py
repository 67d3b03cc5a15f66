"""
Media Module
============

File uploads for articles, course videos and course materials.

Provides:
- Type and size validation before any storage call
- MediaUploader: bounded retry with exponential backoff over a storage backend
- /api/upload-media, /api/upload-video and /api/upload-document endpoints
"""

from flask import Blueprint

media_bp = Blueprint('media', __name__, url_prefix='/api')

from .uploader import MediaUploader, UploadResult, UploadState  # noqa: E402
from .validation import validate_upload  # noqa: E402
from . import routes  # noqa: E402,F401

__all__ = ['media_bp', 'MediaUploader', 'UploadResult', 'UploadState', 'validate_upload']
