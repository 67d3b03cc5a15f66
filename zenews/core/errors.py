"""
Error Taxonomy
==============

Typed failures raised by services and mapped to HTTP responses by
register_error_handlers(). Every message is meant to be shown to the
user as-is.
"""

import logging

from flask import jsonify

logger = logging.getLogger(__name__)


class ZeNewsError(Exception):
    """Base class for all failures the API reports to callers"""
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'error': self.message}


class ValidationError(ZeNewsError):
    """Bad input shape, size or type. User-correctable, never retried."""
    status_code = 400


class FileTooLargeError(ValidationError):
    pass


class UnsupportedFileTypeError(ValidationError):
    pass


class ConflictError(ValidationError):
    status_code = 409


class AuthError(ZeNewsError):
    status_code = 401


class NotAuthenticatedError(AuthError):
    status_code = 401

    def __init__(self, message='Authentication required'):
        super().__init__(message)


class InsufficientRoleError(AuthError):
    status_code = 403

    def __init__(self, message='Admin or editor role required'):
        super().__init__(message)


class NotFoundError(ZeNewsError):
    status_code = 404


class StoreError(ZeNewsError):
    status_code = 500


class TransientStoreError(StoreError):
    """Network or storage hiccup; the operation may succeed if retried"""
    status_code = 503


class PermanentStoreError(StoreError):
    """Permission or configuration problem; retrying cannot help"""
    status_code = 500


def register_error_handlers(app):
    """Map typed failures to JSON {error} responses"""

    @app.errorhandler(ZeNewsError)
    def handle_zenews_error(error):
        if error.status_code >= 500:
            logger.error(f"{type(error).__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(413)
    def handle_request_too_large(error):
        return jsonify({'error': 'Request body exceeds the maximum upload size'}), 413

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        # Let Flask render its own HTTP errors (404 for unknown routes, 405...)
        from werkzeug.exceptions import HTTPException
        if isinstance(error, HTTPException):
            return jsonify({'error': error.description}), error.code

        from .logging_service import LoggingService
        logger.exception("Unhandled error")
        LoggingService.log_error_with_traceback('app', error)
        return jsonify({'error': 'Internal server error'}), 500
