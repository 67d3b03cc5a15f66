"""
Persistent logging service for ZE News.
Stores leveled log entries with request context in the app_logs table,
falling back to the python logger when the database is unavailable.
"""

import json
import logging
from datetime import datetime

from flask import current_app, has_app_context, has_request_context, request, session

from .database import Database

_fallback = logging.getLogger('zenews.app_logs')


class LoggingService:
    """Centralized logging service for application-wide logging"""

    _ready_paths = set()

    @staticmethod
    def _log_db():
        if not has_app_context():
            return None
        return current_app.config.get('LOG_DB')

    @staticmethod
    def _ensure_logs_table(path):
        """Ensure the app_logs table exists"""
        if path in LoggingService._ready_paths:
            return
        with Database.connection(path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS app_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    level TEXT NOT NULL,
                    source TEXT NOT NULL,
                    message TEXT NOT NULL,
                    details TEXT,
                    ip_address TEXT,
                    user_agent TEXT,
                    request_path TEXT,
                    user_id TEXT
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_logs_timestamp
                ON app_logs(timestamp DESC)
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_logs_level
                ON app_logs(level)
            """)
        LoggingService._ready_paths.add(path)

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None, None

        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
        if ip_address and ',' in ip_address:
            ip_address = ip_address.split(',')[0].strip()

        user_agent = request.headers.get('User-Agent', '')
        return ip_address, user_agent, request.path, session.get('user_id')

    @staticmethod
    def log(level, source, message, details=None, user_id=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (articles, media, auth, etc.)
            message (str): Main log message
            details (str/dict): Additional details (will be JSON-encoded if dict)
            user_id (str): Optional user identifier, defaults to the session's
        """
        level = level.upper()
        _fallback.log(getattr(logging, level, logging.INFO), f"[{source}] {message}")

        path = LoggingService._log_db()
        if not path:
            return

        try:
            LoggingService._ensure_logs_table(path)
            ip_address, user_agent, request_path, session_user = LoggingService._get_request_context()

            if isinstance(details, dict):
                details = json.dumps(details, indent=2, default=str)

            with Database.connection(path) as conn:
                conn.execute("""
                    INSERT INTO app_logs
                    (timestamp, level, source, message, details, ip_address, user_agent, request_path, user_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    datetime.now().isoformat(), level, source, message, details,
                    ip_address, user_agent, request_path, user_id or session_user
                ))
        except Exception as e:
            _fallback.warning(f"Logging service error: {e}")

    @staticmethod
    def info(source, message, details=None, user_id=None):
        LoggingService.log('INFO', source, message, details, user_id)

    @staticmethod
    def warning(source, message, details=None, user_id=None):
        LoggingService.log('WARNING', source, message, details, user_id)

    @staticmethod
    def error(source, message, details=None, user_id=None):
        LoggingService.log('ERROR', source, message, details, user_id)

    @staticmethod
    def log_user_action(source, action, user_id=None, details=None):
        """Log user actions (sign in, sign up, publish, delete...)"""
        LoggingService.info(source, f"User action: {action}", details, user_id)

    @staticmethod
    def log_error_with_traceback(source, error, details=None):
        """Log error with full traceback"""
        import traceback
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc()
        }
        if details:
            error_details['additional_details'] = details

        LoggingService.error(source, f"Exception occurred: {type(error).__name__}", error_details)

    @staticmethod
    def log_security_event(message, details=None):
        """Log security-related events"""
        LoggingService.warning('security', message, details)

    @staticmethod
    def recent(limit=50, level=None):
        """Most recent log entries, newest first"""
        path = LoggingService._log_db()
        if not path:
            return []
        LoggingService._ensure_logs_table(path)
        with Database.connection(path) as conn:
            if level:
                rows = conn.execute(
                    'SELECT * FROM app_logs WHERE level = ? ORDER BY id DESC LIMIT ?',
                    (level.upper(), limit)
                ).fetchall()
            else:
                rows = conn.execute(
                    'SELECT * FROM app_logs ORDER BY id DESC LIMIT ?', (limit,)
                ).fetchall()
        return [dict(row) for row in rows]

