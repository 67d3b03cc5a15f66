"""
Ops Routes
==========

Health checks for the database, object storage and local disk.
"""

import shutil
from datetime import datetime, timezone

from flask import current_app, jsonify

from . import ops_health_bp
from ...core.database import Database

DISK_WARNING_PERCENT = 85
DISK_CRITICAL_PERCENT = 95


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------

def _check_database():
    try:
        with Database.connection(current_app.config['NEWS_DB']) as conn:
            conn.execute('SELECT 1').fetchone()
        return {'ok': True}
    except Exception as e:
        return {'ok': False, 'error': str(e)}


def _check_storage():
    storage = current_app.extensions['zenews'].storage
    try:
        return {'ok': bool(storage.bucket_exists()), 'backend': storage.name}
    except Exception as e:
        return {'ok': False, 'backend': storage.name, 'error': str(e)}


def _get_disk_usage():
    """Get disk usage for the partition holding the databases."""
    try:
        usage = shutil.disk_usage(current_app.config['DB_DIR'])
        return {
            'total_gb': round(usage.total / (1024 ** 3), 1),
            'free_gb': round(usage.free / (1024 ** 3), 1),
            'percent': round((usage.used / usage.total) * 100, 1),
        }
    except Exception as e:
        return {'total_gb': 0, 'free_gb': 0, 'percent': 0, 'error': str(e)}


def _compute_status(database, storage, disk):
    """Overall status plus a list of human-readable issues."""
    issues = []
    status = 'ok'

    if not storage['ok']:
        issues.append(f"Storage unavailable: {storage.get('error', 'bucket missing')}")
        status = 'warning'
    if disk['percent'] >= DISK_WARNING_PERCENT:
        issues.append(f"Disk {disk['percent']}% full")
        status = 'warning'

    if not database['ok']:
        issues.append(f"Database unavailable: {database['error']}")
        status = 'critical'
    if disk['percent'] >= DISK_CRITICAL_PERCENT:
        status = 'critical'

    return status, issues


def _build_health_response():
    database = _check_database()
    storage = _check_storage()
    disk = _get_disk_usage()
    status, issues = _compute_status(database, storage, disk)
    return {
        'status': status,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'checks': {
            'database': database,
            'storage': storage,
            'disk': disk,
        },
        'issues': issues,
    }, status


@ops_health_bp.route('/')
@ops_health_bp.route('')
def health_check():
    """Public health endpoint for uptime monitors."""
    data, status = _build_health_response()
    code = 503 if status == 'critical' else 200
    return jsonify(data), code
