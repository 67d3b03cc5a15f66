"""
Dashboard Module
================

Admin entry points for ZE News:
- Sign in / sign up / sign out (session based)
- Dashboard summary with article counts
- Full article listing for editors (all statuses)

Every route except sign in, sign up and sign out sits behind the
admin edge guard.
"""

from flask import Blueprint

# Blueprint name is 'admin' so url_for('admin.signin') reads naturally
dashboard_bp = Blueprint(
    'admin',
    __name__,
    url_prefix='/admin',
)

from . import routes  # noqa: E402,F401

__all__ = ['dashboard_bp']
