"""
ZE News Auth Module

Provides:
- Profiles with roles (admin, editor, user)
- The shared admin/editor guard (edge hook + handler decorator)
- Current-profile API
"""

from flask import Blueprint

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

from .guard import (  # noqa: E402
    admin_edge_guard,
    check_privileged,
    current_auth,
    current_profile,
    is_privileged,
    login_required,
    privileged_required,
    resolve_auth,
)
from .database import ProfileRepository  # noqa: E402

auth_bp.before_app_request(admin_edge_guard)

from . import routes  # noqa: E402,F401

__all__ = [
    'auth_bp', 'ProfileRepository', 'admin_edge_guard', 'check_privileged',
    'current_auth', 'current_profile', 'is_privileged', 'login_required',
    'privileged_required', 'resolve_auth',
]
