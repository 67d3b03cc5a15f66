"""
Admin Dashboard Routes
======================

Authentication and dashboard endpoints for admin and editor users.
"""

import logging

from flask import current_app, jsonify, request, session

from . import dashboard_bp
from ..auth.guard import current_profile
from ...core.errors import ValidationError
from ...core.logging_service import LoggingService

logger = logging.getLogger(__name__)


def validate_password_strength(password):
    """Validate password meets security requirements"""
    if len(password) < 8:
        return False

    has_upper = any(c.isupper() for c in password)
    has_lower = any(c.islower() for c in password)
    has_digit = any(c.isdigit() for c in password)

    return has_upper and has_lower and has_digit


def _credentials():
    """Read email/password from a JSON body or a form post"""
    data = request.get_json(silent=True) or request.form
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    return data, email, password


def _zenews():
    return current_app.extensions['zenews']


@dashboard_bp.route('/signin', methods=['GET', 'POST'])
def signin():
    """Admin sign in route"""
    if request.method == 'GET':
        profile = current_profile()
        return jsonify({
            'authenticated': profile is not None,
            'profile': profile,
            'next': request.args.get('next', '/admin/'),
        })

    _, email, password = _credentials()
    if not email or not password:
        raise ValidationError('Please enter both email and password')

    profile = _zenews().profiles.verify_credentials(email, password)
    if not profile:
        LoggingService.log_security_event('Failed sign in', {'email': email})
        return jsonify({'error': 'Invalid email or password'}), 401

    session.clear()
    session['user_id'] = profile['id']
    LoggingService.log_user_action('auth', 'sign in', user_id=profile['id'])

    next_page = request.args.get('next')
    # Local paths only; '//host' is protocol-relative
    if not next_page or not next_page.startswith('/') or next_page.startswith(('//', '/\\')):
        next_page = '/admin/'
    return jsonify({'success': True, 'profile': profile, 'redirect': next_page})


@dashboard_bp.route('/signup', methods=['POST'])
def signup():
    """Create an account. The very first account becomes the admin."""
    data, email, password = _credentials()
    if not email or not password:
        raise ValidationError('Email and password are required')
    if '@' not in email:
        raise ValidationError('Please enter a valid email address')
    if not validate_password_strength(password):
        raise ValidationError(
            'Password must be at least 8 characters with upper and lower case letters and a digit'
        )

    profiles = _zenews().profiles
    role = 'admin' if profiles.count() == 0 else current_app.config.get('SIGNUP_DEFAULT_ROLE', 'user')
    profile = profiles.create(email, password, full_name=data.get('full_name'), role=role)

    session.clear()
    session['user_id'] = profile['id']
    LoggingService.log_user_action('auth', 'sign up', user_id=profile['id'], details={'role': role})
    return jsonify({'success': True, 'profile': profile}), 201


@dashboard_bp.route('/signout', methods=['POST'])
def signout():
    """Admin sign out route"""
    user_id = session.pop('user_id', None)
    session.clear()
    if user_id:
        LoggingService.log_user_action('auth', 'sign out', user_id=user_id)
    return jsonify({'success': True})


@dashboard_bp.route('/')
@dashboard_bp.route('/dashboard')
def dashboard():
    """Dashboard summary: who is signed in and how many articles per status"""
    return jsonify({
        'profile': current_profile(),
        'articles': _zenews().articles.stats(),
    })


@dashboard_bp.route('/articles')
def articles():
    """Every article regardless of status, newest first"""
    return jsonify(_zenews().articles.list_for_admin())


@dashboard_bp.route('/logs')
def logs():
    """Recent persistent log entries"""
    limit = request.args.get('limit', 50, type=int)
    return jsonify(LoggingService.recent(limit=min(max(limit, 1), 500), level=request.args.get('level')))
