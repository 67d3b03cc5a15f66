from flask import current_app, jsonify, request

from . import auth_bp
from .guard import current_profile, is_privileged, login_required


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    """Current profile with its privilege flag"""
    profile = current_profile()
    return jsonify({**profile, 'is_admin': is_privileged(profile['role'])})


@auth_bp.route('/profile', methods=['PATCH'])
@login_required
def update_profile():
    """Update own full_name / avatar_url"""
    data = request.get_json(silent=True) or {}
    profiles = current_app.extensions['zenews'].profiles
    updated = profiles.update(
        current_profile()['id'],
        full_name=data.get('full_name'),
        avatar_url=data.get('avatar_url'),
    )
    return jsonify(updated)
