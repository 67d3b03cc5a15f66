"""
Course Routes
=============

GET endpoints are public. Everything that writes requires an admin or
editor session.
"""

import logging

from flask import current_app, jsonify, request

from . import courses_bp
from ..auth.guard import current_profile, privileged_required
from ...core.errors import NotFoundError, StoreError, ValidationError
from ...core.logging_service import LoggingService

logger = logging.getLogger(__name__)


def _courses():
    return current_app.extensions['zenews'].courses


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _require(data, *fields):
    if any(not data.get(f) for f in fields):
        raise ValidationError('Missing required fields')


def _reject_blank(data, *fields):
    """Required columns may be left out of an update but never cleared"""
    for field in fields:
        if field in data and (not isinstance(data[field], str) or not data[field].strip()):
            raise ValidationError(f"{field} cannot be empty")


def _module_or_404(course_id, module_id):
    module = _courses().get_module(course_id, module_id)
    if not module:
        raise NotFoundError('Module not found')
    return module


def _video_or_404(course_id, module_id, video_id):
    _module_or_404(course_id, module_id)
    video = _courses().get_video(video_id)
    if not video or video['module_id'] != module_id:
        raise NotFoundError('Video not found')
    return video


def _remove_stored_file(url):
    """Delete an uploaded file from storage; failures are only logged"""
    storage = current_app.extensions['zenews'].storage
    key = storage.key_from_url(url)
    if not key:
        return
    try:
        storage.delete(key)
    except StoreError as e:
        logger.warning(f"Could not remove stored file {key}: {e.message}")


# ===== Courses =====

@courses_bp.route('', methods=['GET'])
def list_courses():
    return jsonify(_courses().list_courses())


@courses_bp.route('', methods=['POST'])
@privileged_required
def create_course():
    data = _json_body()
    _require(data, 'title', 'description', 'difficulty', 'category')
    profile = current_profile()
    course = _courses().create_course(data, created_by=profile['id'])
    LoggingService.log_user_action('courses', f"created course {course['id']}")
    return jsonify(course), 201


# ===== Modules =====

@courses_bp.route('/<course_id>/modules', methods=['GET'])
def list_modules(course_id):
    return jsonify(_courses().list_modules(course_id))


@courses_bp.route('/<course_id>/modules', methods=['POST'])
@privileged_required
def create_module(course_id):
    data = _json_body()
    _require(data, 'title', 'description')
    if not _courses().get_course(course_id):
        raise NotFoundError('Course not found')
    module = _courses().create_module(course_id, data)
    module['videos'] = []
    module['materials'] = []
    return jsonify(module), 201


@courses_bp.route('/<course_id>/modules/<module_id>', methods=['PUT'])
@privileged_required
def update_module(course_id, module_id):
    data = _json_body()
    _reject_blank(data, 'title')
    _module_or_404(course_id, module_id)
    return jsonify(_courses().update_module(module_id, data))


@courses_bp.route('/<course_id>/modules/<module_id>', methods=['DELETE'])
@privileged_required
def delete_module(course_id, module_id):
    """Delete a module with its videos and materials"""
    _module_or_404(course_id, module_id)
    _courses().delete_module(module_id)
    LoggingService.log_user_action('courses', f"deleted module {module_id}")
    return jsonify({'message': 'Module deleted successfully'})


# ===== Videos =====

@courses_bp.route('/<course_id>/modules/<module_id>/videos', methods=['GET'])
def list_videos(course_id, module_id):
    _module_or_404(course_id, module_id)
    return jsonify(_courses().list_videos(module_id))


@courses_bp.route('/<course_id>/modules/<module_id>/videos', methods=['POST'])
@privileged_required
def create_video(course_id, module_id):
    data = _json_body()
    _require(data, 'title', 'video_url')
    _module_or_404(course_id, module_id)
    return jsonify(_courses().create_video(module_id, data)), 201


@courses_bp.route('/<course_id>/modules/<module_id>/videos/<video_id>', methods=['PUT'])
@privileged_required
def update_video(course_id, module_id, video_id):
    data = _json_body()
    _reject_blank(data, 'title', 'video_url')
    _video_or_404(course_id, module_id, video_id)
    return jsonify(_courses().update_video(video_id, data))


@courses_bp.route('/<course_id>/modules/<module_id>/videos/<video_id>', methods=['DELETE'])
@privileged_required
def delete_video(course_id, module_id, video_id):
    """Delete a video row, then its uploaded file if we stored it"""
    video = _video_or_404(course_id, module_id, video_id)
    _courses().delete_video(video_id)
    _remove_stored_file(video['video_url'])
    LoggingService.log_user_action('courses', f"deleted video {video_id}")
    return jsonify({'success': True, 'message': 'Video deleted successfully'})


# ===== Materials =====

@courses_bp.route('/<course_id>/modules/<module_id>/materials', methods=['GET'])
def list_materials(course_id, module_id):
    _module_or_404(course_id, module_id)
    return jsonify(_courses().list_materials(module_id))


@courses_bp.route('/<course_id>/modules/<module_id>/materials', methods=['POST'])
@privileged_required
def create_material(course_id, module_id):
    data = _json_body()
    _require(data, 'title', 'material_url')
    _module_or_404(course_id, module_id)
    return jsonify(_courses().create_material(module_id, data)), 201


@courses_bp.route('/<course_id>/modules/<module_id>/materials', methods=['DELETE'])
@privileged_required
def delete_material(course_id, module_id):
    material_id = request.args.get('materialId')
    if not material_id:
        raise ValidationError('Material ID required')
    _module_or_404(course_id, module_id)
    material = _courses().get_material(material_id)
    if not material or material['module_id'] != module_id:
        raise NotFoundError('Material not found')
    _courses().delete_material(material_id)
    _remove_stored_file(material['material_url'])
    return jsonify({'success': True})
