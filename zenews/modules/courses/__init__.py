"""
Courses Module
==============

Video courses: courses contain ordered modules, modules contain videos
and downloadable materials. Reads are public, writes need an admin or
editor session.
"""

from flask import Blueprint

courses_bp = Blueprint('courses', __name__, url_prefix='/api/courses')

from .database import CourseRepository  # noqa: E402
from . import routes  # noqa: E402,F401

__all__ = ['courses_bp', 'CourseRepository']
