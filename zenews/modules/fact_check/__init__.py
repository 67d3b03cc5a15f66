"""
Fact Check Module
=================

Public submission form for readers who want a claim checked. Submissions
are emailed to the fact-check desk (FACT_CHECK_EMAIL).
"""

from flask import Blueprint

fact_check_bp = Blueprint('fact_check', __name__, url_prefix='/api/fact-check')

from . import routes  # noqa: E402,F401

__all__ = ['fact_check_bp']
