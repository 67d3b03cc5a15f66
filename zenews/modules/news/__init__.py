"""
News Module
===========

Article management for ZE News.

Provides:
- Public article feeds (latest, by category, featured, search, by slug)
- Admin/editor article CRUD with the draft/publish workflow
- Duplicate (repost), archive and publish toggle actions
- Category structure
"""

from flask import Blueprint

news_bp = Blueprint('news', __name__, url_prefix='/api/articles')
categories_bp = Blueprint('categories', __name__, url_prefix='/api/categories')

from .database import ArticleRepository  # noqa: E402
from .service import ArticleService, generate_excerpt, generate_slug  # noqa: E402
from . import routes  # noqa: E402,F401

__all__ = [
    'news_bp', 'categories_bp', 'ArticleRepository', 'ArticleService',
    'generate_excerpt', 'generate_slug',
]
