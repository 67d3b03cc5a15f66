"""
News Routes
===========

Public reads are open; every write requires an admin or editor session.
Errors raised by ArticleService are turned into JSON by the app's error
handlers.
"""

import logging

from flask import current_app, jsonify, request

from . import categories_bp, news_bp
from .categories import CATEGORY_STRUCTURE, get_all_category_options
from ..auth.guard import check_privileged, current_auth, current_profile, is_privileged, privileged_required
from ...core.errors import NotFoundError, ValidationError
from ...core.logging_service import LoggingService

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    'Cache-Control': 'no-store, no-cache, must-revalidate, proxy-revalidate',
    'Pragma': 'no-cache',
    'Expires': '0',
}


def _service():
    return current_app.extensions['zenews'].articles


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _int_arg(name, default):
    value = request.args.get(name)
    if value in (None, ''):
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"'{name}' must be an integer")


# ===== Public Reads =====

@news_bp.route('', methods=['GET'])
def list_articles():
    """Published articles, optionally by category / featured / search query.

    Other statuses (?status=draft) are only listed for admins and editors.
    """
    service = _service()
    status = request.args.get('status') or 'published'
    if status != 'published':
        check_privileged(current_auth())

    category = request.args.get('category')
    query = request.args.get('q')
    limit = _int_arg('limit', 10)

    if query:
        articles = service.search(query)
    elif request.args.get('featured') in ('1', 'true'):
        articles = service.list_featured(limit=limit)
    elif category:
        articles = service.list_by_category(category, status=status)
    elif status == 'published':
        articles = service.list_latest(limit=limit)
    else:
        articles = service.list_by_status(status, limit=limit)

    return jsonify(articles)


@news_bp.route('/latest', methods=['GET'])
def latest_articles():
    """Latest published articles with limit/offset pagination"""
    articles = _service().list_latest(limit=_int_arg('limit', 10), offset=_int_arg('offset', 0))
    return jsonify(articles)


@news_bp.route('/featured', methods=['GET'])
def featured_articles():
    return jsonify(_service().list_featured(limit=_int_arg('limit', 5)))


@news_bp.route('/search', methods=['GET'])
def search_articles():
    return jsonify(_service().search(request.args.get('q', '')))


@news_bp.route('/slug/<slug>', methods=['GET'])
def get_article_by_slug(slug):
    """Public article page data - only published articles"""
    article = _service().get_article_by_slug(slug)
    if not article:
        raise NotFoundError('Article not found')
    return jsonify(article)


@news_bp.route('/<article_id>', methods=['GET'])
def get_article(article_id):
    """Single article; unpublished ones are visible to admins and editors only"""
    article = _service().get_article(article_id)
    if not article:
        raise NotFoundError('Article not found')
    if article['status'] != 'published' and not is_privileged(current_auth().role):
        raise NotFoundError('Article not found')
    return jsonify(article)


# ===== Admin / Editor Writes =====

@news_bp.route('', methods=['POST'])
@privileged_required
def create_article():
    """Create new article"""
    data = _json_body()
    article = _service().create_article(data, author=current_profile())
    LoggingService.log_user_action('articles', f"created article {article['id']}",
                                   details={'status': article['status']})
    return jsonify(article), 201


@news_bp.route('/<article_id>', methods=['PUT', 'PATCH'])
@privileged_required
def update_article(article_id):
    """Update article (full or partial)"""
    data = _json_body()
    article = _service().update_article(article_id, data)
    return jsonify(article)


@news_bp.route('/<article_id>', methods=['DELETE'])
@privileged_required
def delete_article(article_id):
    """Permanently delete an article"""
    _service().delete_article(article_id)
    LoggingService.log_user_action('articles', f"deleted article {article_id}")
    response = jsonify({'success': True, 'message': 'Article deleted successfully'})
    response.headers.update(NO_CACHE_HEADERS)
    return response


@news_bp.route('', methods=['DELETE'])
@privileged_required
def delete_article_by_query():
    """Delete via ?id= (older admin dashboard calls)"""
    article_id = request.args.get('id')
    if not article_id:
        raise ValidationError('Article ID is required for deletion')
    _service().delete_article(article_id)
    LoggingService.log_user_action('articles', f"deleted article {article_id}")
    return jsonify({'success': True})


@news_bp.route('/<article_id>/duplicate', methods=['POST'])
@privileged_required
def duplicate_article(article_id):
    """Copy an article as a new draft"""
    return jsonify(_service().duplicate_article(article_id)), 201


@news_bp.route('/<article_id>/archive', methods=['POST'])
@privileged_required
def archive_article(article_id):
    """Soft delete: move to archived"""
    article = _service().archive_article(article_id)
    LoggingService.log_user_action('articles', f"archived article {article_id}")
    return jsonify(article)


@news_bp.route('/<article_id>/toggle-status', methods=['POST'])
@privileged_required
def toggle_status(article_id):
    """Toggle article status between draft and published"""
    article = _service().toggle_status(article_id)
    return jsonify({'success': True, 'status': article['status'], 'article': article})


# ===== Categories =====

@categories_bp.route('', methods=['GET'])
def list_categories():
    return jsonify({
        'structure': CATEGORY_STRUCTURE,
        'options': get_all_category_options(),
    })
