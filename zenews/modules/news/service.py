"""
Article Service
===============

Article lifecycle on top of ArticleRepository:
- slug and excerpt generation
- draft / published / archived transitions and the published_at rule
- duplication for reposts
"""

import html
import logging
import re
import time
import uuid

from ...core.database import utcnow_iso
from ...core.errors import ConflictError, NotFoundError, ValidationError

STATUSES = ('draft', 'published', 'archived')
MEDIA_TYPES = ('image', 'video')

EDITABLE_FIELDS = (
    'title', 'content', 'excerpt', 'slug', 'categories', 'media_url',
    'media_type', 'status', 'featured', 'author_id', 'author_name', 'published_at',
)

LATEST_MAX_LIMIT = 100
FEATURED_MAX_LIMIT = 50

TEXT_FIELDS = (
    'title', 'content', 'excerpt', 'slug', 'media_url', 'author_id', 'author_name',
    'published_at', 'status', 'media_type',
)

_TAG_RE = re.compile(r'<[^>]*>')


def generate_slug(title):
    """Create a URL-friendly slug from a title.

    Deterministic and idempotent: generate_slug(generate_slug(x)) == generate_slug(x).
    """
    slug = (title or '').lower()
    slug = re.sub(r'[^a-z0-9 -]', '', slug)
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    return slug.strip('-')


def generate_excerpt(content, max_length=160):
    """Plain-text excerpt of HTML content, truncated with an ellipsis"""
    plain_text = _TAG_RE.sub('', content or '')
    if len(plain_text) > max_length:
        return plain_text[:max_length].rstrip() + '…'
    return plain_text


def resolve_published_at(new_status, current_status, current_published_at, patch, now):
    """Compute published_at for an update.

    Returns (changed, value): when changed is False the column is left alone.
    """
    if new_status == 'published' and current_status != 'published':
        return True, now
    # Leaving published (to draft or archived) always clears the timestamp
    if new_status in ('draft', 'archived') and current_status == 'published':
        return True, None
    if new_status == 'published' and current_status == 'published':
        return True, current_published_at
    if 'published_at' in patch:
        return True, patch['published_at']
    return False, None


class ArticleService:
    """Business rules for articles.

    Args:
        repository: ArticleRepository (or anything with the same methods).
        logger: Optional logger, defaults to this module's logger.
        clock: Optional callable returning the current ISO timestamp.
    """

    def __init__(self, repository, logger=None, clock=None):
        self.repository = repository
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock or utcnow_iso

    # ===== Validation Helpers =====

    def _validate_fields(self, data):
        for field in TEXT_FIELDS:
            if data.get(field) is not None and not isinstance(data[field], str):
                raise ValidationError(f"{field} must be a string")
        if 'featured' in data:
            featured = data['featured']
            if featured is None:
                data['featured'] = False
            elif isinstance(featured, bool):
                pass
            elif isinstance(featured, int) and featured in (0, 1):
                data['featured'] = bool(featured)
            else:
                raise ValidationError('featured must be true or false')
        if 'status' in data and data['status'] not in STATUSES:
            raise ValidationError(f"Invalid status '{data['status']}'. Use one of: {', '.join(STATUSES)}")
        if data.get('media_type') not in (None, '') + MEDIA_TYPES:
            raise ValidationError("media_type must be 'image', 'video' or null")
        if 'categories' in data:
            categories = data['categories']
            if categories is None:
                data['categories'] = []
            elif not isinstance(categories, list) or not all(isinstance(c, str) for c in categories):
                raise ValidationError('categories must be a list of strings')
        if data.get('media_type') == '':
            data['media_type'] = None

    def _unique_slug(self, base_slug, exclude_id=None):
        """Append -1, -2, ... until the slug is free"""
        base_slug = base_slug or 'article'
        slug = base_slug
        counter = 1
        while self.repository.slug_exists(slug, exclude_id=exclude_id):
            slug = f"{base_slug}-{counter}"
            counter += 1
        return slug

    # ===== Commands =====

    def create_article(self, data, author=None):
        """Create an article; published_at is stamped only when created published"""
        data = {k: v for k, v in dict(data).items() if k in EDITABLE_FIELDS}
        data.setdefault('status', 'draft')
        self._validate_fields(data)

        title = (data.get('title') or '').strip()
        content = (data.get('content') or '').strip()
        if not title or not content:
            raise ValidationError('Title and content are required')

        if data.get('slug'):
            slug = generate_slug(data['slug'])
            if not slug:
                raise ValidationError('Slug must contain at least one letter or digit')
            if self.repository.slug_exists(slug):
                raise ConflictError(f"An article with slug '{slug}' already exists")
        else:
            slug = self._unique_slug(generate_slug(title))

        now = self.clock()
        article = {
            'id': str(uuid.uuid4()),
            'title': title,
            'content': content,
            'excerpt': data.get('excerpt') or generate_excerpt(content),
            'slug': slug,
            'categories': data.get('categories') or [],
            'media_url': data.get('media_url') or None,
            'media_type': data.get('media_type'),
            'status': data['status'],
            'featured': bool(data.get('featured', False)),
            'author_id': data.get('author_id') or (author or {}).get('id'),
            'author_name': data.get('author_name') or (author or {}).get('full_name'),
            'created_at': now,
            'updated_at': now,
            'published_at': now if data['status'] == 'published' else None,
        }

        created = self.repository.insert(article)
        self.logger.info(
            f"Article created: id={created['id']} slug={created['slug']} "
            f"status={created['status']} categories={created['categories']}"
        )
        return created

    def update_article(self, article_id, patch):
        """Apply a partial update and the published_at transition rule"""
        current = self.repository.get(article_id)
        if not current:
            raise NotFoundError('Article not found')

        patch = {k: v for k, v in dict(patch).items() if k in EDITABLE_FIELDS}
        self._validate_fields(patch)

        for field in ('title', 'content'):
            if field in patch and not (patch[field] or '').strip():
                raise ValidationError(f"{field.capitalize()} cannot be empty")

        if patch.get('slug'):
            slug = generate_slug(patch['slug'])
            if not slug:
                raise ValidationError('Slug must contain at least one letter or digit')
            if self.repository.slug_exists(slug, exclude_id=article_id):
                raise ConflictError(f"An article with slug '{slug}' already exists")
            patch['slug'] = slug
        else:
            patch.pop('slug', None)

        # Keep auto-generated excerpts in step with edited content
        if 'content' in patch and 'excerpt' not in patch:
            if current.get('excerpt') == generate_excerpt(current.get('content')):
                patch['excerpt'] = generate_excerpt(patch['content'])

        now = self.clock()
        changed, published_at = resolve_published_at(
            patch.get('status'), current['status'], current.get('published_at'), patch, now
        )
        fields = dict(patch)
        fields.pop('published_at', None)
        if changed:
            fields['published_at'] = published_at
        fields['updated_at'] = now

        updated = self.repository.update(article_id, fields)
        if not updated:
            raise NotFoundError('Article not found')

        self.logger.info(
            f"Article updated: id={article_id} status={current['status']}->{updated['status']} "
            f"published_at={updated['published_at']}"
        )
        return updated

    def delete_article(self, article_id):
        """Permanently remove an article"""
        if not self.repository.delete(article_id):
            raise NotFoundError('Article not found')
        self.logger.info(f"Article deleted: id={article_id}")

    def archive_article(self, article_id):
        """Soft delete: hide the article from the public site, keep the row"""
        current = self.repository.get(article_id)
        if not current:
            raise NotFoundError('Article not found')
        updated = self.repository.update(article_id, {
            'status': 'archived',
            'published_at': None,
            'updated_at': self.clock(),
        })
        self.logger.info(f"Article archived: id={article_id}")
        return updated

    def toggle_status(self, article_id):
        """Flip between draft and published"""
        current = self.repository.get(article_id)
        if not current:
            raise NotFoundError('Article not found')
        new_status = 'draft' if current['status'] == 'published' else 'published'
        return self.update_article(article_id, {'status': new_status})

    def duplicate_article(self, article_id):
        """Copy an article as a new draft (repost)"""
        original = self.repository.get(article_id)
        if not original:
            raise NotFoundError('Article not found')

        now = self.clock()
        copy = dict(original)
        copy.update({
            'id': str(uuid.uuid4()),
            'title': f"{original['title']} (Copy)",
            'slug': f"{original['slug']}-copy-{int(time.time() * 1000)}",
            'status': 'draft',
            'published_at': None,
            'created_at': now,
            'updated_at': now,
        })
        while self.repository.slug_exists(copy['slug']):
            copy['slug'] = f"{original['slug']}-copy-{int(time.time() * 1000)}"

        created = self.repository.insert(copy)
        self.logger.info(f"Article duplicated: {article_id} -> {created['id']}")
        return created

    # ===== Queries =====

    def get_article(self, article_id):
        return self.repository.get(article_id)

    def get_article_by_slug(self, slug, published_only=True):
        return self.repository.get_by_slug(slug, published_only=published_only)

    def list_for_admin(self):
        return self.repository.list(order_by='created_at')

    def list_latest(self, limit=10, offset=0):
        limit = max(1, min(int(limit), LATEST_MAX_LIMIT))
        offset = max(0, int(offset))
        articles = self.repository.list(status='published', order_by='published_at',
                                        limit=limit, offset=offset)
        self.logger.debug(f"Latest articles: limit={limit} offset={offset} found={len(articles)}")
        return articles

    def list_by_category(self, category, status='published'):
        articles = self.repository.list(status=status, category=category, order_by='published_at')
        self.logger.debug(f"Articles for category '{category}': {len(articles)}")
        return articles

    def list_by_status(self, status, limit=None):
        if status not in STATUSES:
            raise ValidationError(f"Invalid status '{status}'")
        order_by = 'published_at' if status == 'published' else 'updated_at'
        return self.repository.list(status=status, order_by=order_by, limit=limit)

    def list_featured(self, limit=5):
        limit = max(1, min(int(limit), FEATURED_MAX_LIMIT))
        return self.repository.list(status='published', featured=True,
                                    order_by='published_at', limit=limit)

    def search(self, query):
        query = html.unescape(query or '').strip()
        if not query:
            return []
        return self.repository.search(query)

    def stats(self):
        return self.repository.count_by_status()
