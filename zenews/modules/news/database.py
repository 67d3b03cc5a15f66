"""
Article Repository
==================

SQLite persistence for the articles table. One instance per app, handed
to ArticleService; nothing here knows about HTTP or sessions.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager

from ...core.database import Database
from ...core.errors import ConflictError, PermanentStoreError, TransientStoreError

logger = logging.getLogger(__name__)

ARTICLE_COLUMNS = [
    'id', 'title', 'content', 'excerpt', 'slug', 'categories', 'media_url',
    'media_type', 'status', 'featured', 'author_id', 'author_name',
    'created_at', 'updated_at', 'published_at',
]


def row_to_article(row):
    """Convert a sqlite row to the article dict the API returns"""
    if row is None:
        return None
    article = dict(row)
    try:
        article['categories'] = json.loads(article.get('categories') or '[]')
    except (TypeError, ValueError):
        article['categories'] = []
    article['featured'] = bool(article.get('featured'))
    return article


@contextmanager
def store_errors(action):
    """Re-raise sqlite failures as typed store errors"""
    try:
        yield
    except sqlite3.IntegrityError as e:
        if 'slug' in str(e):
            raise ConflictError('An article with this slug already exists') from e
        raise PermanentStoreError(f"Failed to {action}: {e}") from e
    except sqlite3.OperationalError as e:
        if 'locked' in str(e) or 'busy' in str(e):
            raise TransientStoreError(f"Failed to {action}: database is busy") from e
        raise PermanentStoreError(f"Failed to {action}: {e}") from e
    except sqlite3.Error as e:
        raise PermanentStoreError(f"Failed to {action}: {e}") from e


class ArticleRepository:

    def __init__(self, db_path):
        self.db_path = db_path

    def _serialize(self, fields):
        values = dict(fields)
        if 'categories' in values:
            values['categories'] = json.dumps(list(values['categories'] or []))
        if 'featured' in values:
            values['featured'] = 1 if values['featured'] else 0
        return values

    def insert(self, article):
        values = self._serialize(article)
        columns = [c for c in ARTICLE_COLUMNS if c in values]
        placeholders = ', '.join('?' for _ in columns)

        with store_errors('create article'):
            with Database.connection(self.db_path) as conn:
                conn.execute(
                    f"INSERT INTO articles ({', '.join(columns)}) VALUES ({placeholders})",
                    [values[c] for c in columns]
                )
        return self.get(article['id'])

    def get(self, article_id):
        with store_errors('fetch article'):
            with Database.connection(self.db_path) as conn:
                row = conn.execute('SELECT * FROM articles WHERE id = ?', (article_id,)).fetchone()
        return row_to_article(row)

    def get_by_slug(self, slug, published_only=True):
        query = 'SELECT * FROM articles WHERE slug = ?'
        if published_only:
            query += " AND status = 'published'"
        with store_errors('fetch article'):
            with Database.connection(self.db_path) as conn:
                row = conn.execute(query, (slug,)).fetchone()
        return row_to_article(row)

    def slug_exists(self, slug, exclude_id=None):
        with store_errors('check slug'):
            with Database.connection(self.db_path) as conn:
                if exclude_id:
                    row = conn.execute(
                        'SELECT 1 FROM articles WHERE slug = ? AND id != ?', (slug, exclude_id)
                    ).fetchone()
                else:
                    row = conn.execute('SELECT 1 FROM articles WHERE slug = ?', (slug,)).fetchone()
        return row is not None

    def update(self, article_id, fields):
        """Write the given columns; returns the updated article or None"""
        values = self._serialize(fields)
        columns = [c for c in ARTICLE_COLUMNS if c in values and c not in ('id', 'created_at')]
        if not columns:
            return self.get(article_id)

        assignments = ', '.join(f"{c} = ?" for c in columns)
        with store_errors('update article'):
            with Database.connection(self.db_path) as conn:
                cursor = conn.execute(
                    f"UPDATE articles SET {assignments} WHERE id = ?",
                    [values[c] for c in columns] + [article_id]
                )
                if cursor.rowcount == 0:
                    return None
        return self.get(article_id)

    def delete(self, article_id):
        with store_errors('delete article'):
            with Database.connection(self.db_path) as conn:
                cursor = conn.execute('DELETE FROM articles WHERE id = ?', (article_id,))
                return cursor.rowcount > 0

    def list(self, status=None, category=None, featured=None, order_by='created_at',
             limit=None, offset=0):
        """List articles, newest first by the given timestamp column"""
        if order_by not in ('created_at', 'published_at', 'updated_at'):
            raise ValueError(f"Cannot order by {order_by}")

        clauses, params = [], []
        if status:
            clauses.append('status = ?')
            params.append(status)
        if category:
            clauses.append('EXISTS (SELECT 1 FROM json_each(articles.categories) WHERE json_each.value = ?)')
            params.append(category)
        if featured is not None:
            clauses.append('featured = ?')
            params.append(1 if featured else 0)

        query = 'SELECT * FROM articles'
        if clauses:
            query += ' WHERE ' + ' AND '.join(clauses)
        query += f' ORDER BY {order_by} DESC'
        if limit is not None:
            query += ' LIMIT ? OFFSET ?'
            params.extend([limit, offset])

        with store_errors('list articles'):
            with Database.connection(self.db_path) as conn:
                rows = conn.execute(query, params).fetchall()
        return [row_to_article(row) for row in rows]

    def search(self, query):
        """Case-insensitive match on title, content or excerpt of published articles"""
        pattern = f"%{query.lower()}%"
        with store_errors('search articles'):
            with Database.connection(self.db_path) as conn:
                rows = conn.execute('''
                    SELECT * FROM articles
                    WHERE status = 'published'
                      AND (lower(title) LIKE ? OR lower(content) LIKE ? OR lower(coalesce(excerpt, '')) LIKE ?)
                    ORDER BY published_at DESC
                ''', (pattern, pattern, pattern)).fetchall()
        return [row_to_article(row) for row in rows]

    def count_by_status(self):
        with store_errors('count articles'):
            with Database.connection(self.db_path) as conn:
                rows = conn.execute(
                    'SELECT status, COUNT(*) AS total FROM articles GROUP BY status'
                ).fetchall()
        counts = {'draft': 0, 'published': 0, 'archived': 0}
        for row in rows:
            counts[row['status']] = row['total']
        return counts
