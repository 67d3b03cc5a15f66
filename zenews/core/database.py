import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def utcnow_iso():
    """Current UTC time as an ISO-8601 string"""
    return datetime.now(timezone.utc).isoformat()


SCHEMA = [
    '''
    CREATE TABLE IF NOT EXISTS articles (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        excerpt TEXT,
        slug TEXT NOT NULL UNIQUE,
        categories TEXT NOT NULL DEFAULT '[]',
        media_url TEXT,
        media_type TEXT,
        status TEXT NOT NULL DEFAULT 'draft',
        featured BOOLEAN NOT NULL DEFAULT 0,
        author_id TEXT,
        author_name TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        published_at TEXT
    )
    ''',
    'CREATE INDEX IF NOT EXISTS idx_articles_status ON articles(status)',
    'CREATE INDEX IF NOT EXISTS idx_articles_published_at ON articles(published_at)',
    '''
    CREATE TABLE IF NOT EXISTS profiles (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT,
        full_name TEXT,
        role TEXT NOT NULL DEFAULT 'user',
        avatar_url TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS courses (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        difficulty TEXT NOT NULL,
        category TEXT NOT NULL,
        duration TEXT DEFAULT '0 hours',
        enrolled_count INTEGER DEFAULT 0,
        rating REAL DEFAULT 0.0,
        created_by TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS course_modules (
        id TEXT PRIMARY KEY,
        course_id TEXT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        description TEXT,
        order_index INTEGER DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS course_videos (
        id TEXT PRIMARY KEY,
        module_id TEXT NOT NULL REFERENCES course_modules(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        description TEXT,
        video_url TEXT NOT NULL,
        duration INTEGER DEFAULT 0,
        order_index INTEGER DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS course_materials (
        id TEXT PRIMARY KEY,
        module_id TEXT NOT NULL REFERENCES course_modules(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        description TEXT,
        material_url TEXT NOT NULL,
        material_type TEXT DEFAULT 'other',
        file_size INTEGER,
        order_index INTEGER DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    ''',
    'CREATE INDEX IF NOT EXISTS idx_modules_course ON course_modules(course_id)',
    'CREATE INDEX IF NOT EXISTS idx_videos_module ON course_videos(module_id)',
    'CREATE INDEX IF NOT EXISTS idx_materials_module ON course_materials(module_id)',
]


class Database:

    @staticmethod
    def connect(path):
        conn = sqlite3.connect(path)
        conn.row_factory = sqlite3.Row
        conn.execute('PRAGMA foreign_keys = ON')
        return conn

    @staticmethod
    @contextmanager
    def connection(path):
        """
        Open a connection, commit on success, roll back on error and
        always close.
        """
        conn = Database.connect(path)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @staticmethod
    def init_schema(path):
        """Create every table and index the application needs"""
        db_dir = os.path.dirname(path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        with Database.connection(path) as conn:
            cursor = conn.cursor()
            for statement in SCHEMA:
                cursor.execute(statement)
        logger.info(f"Database schema ready at {path}")
