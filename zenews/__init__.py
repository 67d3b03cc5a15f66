"""
ZE News - News CMS on Flask
===========================

Articles with a draft/publish workflow, media uploads with retry, a
single admin/editor guard, video courses and a fact-check inbox.

Usage:
    from flask import Flask
    from zenews import ZeNews

    app = Flask(__name__)
    zenews = ZeNews(app)

    # or pick modules
    zenews = ZeNews(app, {'features': {'courses': False}})
"""

import logging
import os
import time

from flask import Flask
from flask_cors import CORS

__version__ = '0.1.0'

logger = logging.getLogger(__name__)

# Modules registered unless switched off via config['features']
DEFAULT_FEATURES = {
    'news': True,
    'dashboard': True,
    'media': True,
    'courses': True,
    'fact_check': True,
    'email': True,
    'ops': True,
}

# Keys Flask always defines (as None) that should still take our default
FLASK_DEFAULTED_KEYS = ('SECRET_KEY', 'MAX_CONTENT_LENGTH')

# Public JSON endpoints other sites may read
CORS_PATHS = [r'/api/articles*', r'/api/categories*', r'/api/courses*', r'/api/fact-check']


class ZeNews:
    """Flask extension that wires every ZE News module into an app.

    Args:
        app: Flask app (or call init_app later).
        config: Optional dict with
            features: {module name: bool} overriding DEFAULT_FEATURES
            storage: storage backend to use instead of the configured one
            sleep: callable used for upload backoff waits
            clock: callable returning the current ISO timestamp for articles
    """

    def __init__(self, app=None, config=None):
        self.options = config or {}
        self.features = {**DEFAULT_FEATURES, **self.options.get('features', {})}
        self.profiles = None
        self.articles = None
        self.courses = None
        self.storage = None
        self.uploader = None
        self.email = None
        self._registered = []

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        from .core.config import Config
        from .core.database import Database
        from .core.errors import register_error_handlers
        from .core.storage import create_storage_backend
        from .modules.auth import ProfileRepository
        from .modules.courses import CourseRepository
        from .modules.email import EmailService
        from .modules.media import MediaUploader
        from .modules.news import ArticleRepository, ArticleService

        self._apply_config(app, Config)
        config = app.config

        Database.init_schema(config['NEWS_DB'])

        self.profiles = ProfileRepository(config['NEWS_DB'])
        self.articles = ArticleService(ArticleRepository(config['NEWS_DB']),
                                       clock=self.options.get('clock'))
        self.courses = CourseRepository(config['NEWS_DB'])

        self.storage = self.options.get('storage') or create_storage_backend(config, app.static_folder)
        self.uploader = MediaUploader(
            self.storage,
            max_attempts=config['UPLOAD_MAX_ATTEMPTS'],
            base_delay=config['UPLOAD_BASE_DELAY'],
            sleep=self.options.get('sleep', time.sleep),
            verify_url=config['UPLOAD_VERIFY_URL'],
            verify_timeout=config['UPLOAD_VERIFY_TIMEOUT'],
            folder=config['STORAGE_FOLDER'],
            limits={
                'image': config['MAX_IMAGE_SIZE'],
                'video': config['MAX_VIDEO_SIZE'],
                'document': config['MAX_DOCUMENT_SIZE'],
            },
        )
        self.email = EmailService(app)

        register_error_handlers(app)
        CORS(app, resources={path: {'origins': config['CORS_ORIGINS']} for path in CORS_PATHS})
        self._register_blueprints(app)

        app.extensions['zenews'] = self
        logger.info(f"ZE News initialised with modules: {', '.join(self._registered)}")

    def _apply_config(self, app, defaults):
        """Copy Config defaults into app.config without overriding the host app"""
        explicit = {key for key, value in app.config.items() if value is not None}
        for key in dir(defaults):
            if not key.isupper():
                continue
            if key in FLASK_DEFAULTED_KEYS and app.config.get(key) is None:
                app.config[key] = getattr(defaults, key)
            else:
                app.config.setdefault(key, getattr(defaults, key))

        # Database files follow the app's DB_DIR unless set explicitly
        db_dir = app.config['DB_DIR']
        os.makedirs(db_dir, exist_ok=True)
        for key, filename in (('NEWS_DB', 'news.db'), ('LOG_DB', 'app_logs.db')):
            if key not in explicit and not os.getenv(key):
                app.config[key] = os.path.join(db_dir, filename)

        if not app.config.get('SECRET_KEY'):
            logger.warning("FLASK_SECRET_KEY is not set - sessions will not work")

    def _register_blueprints(self, app):
        from .modules.auth import auth_bp
        from .modules.courses import courses_bp
        from .modules.dashboard import dashboard_bp
        from .modules.email import email_bp
        from .modules.fact_check import fact_check_bp
        from .modules.media import media_bp
        from .modules.news import categories_bp, news_bp
        from .modules.ops import ops_health_bp

        blueprints = {
            'news': [news_bp, categories_bp],
            'dashboard': [dashboard_bp],
            'media': [media_bp],
            'courses': [courses_bp],
            'fact_check': [fact_check_bp],
            'email': [email_bp],
            'ops': [ops_health_bp],
        }

        # Auth carries the /admin edge guard, so it is always on
        app.register_blueprint(auth_bp)
        self._registered.append('auth')

        for name, bps in blueprints.items():
            if not self.features.get(name):
                continue
            for bp in bps:
                app.register_blueprint(bp)
            self._registered.append(name)

    def get_registered_modules(self):
        return list(self._registered)


def create_app(config=None):
    """Application factory used by `flask --app zenews run`"""
    app = Flask(__name__)
    if config:
        app.config.update(config)
    ZeNews(app)
    return app


__all__ = ['ZeNews', 'create_app', '__version__']
