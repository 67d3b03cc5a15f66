"""
Shared fixtures for the ZE News test suite.

Run with: pytest tests/ -v

NOTE: pytest is listed under extras_require["dev"] in setup.py.
Install with: pip install -e ".[dev]"
"""

import shutil
import tempfile

import pytest
from flask import Flask

from zenews import ZeNews
from zenews.core.errors import PermanentStoreError


class FakeStorage:
    """In-memory storage backend that can be told to fail"""

    name = 'fake'
    bucket = 'test-bucket'

    def __init__(self, failures=None, exists=True):
        self.failures = list(failures or [])
        self.exists = exists
        self.objects = {}
        self.puts = []
        self.deleted = []
        self.bucket_checks = 0

    def bucket_exists(self):
        self.bucket_checks += 1
        return self.exists

    def put(self, key, data, content_type=None, upsert=False):
        self.puts.append({'key': key, 'content_type': content_type, 'upsert': upsert})
        if self.failures:
            raise self.failures.pop(0)
        if key in self.objects and not upsert:
            raise PermanentStoreError(f"Object already exists: {key}")
        self.objects[key] = data
        return key

    def delete(self, key):
        self.deleted.append(key)
        return self.objects.pop(key, None) is not None

    def public_url(self, key):
        return f"https://cdn.example.com/{key}"

    def key_from_url(self, url):
        prefix = 'https://cdn.example.com/'
        if url and url.startswith(prefix):
            return url[len(prefix):]
        return None


class FakeClock:
    """Deterministic, strictly increasing ISO timestamps"""

    def __init__(self):
        self.ticks = 0

    def __call__(self):
        self.ticks += 1
        return f"2026-01-01T00:{self.ticks // 60:02d}:{self.ticks % 60:02d}+00:00"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="zenews-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def sleeps():
    """Backoff delays requested by the uploader, instead of sleeping"""
    return []


@pytest.fixture
def clock():
    return FakeClock()


def make_app(db_dir, **options):
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = db_dir
    app.config["CORS_ORIGINS"] = ["http://localhost:3000"]
    # Email stays unconfigured unless a test sets it up
    app.config["EMAIL_PROVIDER"] = "smtp"
    app.config["EMAIL_ADDRESS"] = None
    app.config["EMAIL_PASSWORD"] = None
    app.config["RESEND_API_KEY"] = None
    ZeNews(app, options)
    return app


@pytest.fixture
def app(tmp_db_dir, storage, sleeps, clock):
    """Fully initialised Flask app with all ZE News modules registered."""
    return make_app(tmp_db_dir, storage=storage, sleep=sleeps.append, clock=clock)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sign_in(app, client):
    """Create a profile with the given role and put it in the client's session."""
    def _sign_in(role, email=None):
        profile = app.extensions["zenews"].profiles.create(
            email or f"{role}@example.com", "Password123", full_name=role.title(), role=role
        )
        with client.session_transaction() as sess:
            sess["user_id"] = profile["id"]
        return profile
    return _sign_in
