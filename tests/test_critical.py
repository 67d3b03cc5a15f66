"""
Critical Integration Tests for ZE News
======================================

Focused tests covering the integration points most likely to break:
extension wiring, config resolution, blueprints, error mapping, health.
Run with: pytest tests/test_critical.py -v
"""

import os
import shutil
import tempfile

from flask import Flask

from zenews import ZeNews
from zenews.modules.email import EmailService


# ---------------------------------------------------------------------------
# 1. Framework initialisation -- ZeNews(app) does not raise
# ---------------------------------------------------------------------------

def test_extension_initialisation(tmp_db_dir):
    """ZeNews(app) boots without errors and stores itself on the app."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir

    zenews = ZeNews(app)

    assert "zenews" in app.extensions
    assert app.extensions["zenews"] is zenews
    assert zenews.articles is not None
    assert zenews.profiles is not None
    assert zenews.uploader.storage is zenews.storage


# ---------------------------------------------------------------------------
# 2. Config resolution -- DB paths follow DB_DIR, host values win
# ---------------------------------------------------------------------------

def test_config_db_paths(app, tmp_db_dir):
    """NEWS_DB and LOG_DB resolve inside the configured DB_DIR."""
    assert app.config["NEWS_DB"] == os.path.join(tmp_db_dir, "news.db")
    assert app.config["LOG_DB"] == os.path.join(tmp_db_dir, "app_logs.db")
    assert os.path.isfile(app.config["NEWS_DB"]), "Schema was not created"


def test_host_config_is_not_overridden(tmp_db_dir):
    """Keys the host app set before ZeNews(app) keep their values."""
    app = Flask(__name__)
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir
    app.config["MAX_VIDEO_SIZE"] = 1024
    app.config["UPLOAD_MAX_ATTEMPTS"] = 5

    zenews = ZeNews(app)

    assert app.config["MAX_VIDEO_SIZE"] == 1024
    assert zenews.uploader.max_attempts == 5
    assert zenews.uploader.limits["video"] == 1024
    assert app.config["STORAGE_FOLDER"] == "uploads", "Defaults should fill unset keys"


# ---------------------------------------------------------------------------
# 3. Database directory creation
# ---------------------------------------------------------------------------

def test_database_dir_creation():
    """ZeNews creates the configured DB_DIR on disk."""
    d = tempfile.mkdtemp(prefix="zenews-dbtest-")
    target = os.path.join(d, "sub", "databases")

    try:
        app = Flask(__name__)
        app.config["SECRET_KEY"] = "test-secret"
        app.config["DB_DIR"] = target

        ZeNews(app)

        assert os.path.isdir(target), f"DB_DIR was not created at {target}"
    finally:
        shutil.rmtree(d, ignore_errors=True)


# ---------------------------------------------------------------------------
# 4. Email service init
# ---------------------------------------------------------------------------

def test_email_service_init_resend(app):
    """EmailService.init_app() with Resend provider stores config correctly."""
    svc = EmailService()
    app.config["RESEND_API_KEY"] = "re_test_fake_key_123"
    app.config["EMAIL_PROVIDER"] = "resend"
    app.config["EMAIL_ADDRESS"] = "desk@zennews.net"

    with app.app_context():
        svc.init_app(app)

    assert svc.provider == "resend"
    assert svc.api_key == "re_test_fake_key_123"
    assert svc.is_configured()


def test_email_service_smtp_without_password(app):
    """SMTP without a password initialises but reports itself unconfigured."""
    svc = EmailService()
    app.config["EMAIL_PROVIDER"] = "smtp"
    app.config["EMAIL_ADDRESS"] = "desk@zennews.net"
    app.config["EMAIL_PASSWORD"] = None

    with app.app_context():
        svc.init_app(app)

    assert svc.provider == "smtp"
    assert not svc.is_configured()
    assert svc.send_email(["reader@example.com"], "Hi", "<p>Hi</p>") is False


# ---------------------------------------------------------------------------
# 5. Blueprint registration
# ---------------------------------------------------------------------------

EXPECTED_MODULES = [
    "auth",
    "news",
    "dashboard",
    "media",
    "courses",
    "fact_check",
    "email",
    "ops",
]


def test_all_blueprints_registered(app):
    """Every feature module should be registered."""
    registered = app.extensions["zenews"].get_registered_modules()

    for mod in EXPECTED_MODULES:
        assert mod in registered, (
            f"Module '{mod}' was not registered. Registered: {registered}"
        )
    assert len(registered) == len(EXPECTED_MODULES)


def test_features_can_be_switched_off(tmp_db_dir):
    """features={'courses': False} leaves the course routes out."""
    app = Flask(__name__)
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir

    zenews = ZeNews(app, {"features": {"courses": False}})

    assert "courses" not in zenews.get_registered_modules()
    rules = [rule.rule for rule in app.url_map.iter_rules()]
    assert "/api/courses" not in rules
    assert "/api/articles" in rules


# ---------------------------------------------------------------------------
# 6. Error mapping -- every failure is JSON {error}
# ---------------------------------------------------------------------------

def test_unknown_route_returns_json_error(client):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert "error" in response.get_json()


def test_missing_article_returns_json_404(client):
    response = client.get("/api/articles/no-such-id")
    assert response.status_code == 404
    assert response.get_json() == {"error": "Article not found"}


# ---------------------------------------------------------------------------
# 7. CORS -- public feeds answer allowed origins
# ---------------------------------------------------------------------------

def test_cors_on_public_articles(client):
    response = client.get("/api/articles", headers={"Origin": "http://localhost:3000"})
    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == "http://localhost:3000"


# ---------------------------------------------------------------------------
# 8. Health endpoint -- GET /health returns 200 with status and checks
# ---------------------------------------------------------------------------

def test_health_endpoint(client):
    """GET /health returns JSON with status field and checks dict."""
    response = client.get("/health")
    assert response.status_code in (200, 503), (
        f"Expected 200 or 503, got {response.status_code}"
    )
    data = response.get_json()
    assert data["status"] in ("ok", "warning", "critical")
    assert data["checks"]["database"]["ok"] is True
    assert data["checks"]["storage"] == {"ok": True, "backend": "fake"}
    assert "disk" in data["checks"]


def test_health_reports_missing_bucket(client, storage):
    storage.exists = False
    data = client.get("/health").get_json()
    assert data["checks"]["storage"]["ok"] is False
    assert any("Storage" in issue for issue in data["issues"])
