"""
Article Service Tests
=====================

Slug/excerpt helpers, the published_at transition rule, duplication,
archive and the public/privileged article routes.
"""

import os

import pytest

from zenews.core.database import Database
from zenews.core.errors import ConflictError, NotFoundError, ValidationError
from zenews.modules.news import ArticleRepository, ArticleService, generate_excerpt, generate_slug
from zenews.modules.news.service import resolve_published_at


@pytest.fixture
def service(tmp_db_dir, clock):
    db_path = os.path.join(tmp_db_dir, "news.db")
    Database.init_schema(db_path)
    return ArticleService(ArticleRepository(db_path), clock=clock)


def _article(service, **overrides):
    data = {
        "title": "City council approves budget",
        "content": "<p>The council voted 7-2 on Tuesday.</p>",
        "categories": ["local-news"],
    }
    data.update(overrides)
    return service.create_article(data)


# ---------------------------------------------------------------------------
# Slugs and excerpts
# ---------------------------------------------------------------------------

def test_slug_from_punctuated_title():
    assert generate_slug("Hello, World!") == "hello-world"


@pytest.mark.parametrize("title", [
    "Hello, World!",
    "  Spaces   everywhere  ",
    "Already-a-slug",
    "Dashes -- and -- more",
    "Ünïcode & symbols #2026",
    "",
])
def test_slug_is_idempotent(title):
    once = generate_slug(title)
    assert generate_slug(once) == once


def test_excerpt_strips_tags():
    assert generate_excerpt("<p>Hi</p>", 160) == "Hi"


def test_excerpt_truncates_long_content_with_ellipsis():
    excerpt = generate_excerpt("<p>" + "word " * 100 + "</p>", 160)
    assert excerpt.endswith("…")
    assert len(excerpt) <= 161
    assert "<" not in excerpt


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

def test_create_requires_title_and_content(service):
    with pytest.raises(ValidationError):
        service.create_article({"title": "No body", "content": "  "})


def test_published_article_gets_published_at(service):
    article = _article(service, status="published")
    assert article["status"] == "published"
    assert article["published_at"] is not None


def test_draft_has_no_published_at(service):
    article = _article(service)
    assert article["status"] == "draft"
    assert article["published_at"] is None
    assert article["excerpt"] == "The council voted 7-2 on Tuesday."


def test_generated_slug_collision_gets_suffix(service):
    first = _article(service)
    second = _article(service)
    third = _article(service)
    assert first["slug"] == "city-council-approves-budget"
    assert second["slug"] == "city-council-approves-budget-1"
    assert third["slug"] == "city-council-approves-budget-2"


def test_explicit_slug_collision_is_conflict(service):
    _article(service, slug="budget")
    with pytest.raises(ConflictError) as exc:
        _article(service, title="Another story", slug="budget")
    assert exc.value.status_code == 409


def test_invalid_status_is_rejected(service):
    with pytest.raises(ValidationError):
        _article(service, status="live")


@pytest.mark.parametrize("overrides", [
    {"title": 123},
    {"content": ["<p>x</p>"]},
    {"slug": {"a": 1}},
    {"featured": "false"},
    {"featured": 2},
    {"categories": "politics"},
])
def test_wrongly_typed_fields_are_rejected(service, overrides):
    with pytest.raises(ValidationError):
        _article(service, **overrides)


def test_featured_flag_accepts_booleans(service):
    assert _article(service, title="A", featured=True)["featured"] is True
    assert _article(service, title="B", featured=0)["featured"] is False


def test_update_rejects_non_string_title(service):
    article = _article(service)
    with pytest.raises(ValidationError):
        service.update_article(article["id"], {"title": 42})


# ---------------------------------------------------------------------------
# published_at transitions
# ---------------------------------------------------------------------------

def test_publishing_twice_keeps_published_at(service):
    article = _article(service)
    first = service.update_article(article["id"], {"status": "published"})
    second = service.update_article(article["id"], {"status": "published"})

    assert first["published_at"] is not None
    assert second["published_at"] == first["published_at"], (
        "Re-saving a published article must not bump published_at"
    )
    assert second["updated_at"] > first["updated_at"]


def test_editing_published_article_keeps_published_at(service):
    article = _article(service, status="published")
    edited = service.update_article(article["id"], {"title": "Budget approved after debate"})
    assert edited["published_at"] == article["published_at"]


def test_unpublish_clears_and_republish_sets_new_published_at(service):
    article = _article(service, status="published")
    original = article["published_at"]

    unpublished = service.update_article(article["id"], {"status": "draft"})
    assert unpublished["published_at"] is None

    republished = service.update_article(article["id"], {"status": "published"})
    assert republished["published_at"] is not None
    assert republished["published_at"] != original


def test_patch_published_at_passes_through_for_drafts(service):
    article = _article(service)
    updated = service.update_article(article["id"], {"published_at": "2025-12-31T00:00:00+00:00"})
    assert updated["published_at"] == "2025-12-31T00:00:00+00:00"


def test_resolve_published_at_rules():
    now = "NOW"
    assert resolve_published_at("published", "draft", None, {}, now) == (True, "NOW")
    assert resolve_published_at("draft", "published", "T1", {}, now) == (True, None)
    assert resolve_published_at("archived", "published", "T1", {}, now) == (True, None)
    assert resolve_published_at("published", "published", "T1", {}, now) == (True, "T1")
    assert resolve_published_at(None, "draft", None, {}, now) == (False, None)


def test_update_missing_article(service):
    with pytest.raises(NotFoundError):
        service.update_article("missing", {"title": "x"})


def test_update_regenerates_auto_excerpt(service):
    article = _article(service)
    updated = service.update_article(article["id"], {"content": "<p>New text.</p>"})
    assert updated["excerpt"] == "New text."


# ---------------------------------------------------------------------------
# Duplicate, archive, delete, toggle
# ---------------------------------------------------------------------------

def test_duplicate_creates_new_draft(service):
    original = _article(service, status="published")
    copy = service.duplicate_article(original["id"])

    assert copy["id"] != original["id"]
    assert copy["status"] == "draft"
    assert copy["published_at"] is None
    assert copy["slug"].startswith(original["slug"] + "-copy-")
    assert copy["title"] == original["title"] + " (Copy)"
    assert service.get_article(original["id"])["status"] == "published"


def test_archive_hides_article(service):
    article = _article(service, status="published")
    archived = service.archive_article(article["id"])

    assert archived["status"] == "archived"
    assert archived["published_at"] is None
    assert service.get_article_by_slug(article["slug"]) is None
    assert service.get_article(article["id"]) is not None, "Archive must keep the row"


def test_delete_removes_row(service):
    article = _article(service)
    service.delete_article(article["id"])
    assert service.get_article(article["id"]) is None
    with pytest.raises(NotFoundError):
        service.delete_article(article["id"])


def test_toggle_status(service):
    article = _article(service)
    assert service.toggle_status(article["id"])["status"] == "published"
    assert service.toggle_status(article["id"])["status"] == "draft"


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def test_latest_lists_only_published(service):
    _article(service, title="Draft story")
    published = _article(service, title="Published story", status="published")

    latest = service.list_latest(limit=10)
    assert [a["id"] for a in latest] == [published["id"]]


def test_featured_limit_is_clamped(service):
    for i in range(3):
        _article(service, title=f"Feature {i}", status="published", featured=True)

    assert len(service.list_featured(limit=-1)) == 1
    assert len(service.list_featured(limit=2)) == 2


def test_category_filter(service):
    _article(service, title="Local", status="published", categories=["local-news"])
    _article(service, title="Politics", status="published", categories=["politics", "politics:national"])

    politics = service.list_by_category("politics")
    assert [a["title"] for a in politics] == ["Politics"]


def test_search_matches_title_and_content(service):
    _article(service, title="Flood warning issued", status="published")
    _article(service, title="Unrelated", content="<p>Nothing about weather</p>", status="published")

    assert [a["title"] for a in service.search("flood")] == ["Flood warning issued"]
    assert service.search("   ") == []


def test_stats_counts_by_status(service):
    _article(service)
    _article(service, status="published")
    stats = service.stats()
    assert stats["draft"] == 1
    assert stats["published"] == 1


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

def test_create_article_route(client, sign_in):
    editor = sign_in("editor")
    response = client.post("/api/articles", json={
        "title": "Hello, World!",
        "content": "<p>First post</p>",
        "status": "published",
    })
    assert response.status_code == 201
    article = response.get_json()
    assert article["slug"] == "hello-world"
    assert article["author_id"] == editor["id"]

    public = client.get("/api/articles/slug/hello-world")
    assert public.status_code == 200
    assert public.get_json()["id"] == article["id"]


def test_draft_hidden_from_public(app, client, sign_in):
    draft = app.extensions["zenews"].articles.create_article({
        "title": "Embargoed", "content": "<p>Not yet</p>",
    })

    assert client.get(f"/api/articles/{draft['id']}").status_code == 404
    assert client.get("/api/articles/slug/embargoed").status_code == 404
    assert client.get("/api/articles?status=draft").status_code == 401

    sign_in("editor")
    assert client.get(f"/api/articles/{draft['id']}").status_code == 200
    drafts = client.get("/api/articles?status=draft").get_json()
    assert [a["id"] for a in drafts] == [draft["id"]]


def test_delete_route_hard_deletes(app, client, sign_in):
    article = app.extensions["zenews"].articles.create_article({
        "title": "To remove", "content": "<p>x</p>", "status": "published",
    })
    sign_in("admin")

    response = client.delete(f"/api/articles/{article['id']}")
    assert response.status_code == 200
    assert "no-store" in response.headers["Cache-Control"]
    assert app.extensions["zenews"].articles.get_article(article["id"]) is None


def test_delete_by_query_requires_id(client, sign_in):
    sign_in("admin")
    response = client.delete("/api/articles")
    assert response.status_code == 400


def test_archive_and_duplicate_routes(app, client, sign_in):
    article = app.extensions["zenews"].articles.create_article({
        "title": "Repost me", "content": "<p>x</p>", "status": "published",
    })
    sign_in("editor")

    copy = client.post(f"/api/articles/{article['id']}/duplicate")
    assert copy.status_code == 201
    assert copy.get_json()["status"] == "draft"

    archived = client.post(f"/api/articles/{article['id']}/archive")
    assert archived.get_json()["status"] == "archived"


def test_slug_conflict_route_returns_409(client, sign_in):
    sign_in("editor")
    body = {"title": "Same", "content": "<p>x</p>", "slug": "same"}
    assert client.post("/api/articles", json=body).status_code == 201
    response = client.post("/api/articles", json=body)
    assert response.status_code == 409
    assert "already exists" in response.get_json()["error"]


def test_create_route_with_wrong_field_types_is_400(client, sign_in):
    sign_in("editor")
    response = client.post("/api/articles", json={"title": 123, "content": "x"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "title must be a string"}


def test_featured_route_ignores_negative_limit(app, client):
    articles = app.extensions["zenews"].articles
    for i in range(3):
        articles.create_article({"title": f"Feature {i}", "content": "<p>x</p>",
                                 "status": "published", "featured": True})

    assert len(client.get("/api/articles?featured=1&limit=-1").get_json()) == 1


def test_latest_route_paginates(app, client):
    articles = app.extensions["zenews"].articles
    for i in range(3):
        articles.create_article({"title": f"Story {i}", "content": "<p>x</p>", "status": "published"})

    page = client.get("/api/articles/latest?limit=2&offset=0").get_json()
    rest = client.get("/api/articles/latest?limit=2&offset=2").get_json()
    assert len(page) == 2
    assert len(rest) == 1
    assert client.get("/api/articles/latest?limit=abc").status_code == 400


def test_categories_route(client):
    data = client.get("/api/categories").get_json()
    assert "politics" in data["structure"]
    assert "politics:national" in data["options"]
