from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from conftest import FakeResponse, token_ok, tokeninfo_ok
from seosync.config import settings
from seosync.constants import (
    GOOGLE_TOKEN_URL,
    GOOGLE_TOKENINFO_URL,
    INDEXING_PUBLISH_ENDPOINT,
    URL_INSPECTION_ENDPOINT,
)
from seosync.dependencies import get_db, get_http, get_pacer
from seosync.main import app
from seosync.models import BlogPost, GoogleCredential, IndexingStatus

SITE = "https://technedigital.com.br"
LONG_LIVED = timedelta(days=36500)


@pytest.fixture()
def client(session_factory, http, pacer):
    def _db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_http] = lambda: http
    app.dependency_overrides[get_pacer] = lambda: pacer
    # 不进入上下文，避免触发启动迁移与定时任务
    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        app.dependency_overrides.clear()


def test_inspect_without_credentials(client, http):
    resp = client.post("/api/indexing/inspect")
    assert resp.status_code == 400
    assert "未配置" in resp.json()["detail"]
    assert http.calls == []


def test_inspect_reports_counts(client, session, http, make_credential):
    make_credential(expires_in=LONG_LIVED)

    def handler(kwargs):
        if kwargs["json"]["inspectionUrl"].endswith("/about"):
            return FakeResponse(404, text="not found")
        return FakeResponse(200, {"inspectionResult": {"indexStatusResult": {"verdict": "PASS"}}})

    http.on(URL_INSPECTION_ENDPOINT, handler)

    resp = client.post("/api/indexing/inspect")

    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 6
    assert body["success_count"] == 5
    assert body["error_count"] == 1
    failed = [item for item in body["results"] if not item["success"]]
    assert failed[0]["url"] == f"{SITE}/about"
    assert failed[0]["classification"] == "not_found"

    listing = client.get("/api/indexing/status").json()
    assert len(listing) == 6
    assert {row["indexing_status"] for row in listing} == {"PASS", "ERROR_NOT_FOUND"}


def test_submit_rejects_empty_list(client, make_credential):
    make_credential(expires_in=LONG_LIVED)
    assert client.post("/api/indexing/submit", json={"urls": []}).status_code == 422
    resp = client.post("/api/indexing/submit", json={"urls": ["   "]})
    assert resp.status_code == 400


def test_submit_urls(client, http, make_credential):
    make_credential(expires_in=LONG_LIVED)
    http.on(INDEXING_PUBLISH_ENDPOINT, lambda kwargs: FakeResponse(200, {"urlNotificationMetadata": {}}))

    resp = client.post("/api/indexing/submit", json={"urls": [f"{SITE}/blog/a", f"{SITE}/portfolio/b"]})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success_count"] == 2
    assert [item["verdict"] for item in body["results"]] == ["SUBMITTED", "SUBMITTED"]
    assert [item["page_type"] for item in body["results"]] == ["blog_post", "portfolio"]


def test_auto_submit_disabled(client, http, make_credential):
    make_credential(auto_submit_on_publish=False)
    resp = client.post("/api/indexing/auto-submit", json={"url": f"{SITE}/blog/a"})
    assert resp.status_code == 200
    assert resp.json()["submitted"] is False
    assert http.calls == []


def test_refresh_token_endpoint(client, http, make_credential):
    make_credential()
    http.on(GOOGLE_TOKEN_URL, token_ok("fresh"))
    resp = client.post("/api/indexing/refresh-token")
    assert resp.status_code == 200
    assert resp.json()["expires_at"] is not None


def test_refresh_token_failure_is_bad_gateway(client, http, make_credential):
    make_credential()
    http.on(GOOGLE_TOKEN_URL, lambda kwargs: FakeResponse(400, text="invalid_grant"))
    resp = client.post("/api/indexing/refresh-token")
    assert resp.status_code == 502


def test_health_endpoint(client, http, make_credential):
    make_credential()
    http.on(GOOGLE_TOKEN_URL, token_ok())
    http.on(URL_INSPECTION_ENDPOINT, lambda kwargs: FakeResponse(200, {"inspectionResult": {}}))
    http.on(GOOGLE_TOKENINFO_URL, tokeninfo_ok())
    resp = client.get("/api/indexing/health")
    assert resp.status_code == 200
    assert resp.json()["healthy"] is True


def test_manual_status_add(client, session):
    resp = client.post("/api/indexing/status", json={"url": f"{SITE}/landing"})
    assert resp.status_code == 201
    assert resp.json()["indexing_status"] == "PENDING"

    assert client.post("/api/indexing/status", json={"url": "https://example.com/x"}).status_code == 400
    bad_type = client.post("/api/indexing/status", json={"url": f"{SITE}/y", "page_type": "video"})
    assert bad_type.status_code == 400
    assert session.query(IndexingStatus).count() == 1


def test_sitemap_excludes_drafts(client, session):
    session.add_all([
        BlogPost(slug="live", title="Live", status="published"),
        BlogPost(slug="wip", title="WIP", status="draft"),
    ])
    session.commit()

    resp = client.get("/sitemap.xml")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/xml")
    assert f"<loc>{SITE}/blog/live</loc>" in resp.text
    assert "wip" not in resp.text


def test_google_settings_lifecycle(client, session, make_credential):
    assert client.get("/api/google/settings").status_code == 404
    make_credential()

    resp = client.get("/api/google/settings")
    assert resp.status_code == 200
    assert "client_secret" not in resp.json()
    assert resp.json()["has_refresh_token"] is True

    patched = client.patch("/api/google/settings", json={"auto_submit_on_publish": False, "property_url": "sc-domain:technedigital.com.br"})
    assert patched.status_code == 200
    assert patched.json()["auto_submit_on_publish"] is False
    assert patched.json()["property_url"] == "sc-domain:technedigital.com.br"

    assert client.delete("/api/google/settings").status_code == 204
    assert session.query(GoogleCredential).count() == 0
    assert client.delete("/api/google/settings").status_code == 404


def test_oauth_flow(client, session, http, monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", None)
    assert client.get("/api/google/oauth/init").status_code == 400

    monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", "cid")
    monkeypatch.setattr(settings, "GOOGLE_CLIENT_SECRET", "secret")
    auth_url = client.get("/api/google/oauth/init").json()["auth_url"]
    assert "client_id=cid" in auth_url
    assert "access_type=offline" in auth_url

    http.on(GOOGLE_TOKEN_URL, lambda kwargs: FakeResponse(200, {"access_token": "a", "refresh_token": "r", "expires_in": 3600}))
    resp = client.post("/api/google/oauth/callback", json={"code": "auth-code"})

    assert resp.status_code == 200
    assert resp.json()["property_url"] == SITE
    (_, _, kwargs) = http.calls_to(GOOGLE_TOKEN_URL)[0]
    assert kwargs["data"]["grant_type"] == "authorization_code"
    assert session.query(GoogleCredential).filter_by(is_active=True).count() == 1


def test_app_health(client):
    assert client.get("/health").json() == {"status": "ok"}


SITEMAP_ENDPOINT = (
    "https://www.googleapis.com/webmasters/v3/sites/"
    "https%3A%2F%2Ftechnedigital.com.br/sitemaps/https%3A%2F%2Ftechnedigital.com.br%2Fsitemap.xml"
)


def test_sitemap_submission_endpoint(client, http, make_credential):
    make_credential(expires_in=LONG_LIVED, auto_submit_sitemap=True)
    http.on(SITEMAP_ENDPOINT, lambda kwargs: FakeResponse(200, text=""))

    resp = client.post("/api/indexing/sitemap")

    assert resp.status_code == 200
    body = resp.json()
    assert body["submitted"] is True
    assert body["sitemap_url"] == f"{SITE}/sitemap.xml"
    assert client.get("/api/google/settings").json()["last_sitemap_submit"] is not None


def test_sitemap_submission_disabled(client, http, make_credential):
    make_credential(expires_in=LONG_LIVED, auto_submit_sitemap=False)
    resp = client.post("/api/indexing/sitemap")
    assert resp.status_code == 200
    assert resp.json()["submitted"] is False
    assert http.calls == []


def test_sitemap_submission_forbidden_is_bad_gateway(client, http, make_credential):
    make_credential(expires_in=LONG_LIVED, auto_submit_sitemap=True)
    http.on(SITEMAP_ENDPOINT, lambda kwargs: FakeResponse(403, text="forbidden"))
    resp = client.post("/api/indexing/sitemap")
    assert resp.status_code == 502
    assert client.get("/api/google/settings").json()["last_sitemap_submit"] is None
