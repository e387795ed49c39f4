from datetime import timedelta

from conftest import NOW, FakeResponse, fixed_clock, token_ok, tokeninfo_ok
from seosync.constants import (
    GOOGLE_TOKEN_URL,
    GOOGLE_TOKENINFO_URL,
    SCOPE_WEBMASTERS,
    URL_INSPECTION_ENDPOINT,
)
from seosync.indexing.health import check_connection
from seosync.models import GoogleCredential, IndexingStatus


def _inspection_ok(kwargs):
    return FakeResponse(200, {"inspectionResult": {"indexStatusResult": {"verdict": "PASS"}}})


def _snapshot(session, credential_id):
    session.expire_all()
    row = session.get(GoogleCredential, credential_id)
    return (row.access_token, row.token_expires_at, row.updated_at)


def test_healthy_integration_leaves_credential_untouched(session, http, make_credential):
    credential = make_credential(expires_in=timedelta(hours=1))
    before = _snapshot(session, credential.id)
    http.on(URL_INSPECTION_ENDPOINT, _inspection_ok)
    http.on(GOOGLE_TOKENINFO_URL, tokeninfo_ok())

    report = check_connection(session, http=http, clock=fixed_clock)

    assert report.healthy
    assert report.problems == []
    assert http.calls_to(GOOGLE_TOKEN_URL) == []
    (_, _, kwargs) = http.calls_to(URL_INSPECTION_ENDPOINT)[0]
    assert kwargs["json"]["inspectionUrl"] == "https://technedigital.com.br"
    assert kwargs["headers"]["Authorization"] == "Bearer stored-token"
    assert _snapshot(session, credential.id) == before
    assert session.query(IndexingStatus).count() == 0


def test_expiring_token_is_refreshed_before_probing(session, http, make_credential):
    credential = make_credential(expires_in=timedelta(minutes=2))
    http.on(GOOGLE_TOKEN_URL, token_ok("fresh"))
    http.on(URL_INSPECTION_ENDPOINT, _inspection_ok)
    http.on(GOOGLE_TOKENINFO_URL, tokeninfo_ok())

    report = check_connection(session, http=http, clock=fixed_clock)

    assert report.healthy
    (_, _, kwargs) = http.calls_to(URL_INSPECTION_ENDPOINT)[0]
    assert kwargs["headers"]["Authorization"] == "Bearer fresh"
    session.expire_all()
    assert session.get(GoogleCredential, credential.id).token_expires_at == NOW + timedelta(seconds=3600)


def test_missing_credentials(session, http):
    report = check_connection(session, http=http, clock=fixed_clock)
    assert not report.credentials_present
    assert not report.token_refreshable
    assert len(report.problems) == 1
    assert http.calls == []


def test_refresh_failure_stops_further_checks(session, http, make_credential):
    make_credential(expires_in=timedelta(minutes=1))
    http.on(GOOGLE_TOKEN_URL, lambda kwargs: FakeResponse(400, text="invalid_grant"))

    report = check_connection(session, http=http, clock=fixed_clock)

    assert report.credentials_present
    assert not report.token_refreshable
    assert not report.api_reachable
    assert "invalid_grant" in report.problems[0]
    assert http.calls_to(URL_INSPECTION_ENDPOINT) == []


def test_unverified_property_and_missing_scope(session, http, make_credential):
    make_credential()
    http.on(URL_INSPECTION_ENDPOINT, lambda kwargs: FakeResponse(403, text="forbidden"))
    http.on(GOOGLE_TOKENINFO_URL, tokeninfo_ok(scopes=(SCOPE_WEBMASTERS,)))

    report = check_connection(session, http=http, clock=fixed_clock)

    assert report.token_refreshable
    assert not report.api_reachable
    assert not report.scopes_present
    assert not report.healthy
    assert len(report.problems) == 2
    assert any("indexing" in problem for problem in report.problems)
    assert session.query(IndexingStatus).count() == 0
