import logging
from datetime import timedelta

import pytest

from conftest import NOW, FakeResponse, fixed_clock
from seosync.constants import ERROR_FORBIDDEN, INDEXING_PUBLISH_ENDPOINT, PAGE_TYPE_BLOG_POST, URL_INSPECTION_ENDPOINT
from seosync.errors import InvalidRequestError, NotConfiguredError, ProviderError
from seosync.indexing import runner
from seosync.models import BlogPost, GoogleCredential, IndexingStatus

SITE = "https://technedigital.com.br"
# 入口使用真实时钟，凭据需足够久才过期
LONG_LIVED = timedelta(days=36500)


def _inspection_ok(kwargs):
    return FakeResponse(200, {"inspectionResult": {"indexStatusResult": {"verdict": "PASS"}}})


def test_full_inspection_covers_enumerated_urls(session, http, pacer, make_credential):
    make_credential(expires_in=LONG_LIVED)
    session.add(BlogPost(slug="hello", status="published"))
    session.add(BlogPost(slug="hidden", status="draft"))
    session.commit()
    http.on(URL_INSPECTION_ENDPOINT, _inspection_ok)

    run = runner.run_full_inspection(session, http=http, pacer=pacer)

    assert run.total == 7
    assert run.error_count == 0
    assert f"{SITE}/blog/hello" in [item.url for item in run.results]
    assert session.query(IndexingStatus).count() == 7
    assert all(call[2]["json"]["siteUrl"] == SITE for call in http.calls)


def test_full_inspection_without_credential_does_no_work(session, http, pacer):
    with pytest.raises(NotConfiguredError):
        runner.run_full_inspection(session, http=http, pacer=pacer)
    assert http.calls == []
    assert session.query(IndexingStatus).count() == 0


def test_submission_requires_urls(session, http, pacer, make_credential):
    make_credential(expires_in=LONG_LIVED)
    with pytest.raises(InvalidRequestError):
        runner.run_submission(session, ["  ", ""], http=http, pacer=pacer)
    assert http.calls == []


def test_submission_infers_page_type(session, http, pacer, make_credential):
    make_credential(expires_in=LONG_LIVED)
    http.on(INDEXING_PUBLISH_ENDPOINT, lambda kwargs: FakeResponse(200, {}))

    run = runner.run_submission(session, [f" {SITE}/blog/hello "], http=http, pacer=pacer)

    assert run.success_count == 1
    row = session.query(IndexingStatus).one()
    assert row.url == f"{SITE}/blog/hello"
    assert row.page_type == PAGE_TYPE_BLOG_POST


def test_auto_submit_respects_switch(session, http, pacer, make_credential):
    make_credential(auto_submit_on_publish=False)
    assert runner.run_auto_submit(session, f"{SITE}/blog/hello", http=http, pacer=pacer) is None
    assert http.calls == []


def test_auto_submit_keeps_reference(session, http, pacer, make_credential):
    make_credential(expires_in=LONG_LIVED, auto_submit_on_publish=True)
    http.on(INDEXING_PUBLISH_ENDPOINT, lambda kwargs: FakeResponse(200, {}))

    run = runner.run_auto_submit(session, f"{SITE}/blog/hello", PAGE_TYPE_BLOG_POST, "42", http=http, pacer=pacer)

    assert run.success_count == 1
    row = session.query(IndexingStatus).one()
    assert row.reference_id == "42"


def test_scheduler_run_once_logs_configuration_errors(session_factory, caplog):
    scheduler = runner.IndexingScheduler(session_factory, interval_minutes=5)
    with caplog.at_level(logging.ERROR, logger="seosync.indexing.runner"):
        assert scheduler.run_once() is None
    assert "未配置" in caplog.text


def test_scheduler_disabled_when_interval_is_zero(session_factory):
    scheduler = runner.IndexingScheduler(session_factory, interval_minutes=0)
    scheduler.start()
    assert scheduler.running is False
    scheduler.stop()


SITEMAP_ENDPOINT = (
    "https://www.googleapis.com/webmasters/v3/sites/"
    "https%3A%2F%2Ftechnedigital.com.br/sitemaps/https%3A%2F%2Ftechnedigital.com.br%2Fsitemap.xml"
)


def test_sitemap_submission_respects_switch(session, http, make_credential):
    credential = make_credential(expires_in=LONG_LIVED, auto_submit_sitemap=False)

    assert runner.submit_sitemap(session, http=http, clock=fixed_clock) is None

    assert http.calls == []
    session.expire_all()
    assert session.get(GoogleCredential, credential.id).last_sitemap_submit is None


def test_sitemap_submission_records_time(session, http, make_credential):
    credential = make_credential(expires_in=LONG_LIVED, auto_submit_sitemap=True)
    http.on(SITEMAP_ENDPOINT, lambda kwargs: FakeResponse(204, text=""))

    submission = runner.submit_sitemap(session, http=http, clock=fixed_clock)

    assert submission.sitemap_url == f"{SITE}/sitemap.xml"
    assert submission.submitted_at == NOW
    ((method, _, kwargs),) = http.calls
    assert method == "PUT"
    assert kwargs["headers"]["Authorization"] == "Bearer stored-token"
    session.expire_all()
    assert session.get(GoogleCredential, credential.id).last_sitemap_submit == NOW


def test_sitemap_submission_on_unverified_property(session, http, make_credential):
    credential = make_credential(expires_in=LONG_LIVED, auto_submit_sitemap=True)
    http.on(SITEMAP_ENDPOINT, lambda kwargs: FakeResponse(403, text="User does not have sufficient permission"))

    with pytest.raises(ProviderError) as exc:
        runner.submit_sitemap(session, http=http, clock=fixed_clock)

    assert exc.value.classification == ERROR_FORBIDDEN
    assert exc.value.status_code == 502
    session.expire_all()
    assert session.get(GoogleCredential, credential.id).last_sitemap_submit is None
