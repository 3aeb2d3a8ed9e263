import datetime as dt

import pytest
import requests
from urllib3.exceptions import LocationParseError

from seo_audit import scrape
from seo_audit.config import AuditSettings
from seo_audit.errors import FetchError
from seo_audit.schemas import FetchedPage
from seo_audit.scrape import extract_page_tags, extract_tags, fetch_page


def test_extract_tags_reads_robots_canonical_title_and_h1s():
    html = """
    <html>
      <head>
        <title> Test Page </title>
        <META NAME="Robots" CONTENT="noindex, nofollow">
        <link rel="stylesheet" href="/site.css" />
        <link rel="Canonical" href="https://example.com/canon" />
      </head>
      <body>
        <h1>  First heading </h1>
        <div><h1>Second <span>heading</span></h1></div>
      </body>
    </html>
    """
    tags = extract_tags(html)

    assert tags.robots == "noindex, nofollow"
    assert tags.canonical == "https://example.com/canon"
    assert tags.title == "Test Page"
    assert tags.h1s == ("First heading", "Second heading")


def test_extract_tags_distinguishes_absent_from_empty():
    tags = extract_tags('<html><head><meta name="robots" content=""></head><body></body></html>')

    assert tags.robots == ""
    assert tags.canonical is None
    assert tags.title is None
    assert tags.h1s == ()


class _FakeResponse:
    def __init__(self, status_code=200, text="<html></html>", url="https://ex.com/"):
        self.status_code = status_code
        self.text = text
        self.url = url

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


class _FakeSession:
    instances: list["_FakeSession"] = []
    response = _FakeResponse()
    error: Exception | None = None

    def __init__(self):
        self.max_redirects = None
        self.calls = []
        _FakeSession.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def fake_session(monkeypatch):
    _FakeSession.instances = []
    _FakeSession.response = _FakeResponse()
    _FakeSession.error = None
    monkeypatch.setattr(scrape.requests, "Session", _FakeSession)
    return _FakeSession


def test_fetch_page_applies_settings(fake_session):
    fake_session.response = _FakeResponse(text="<h1>Hi</h1>", url="https://ex.com/final")
    settings = AuditSettings(http_timeout=3.5, max_redirects=2, user_agent="TestAgent/1.0")

    page = fetch_page("https://ex.com/", settings)

    session = fake_session.instances[0]
    assert session.max_redirects == 2
    url, kwargs = session.calls[0]
    assert url == "https://ex.com/"
    assert kwargs["timeout"] == 3.5
    assert kwargs["headers"]["User-Agent"] == "TestAgent/1.0"
    assert page.html == "<h1>Hi</h1>"
    assert page.final_url == "https://ex.com/final"
    assert page.fetched_at.tzinfo is not None


def test_fetch_page_wraps_network_errors(fake_session):
    fake_session.error = requests.Timeout("read timed out")

    with pytest.raises(FetchError) as excinfo:
        fetch_page("https://slow.example/", AuditSettings())

    assert excinfo.value.url == "https://slow.example/"
    assert "read timed out" in str(excinfo.value)


def test_fetch_page_rejects_error_status(fake_session):
    fake_session.response = _FakeResponse(status_code=404)

    with pytest.raises(FetchError) as excinfo:
        fetch_page("https://ex.com/missing", AuditSettings())

    assert "404" in excinfo.value.reason


def test_fetch_page_wraps_malformed_host_errors(fake_session):
    url = "http://" + "a" * 70 + ".com/"
    fake_session.error = LocationParseError(url)

    with pytest.raises(FetchError) as excinfo:
        fetch_page(url, AuditSettings())

    assert excinfo.value.url == url


def test_extract_page_tags_attributes_rejected_markup_to_url():
    page = FetchedPage(
        url="https://broken.example/",
        html="<![foo[ x ]]>",
        fetched_at=dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc),
    )

    with pytest.raises(FetchError) as excinfo:
        extract_page_tags(page)

    assert excinfo.value.url == "https://broken.example/"
    assert "unparseable HTML" in excinfo.value.reason
