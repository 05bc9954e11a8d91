"""
Test Configuration
==================

Pytest fixtures for the SearchCast frame service.

The Wikipedia API is never hit: every fetcher gets an ``httpx.MockTransport``
and records the requests it would have sent.
"""

import json
import logging

import httpx
import pytest
from fastapi.testclient import TestClient

from apps.frame.app.config import Settings
from apps.frame.app.main import create_app
from apps.frame.app.renderer import CardRenderer
from apps.frame.app.summary import SummaryFetcher

BASE_URL = "https://frame.example.com"
API_URL = "https://en.wikipedia.org/w/api.php"

CANADA_EXTRACT = (
    "Canada is a country in North America. "
    "Its ten provinces and three territories extend from the Atlantic Ocean to the Pacific Ocean. "
    "It is the world's second-largest country by total area."
)


def wiki_page(extract, page_id="5042916", title="Canada"):
    page = {"pageid": int(page_id), "ns": 0, "title": title}
    if extract is not None:
        page["extract"] = extract
    return {"batchcomplete": "", "query": {"pages": {page_id: page}}}


WIKI_MISSING = {"batchcomplete": "", "query": {"pages": {"-1": {"ns": 0, "title": "zzqqxx123", "missing": ""}}}}


class RecordingWiki:
    """Serves a canned Wikipedia response and remembers every request."""

    def __init__(self, body=None, status_code=200, exc=None):
        self.body = body
        self.status_code = status_code
        self.exc = exc
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if isinstance(self.body, (dict, list)):
            return httpx.Response(self.status_code, content=json.dumps(self.body).encode())
        return httpx.Response(self.status_code, content=(self.body or "").encode())

    def fetcher(self) -> SummaryFetcher:
        return SummaryFetcher(API_URL, timeout=1.0, user_agent="tests", transport=httpx.MockTransport(self))


@pytest.fixture(autouse=True)
def restore_log_level():
    """create_app() sets the level of the shared "searchcast" logger."""
    logger = logging.getLogger("searchcast")
    level = logger.level
    yield
    logger.setLevel(level)


@pytest.fixture
def public_dir(tmp_path):
    d = tmp_path / "public"
    d.mkdir()
    (d / "icon.png").write_bytes(b"\x89PNG\r\n\x1a\nfallback-icon")
    return d


@pytest.fixture
def settings(public_dir):
    return Settings(
        base_url=BASE_URL,
        vercel_url=None,
        public_dir=str(public_dir),
        profile_id="aminphantom.eth",
        profile_url=None,
        log_events=True,
    )


@pytest.fixture
def canada_wiki():
    return RecordingWiki(wiki_page(CANADA_EXTRACT))


@pytest.fixture
def make_client(settings):
    def _make(wiki=None, renderer=None, cfg=None):
        wiki = wiki or RecordingWiki(wiki_page(CANADA_EXTRACT))
        app = create_app(cfg or settings, fetcher=wiki.fetcher(), renderer=renderer or CardRenderer())
        return TestClient(app)
    return _make
