import json
import sys
import pathlib
import threading
import time

import pytest

# Ensure project root is on sys.path so 'import portalscan' works when pytest runs from
# different working directories or when running individual tests.
_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from portalscan import create_app
from portalscan.models import FetchedPage
from portalscan.patterns import load_registry
from portalscan.scan.domain import to_url
from portalscan.scanners import BatchScraper, ContentSource


class FakeSource(ContentSource):
    """In-memory content source.

    ``pages`` maps a domain to HTML, a ``FetchedPage`` or an exception to raise.
    Domains in ``hang`` block until their deadline runs out; domains in
    ``stuck`` sleep ``stuck_seconds`` ignoring the deadline entirely.
    """
    name = 'fake'
    default_timeout = 2.0

    def __init__(self, pages=None, timeout=None, delays=None, hang=(), stuck=(), stuck_seconds=1.0):
        super().__init__(timeout)
        self.pages = dict(pages or {})
        self.delays = dict(delays or {})
        self.hang = set(hang)
        self.stuck = set(stuck)
        self.stuck_seconds = stuck_seconds
        self.calls = []
        self._lock = threading.Lock()

    def fetch(self, domain, deadline):
        with self._lock:
            self.calls.append(domain)
        if domain in self.hang:
            while not deadline.expired():
                time.sleep(0.01)
            deadline.check()
        if domain in self.stuck:
            time.sleep(self.stuck_seconds)
        delay = self.delays.get(domain)
        if delay:
            time.sleep(delay)
        value = self.pages.get(domain, '<html><body>nothing to see</body></html>')
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, FetchedPage):
            return value
        return FetchedPage(html=value, final_url=to_url(domain), status_code=200)


def parse_sse(body):
    """Split an SSE body into decoded ``data:`` payloads."""
    events = []
    for frame in body.split('\n\n'):
        frame = frame.strip()
        if not frame:
            continue
        assert frame.startswith('data: ')
        events.append(json.loads(frame[len('data: '):]))
    return events


@pytest.fixture
def registry():
    return load_registry()


@pytest.fixture
def make_scraper(registry):
    def _make(source=None, **kw):
        kw.setdefault('timeout', 1.0)
        kw.setdefault('grace', 0.5)
        return BatchScraper(source or FakeSource(), registry, **kw)
    return _make


@pytest.fixture
def app(monkeypatch):
    monkeypatch.delenv('PORTALSCAN_FIRECRAWL_API_KEY', raising=False)
    monkeypatch.delenv('FIRECRAWL_API_KEY', raising=False)
    monkeypatch.delenv('PORTALSCAN_SCHEDULE', raising=False)
    app = create_app()
    app.testing = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
