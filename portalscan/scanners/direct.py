"""Direct HTTP fetch with a browser-like identity."""

from __future__ import annotations
import logging

import requests

from ..exceptions import HttpStatusError
from ..models import FetchedPage
from ..scan.domain import to_url
from ..scan.network import Deadline, classify_error
from .base import ContentSource

DEFAULT_MAX_HTML_BYTES = 2 * 1024 * 1024
CHUNK_SIZE = 16 * 1024

BROWSER_HEADERS = {
    'User-Agent': ('Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
                   '(KHTML, like Gecko) Chrome/124.0 Safari/537.36'),
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
}

log = logging.getLogger('portalscan.fetch')


def _decode(body: bytes, resp) -> str:
    ctype = (resp.headers.get('content-type') or '').lower()
    encoding = resp.encoding if 'charset=' in ctype and resp.encoding else 'utf-8'
    try:
        return body.decode(encoding, errors='replace')
    except LookupError:
        return body.decode('utf-8', errors='replace')


class DirectFetcher(ContentSource):
    name = 'fetch'
    default_timeout = 8.0

    def __init__(self, timeout: float | None = None, max_bytes: int = DEFAULT_MAX_HTML_BYTES):
        super().__init__(timeout)
        self.max_bytes = max_bytes if max_bytes and max_bytes > 0 else DEFAULT_MAX_HTML_BYTES

    def _read_body(self, resp, deadline: Deadline) -> bytes:
        buff = []
        total = 0
        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
            # a server trickling bytes must not outlive the budget
            deadline.check()
            if not chunk:
                continue
            buff.append(chunk)
            total += len(chunk)
            if total >= self.max_bytes:
                log.debug('body cap reached url=%s bytes=%d', resp.url, total)
                break
        return b''.join(buff)[:self.max_bytes]

    def fetch(self, domain: str, deadline: Deadline) -> FetchedPage:
        url = to_url(domain)
        deadline.check()
        try:
            resp = requests.get(url, headers=BROWSER_HEADERS, timeout=max(0.1, deadline.remaining()),
                                allow_redirects=True, stream=True)
        except (requests.exceptions.RequestException, OSError) as e:
            raise classify_error(e) from e
        try:
            status = resp.status_code
            if not 200 <= status < 300:
                raise HttpStatusError(status, resp.url or url)
            body = self._read_body(resp, deadline)
            final_url = resp.url or url
            html = _decode(body, resp)
        except (requests.exceptions.RequestException, OSError) as e:
            raise classify_error(e) from e
        finally:
            resp.close()
        log.debug('fetched domain=%s final_url=%s status=%s bytes=%d', domain, final_url, status, len(body))
        return FetchedPage(html=html, final_url=final_url, status_code=status)
