"""Firecrawl render provider.

Used instead of the direct fetcher when an API key is configured. The
provider renders the page remotely and returns HTML; we only ever consume
the ``html`` format and the resolved URL from its metadata.
"""

from __future__ import annotations
import logging
from typing import Any, Dict

import requests

from ..exceptions import FetchTimeoutError, MAX_ERROR_MESSAGE, UnknownFetchError
from ..models import FetchedPage
from ..scan.domain import to_url
from ..scan.network import Deadline
from .base import ContentSource

DEFAULT_ENDPOINT = 'https://api.firecrawl.dev/v1/scrape'

log = logging.getLogger('portalscan.render')


def _provider_error(message: str, **details: Any) -> UnknownFetchError:
    text = f'Firecrawl: {message}'.strip()
    return UnknownFetchError(text[:MAX_ERROR_MESSAGE], details={'provider': 'firecrawl', **details})


class FirecrawlSource(ContentSource):
    name = 'firecrawl'
    default_timeout = 15.0

    def __init__(self, api_key: str, timeout: float | None = None, endpoint: str = DEFAULT_ENDPOINT):
        super().__init__(timeout)
        self.api_key = api_key
        self.endpoint = endpoint or DEFAULT_ENDPOINT

    def _headers(self) -> Dict[str, str]:
        return {
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json',
        }

    def fetch(self, domain: str, deadline: Deadline) -> FetchedPage:
        url = to_url(domain)
        deadline.check()
        budget = max(0.1, deadline.remaining())
        payload = {'url': url, 'formats': ['html'], 'timeout': int(budget * 1000)}
        try:
            resp = requests.post(self.endpoint, json=payload, headers=self._headers(), timeout=budget)
        except requests.exceptions.Timeout as e:
            raise FetchTimeoutError(details={'provider': 'firecrawl'}) from e
        except requests.exceptions.RequestException as e:
            raise _provider_error(str(e) or type(e).__name__) from e
        deadline.check()
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if resp.status_code == 408:
            raise FetchTimeoutError(details={'provider': 'firecrawl', 'provider_status': 408})
        if resp.status_code != 200 or not body.get('success', False):
            msg = body.get('error') or f'HTTP {resp.status_code}'
            log.debug('provider error domain=%s status=%s msg=%s', domain, resp.status_code, msg)
            raise _provider_error(str(msg), provider_status=resp.status_code)
        data = body.get('data') or {}
        meta = data.get('metadata') or {}
        html = data.get('html') or data.get('rawHtml') or ''
        final_url = meta.get('url') or meta.get('sourceURL') or url
        status = meta.get('statusCode')
        return FetchedPage(html=html, final_url=final_url, status_code=status if isinstance(status, int) else None)
