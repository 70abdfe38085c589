"""Content sources and batch orchestration.

Modules:
- base: ContentSource interface
- direct: plain HTTP fetch (requests)
- render: Firecrawl render provider
- core: per-domain scrape and windowed/sequential batch runner
"""

from typing import Any, Mapping

from .base import ContentSource
from .core import (
    DEFAULT_WINDOW_SIZE,
    SCHEDULE_SEQUENTIAL,
    SCHEDULE_WINDOWED,
    BatchScraper,
    iter_windows,
    scrape_domain,
)
from .direct import DirectFetcher
from .render import FirecrawlSource


def select_source(config: Mapping[str, Any]) -> ContentSource:
    """Pick the process-wide content source.

    A configured Firecrawl key selects the render provider; otherwise pages
    are fetched directly.
    """
    api_key = config.get('FIRECRAWL_API_KEY')
    if api_key:
        return FirecrawlSource(api_key, timeout=config.get('RENDER_TIMEOUT'), endpoint=config.get('FIRECRAWL_URL'))
    return DirectFetcher(timeout=config.get('FETCH_TIMEOUT'), max_bytes=config.get('MAX_HTML_BYTES') or 0)


__all__ = [
    'BatchScraper',
    'ContentSource',
    'DEFAULT_WINDOW_SIZE',
    'DirectFetcher',
    'FirecrawlSource',
    'SCHEDULE_SEQUENTIAL',
    'SCHEDULE_WINDOWED',
    'iter_windows',
    'scrape_domain',
    'select_source',
]
