"""Prometheus metrics for PortalScan.

Provides application metrics in Prometheus format for monitoring and alerting.
Metrics are exposed at /metrics/prometheus endpoint.
"""

import time

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST

# ============ Metrics Definitions ============

# Per-domain scrape counters
SCRAPE_TOTAL = Counter(
    'portalscan_scrapes_total',
    'Total number of domain scrapes performed',
    ['source', 'status']  # source: fetch/firecrawl, status: done/error
)

SCRAPE_DURATION = Histogram(
    'portalscan_scrape_duration_seconds',
    'Time spent fetching and classifying one domain',
    ['source'],
    buckets=[0.25, 0.5, 1, 2, 4, 8, 15, 30]
)

ACTIVE_SCRAPES = Gauge(
    'portalscan_active_scrapes',
    'Number of domain scrapes currently in flight'
)

# Error counter by taxonomy code
ERRORS_TOTAL = Counter(
    'portalscan_errors_total',
    'Total number of per-domain scrape errors',
    ['error_type']  # TIMEOUT, DNS_ERROR, HTTP_STATUS, ...
)

BATCHES_TOTAL = Counter(
    'portalscan_batches_total',
    'Total number of scrape batches streamed',
    ['schedule']
)

VENDOR_HITS = Counter(
    'portalscan_vendor_detections_total',
    'Vendor detections by category',
    ['category']
)


# ============ Helper Functions ============

def record_scrape(source: str, status: str, duration: float):
    """Record one finished domain scrape.

    Args:
        source: content source name ('fetch' or 'firecrawl')
        status: 'done' or 'error'
        duration: seconds spent on the domain
    """
    SCRAPE_TOTAL.labels(source=source, status=status).inc()
    SCRAPE_DURATION.labels(source=source).observe(duration)


def record_error(error_type: str):
    """Record error by taxonomy code."""
    ERRORS_TOTAL.labels(error_type=error_type).inc()


def record_batch(schedule: str):
    BATCHES_TOTAL.labels(schedule=schedule).inc()


def record_detections(category: str, count: int):
    if count > 0:
        VENDOR_HITS.labels(category=category).inc(count)


def track_active_scrape():
    """Context manager to track in-flight scrape count."""
    class ScrapeTracker:
        def __enter__(self):
            ACTIVE_SCRAPES.inc()
            self.start_time = time.time()
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            ACTIVE_SCRAPES.dec()
            return False

        @property
        def duration(self):
            return time.time() - self.start_time

    return ScrapeTracker()


def get_metrics():
    """Get current metrics in Prometheus format.

    Returns:
        bytes: Prometheus-formatted metrics
    """
    return generate_latest()


def get_content_type():
    """Get Prometheus content type header value."""
    return CONTENT_TYPE_LATEST
