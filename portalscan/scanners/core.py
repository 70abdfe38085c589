"""Batch orchestration.

``scrape_domain`` turns one domain into exactly one ``ScrapeOutcome``; it
never raises. ``BatchScraper`` runs a request's domains through it, either in
fixed-size concurrent windows or one at a time, and pushes events to an
``emit`` callable as soon as they are known.
"""

from __future__ import annotations
import concurrent.futures
import logging
import threading
import time
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from .. import metrics
from ..classifier import classify
from ..exceptions import FetchError, FetchTimeoutError, UnknownFetchError
from ..metadata import extract_details
from ..models import STATUS_DONE, STATUS_ERROR, ScrapeOutcome, StreamEvent
from ..patterns import PatternRegistry
from ..scan.domain import extract_host
from ..scan.network import Deadline
from .base import ContentSource

SCHEDULE_WINDOWED = 'windowed'
SCHEDULE_SEQUENTIAL = 'sequential'
SCHEDULES = (SCHEDULE_WINDOWED, SCHEDULE_SEQUENTIAL)

DEFAULT_WINDOW_SIZE = 5
# Extra wait on top of the per-domain budget before a window gives up on a straggler
WINDOW_GRACE_SECONDS = 2.0

Emit = Callable[[StreamEvent], object]

log = logging.getLogger('portalscan.scrape')


def iter_windows(domains: Sequence[str], size: int) -> Iterator[Tuple[int, List[str]]]:
    """Yield ``(start_index, chunk)`` pairs covering ``domains`` in order."""
    size = max(1, int(size))
    for start in range(0, len(domains), size):
        yield start, list(domains[start:start + size])


def scrape_domain(domain: str, index: int, source: ContentSource, registry: PatternRegistry, *,
                  timeout: Optional[float] = None, include_details: bool = False, fold_url: bool = True,
                  cancel: Optional[threading.Event] = None,
                  abandoned: Optional[threading.Event] = None) -> ScrapeOutcome:
    """Fetch, classify and (optionally) extract details for one domain.

    ``abandoned`` is set by a window that already reported this domain as a
    timeout; a late outcome is then returned but not counted in metrics.
    """
    deadline = Deadline(timeout or source.timeout, cancel=cancel)
    error_code = None
    with metrics.track_active_scrape() as tracker:
        try:
            page = source.fetch(domain, deadline)
        except FetchError as err:
            outcome = ScrapeOutcome.failed(domain, index, err.reason)
            error_code = err.error_code
            log.info('scrape failed domain=%s index=%d code=%s reason=%s', domain, index, err.error_code, err.reason)
        except Exception as exc:
            # a source bug must cost only this domain
            err = UnknownFetchError(str(exc) or type(exc).__name__)
            outcome = ScrapeOutcome.failed(domain, index, err.reason)
            error_code = err.error_code
            log.exception('unexpected source failure domain=%s index=%d', domain, index)
        else:
            result = classify(page.html, page.final_url, registry, fold_url=fold_url, with_tech=include_details)
            details = None
            if include_details:
                details = extract_details(page.html, tech_stack=result.tech_stack, scraper=source.name)
            outcome = ScrapeOutcome(
                domain=domain,
                index=index,
                status=STATUS_DONE,
                payment_portals=result.payment_portals,
                psa_portals=result.psa_portals,
                details=details,
            )
            log.info('scrape done domain=%s index=%d payment=%s psa=%s', domain, index,
                     result.payment_portals, result.psa_portals)
        if abandoned is not None and abandoned.is_set():
            log.info('late outcome discarded domain=%s index=%d status=%s after=%.2fs',
                     domain, index, outcome.status, tracker.duration)
            return outcome
        if error_code:
            metrics.record_error(error_code)
        else:
            metrics.record_detections('payment', len(outcome.payment_portals))
            metrics.record_detections('psa', len(outcome.psa_portals))
        metrics.record_scrape(source.name, outcome.status, tracker.duration)
    return outcome


class BatchScraper:
    """Runs a domain list against one content source.

    Holds no per-batch state, so a single instance is shared by every
    request of the process.
    """

    def __init__(self, source: ContentSource, registry: PatternRegistry, *,
                 window_size: int = DEFAULT_WINDOW_SIZE, timeout: Optional[float] = None,
                 schedule: str = SCHEDULE_WINDOWED, fold_url: bool = True, include_details: bool = True,
                 grace: float = WINDOW_GRACE_SECONDS):
        if schedule not in SCHEDULES:
            raise ValueError(f'unknown schedule {schedule!r}, expected one of {SCHEDULES}')
        self.source = source
        self.registry = registry
        self.window_size = max(1, int(window_size))
        self.timeout = float(timeout) if timeout else source.timeout
        self.schedule = schedule
        self.fold_url = fold_url
        self.include_details = include_details
        self.grace = grace

    def scrape_one(self, domain: str, index: int, include_details: Optional[bool] = None,
                   cancel: Optional[threading.Event] = None,
                   abandoned: Optional[threading.Event] = None) -> ScrapeOutcome:
        details = self.include_details if include_details is None else include_details
        try:
            return scrape_domain(domain, index, self.source, self.registry, timeout=self.timeout,
                                 include_details=details, fold_url=self.fold_url, cancel=cancel,
                                 abandoned=abandoned)
        except Exception as e:
            log.exception('scrape crashed domain=%s index=%d', domain, index)
            return ScrapeOutcome.failed(domain, index, UnknownFetchError(str(e)).reason)

    def run(self, domains: Sequence[str], emit: Emit, *, include_details: Optional[bool] = None,
            cancel: Optional[threading.Event] = None) -> int:
        """Scrape ``domains`` and emit one result event per domain.

        Returns the number of outcomes emitted. Stops early only when
        ``cancel`` is set (the consumer went away).
        """
        started = time.time()
        metrics.record_batch(self.schedule)
        log.info('batch start domains=%d schedule=%s window=%d source=%s timeout=%.1fs',
                 len(domains), self.schedule, self.window_size, self.source.name, self.timeout)
        if self.schedule == SCHEDULE_SEQUENTIAL:
            emitted = self._run_sequential(domains, emit, include_details, cancel)
        else:
            emitted = self._run_windowed(domains, emit, include_details, cancel)
        log.info('batch finished domains=%d emitted=%d duration=%.2fs', len(domains), emitted, time.time() - started)
        return emitted

    def _run_sequential(self, domains, emit, include_details, cancel) -> int:
        emitted = 0
        for index, domain in enumerate(domains):
            if cancel is not None and cancel.is_set():
                log.info('batch cancelled before index=%d', index)
                break
            emit(StreamEvent.processing(domain, index))
            emit(StreamEvent.result(self.scrape_one(domain, index, include_details, cancel)))
            emitted += 1
        return emitted

    def _run_windowed(self, domains, emit, include_details, cancel) -> int:
        emitted = 0
        for start, window in iter_windows(domains, self.window_size):
            if cancel is not None and cancel.is_set():
                log.info('batch cancelled before window start=%d', start)
                break
            for outcome in self._run_window(start, window, include_details, cancel):
                emit(StreamEvent.result(outcome))
                emitted += 1
        return emitted

    def _run_window(self, start: int, window: List[str], include_details, cancel) -> Iterator[ScrapeOutcome]:
        """Yield the window's outcomes in completion order.

        The window is resolved before this generator finishes: stragglers still
        running after ``timeout + grace`` are reported as timeouts and left to
        die on their own deadline.
        """
        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=len(window), thread_name_prefix='portalscan-fetch')
        abandoned = {idx: threading.Event() for idx in range(start, start + len(window))}
        future_to_idx = {
            executor.submit(self.scrape_one, domain, start + offset, include_details, cancel,
                            abandoned[start + offset]): start + offset
            for offset, domain in enumerate(window)
        }
        pending = set(future_to_idx)
        try:
            for future in concurrent.futures.as_completed(future_to_idx, timeout=self.timeout + self.grace):
                pending.discard(future)
                yield self._collect(future, window, start, future_to_idx[future])
        except concurrent.futures.TimeoutError:
            for future in sorted(pending, key=lambda f: future_to_idx[f]):
                idx = future_to_idx[future]
                if future.done() and not future.cancelled():
                    yield self._collect(future, window, start, idx)
                    continue
                abandoned[idx].set()
                future.cancel()
                domain = window[idx - start]
                log.warning('window straggler timed out domain=%s index=%d host=%s', domain, idx, extract_host(domain))
                metrics.record_error(FetchTimeoutError.error_code)
                metrics.record_scrape(self.source.name, STATUS_ERROR, self.timeout + self.grace)
                yield ScrapeOutcome.failed(domain, idx, FetchTimeoutError().reason)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    @staticmethod
    def _collect(future: concurrent.futures.Future, window: List[str], start: int, idx: int) -> ScrapeOutcome:
        try:
            return future.result()
        except Exception as e:
            domain = window[idx - start]
            log.exception('scrape worker crashed domain=%s index=%d', domain, idx)
            return ScrapeOutcome.failed(domain, idx, UnknownFetchError(str(e)).reason)
