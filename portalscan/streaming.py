"""Incremental result streaming.

The orchestrator runs on its own thread and pushes ``StreamEvent`` objects
into an ``EventChannel``; the HTTP response drains the channel and writes
Server-Sent Events frames. A sentinel closes the channel after the single
``batch_complete`` event, whatever happened to the batch.
"""

from __future__ import annotations
import json
import logging
import queue
import threading
from typing import Iterator, Optional, Sequence

from .models import StreamEvent
from .scanners.core import BatchScraper

DEFAULT_CHANNEL_SIZE = 64
PUT_POLL_SECONDS = 0.5

log = logging.getLogger('portalscan.stream')

_CLOSED = object()


class EventChannel:
    """Bounded, ordered hand-off between one producer and one consumer."""

    def __init__(self, maxsize: int = DEFAULT_CHANNEL_SIZE, cancel: Optional[threading.Event] = None):
        self._queue: queue.Queue = queue.Queue(maxsize=max(1, maxsize))
        self.cancel = cancel or threading.Event()

    def _put(self, item) -> bool:
        # a vanished consumer must not pin the producer thread forever
        while not self.cancel.is_set():
            try:
                self._queue.put(item, timeout=PUT_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def put(self, event: StreamEvent) -> bool:
        return self._put(event)

    def close(self) -> bool:
        return self._put(_CLOSED)

    def __iter__(self) -> Iterator[StreamEvent]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            yield item


def encode_event(event: StreamEvent) -> str:
    """Render one event as an SSE ``data:`` frame."""
    return f'data: {json.dumps(event.to_dict(), separators=(",", ":"))}\n\n'


def produce_batch(scraper: BatchScraper, domains: Sequence[str], channel: EventChannel,
                  include_details: Optional[bool] = None) -> None:
    """Producer side: info, one result per domain, batch_complete, close."""
    try:
        channel.put(StreamEvent.info(scraper.source.name))
        scraper.run(domains, channel.put, include_details=include_details, cancel=channel.cancel)
    except Exception:
        log.exception('batch producer failed domains=%d', len(domains))
    finally:
        channel.put(StreamEvent.batch_complete())
        channel.close()


def stream_scrape(scraper: BatchScraper, domains: Sequence[str], include_details: Optional[bool] = None,
                  channel_size: int = DEFAULT_CHANNEL_SIZE) -> Iterator[str]:
    """Start a batch in the background and yield encoded frames as they arrive.

    Closing the iterator early (client disconnect) cancels the batch: no new
    windows start and in-flight deadlines report cancelled.
    """
    channel = EventChannel(channel_size)
    worker = threading.Thread(
        target=produce_batch, args=(scraper, list(domains), channel, include_details),
        name='portalscan-batch', daemon=True)
    worker.start()
    delivered = 0
    completed = False
    try:
        for event in channel:
            delivered += 1
            yield encode_event(event)
        completed = True
    finally:
        if not completed:
            log.info('stream closed early after %d events, cancelling batch', delivered)
        channel.cancel.set()
