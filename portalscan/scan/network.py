"""Network utilities for scraping.

This module handles:
- Per-call deadlines (explicit cancellation tokens)
- Transport error classification into the fetch error taxonomy
"""

import errno
import re
import socket
import ssl
import threading
import time
from typing import Iterator, Optional

import requests

from ..exceptions import (
    ConnectionRefusedFetchError,
    ConnectionResetFetchError,
    DnsError,
    FetchError,
    FetchTimeoutError,
    TlsError,
    UnknownFetchError,
)


# ============ Deadlines ============

class Deadline:
    """Time budget for one network call, optionally tied to a batch-wide cancel event.

    Passed explicitly into every content-source call so that a slow domain
    can only ever exhaust its own budget.
    """

    def __init__(self, seconds: float, cancel: Optional[threading.Event] = None):
        self.seconds = float(seconds)
        self.expires_at = time.monotonic() + self.seconds
        self._cancel = cancel

    @property
    def cancelled(self) -> bool:
        return self._cancel is not None and self._cancel.is_set()

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    def expired(self) -> bool:
        return self.cancelled or self.remaining() <= 0

    def check(self):
        """Raise ``FetchTimeoutError`` once the budget is gone or the batch was cancelled."""
        if self.cancelled:
            raise FetchTimeoutError('Cancelled', details={'cancelled': True})
        if self.remaining() <= 0:
            raise FetchTimeoutError(details={'budget_seconds': self.seconds})


# ============ Error Classification ============

_DNS_MARKERS = (
    'name or service not known', 'nodename nor servname', 'getaddrinfo failed',
    'failed to resolve', 'name resolution', 'nxdomain', 'enotfound',
    'temporary failure in name resolution', 'no address associated',
)
_REFUSED_MARKERS = ('connection refused', 'econnrefused', 'actively refused')
_TLS_MARKERS = ('certificate', 'ssl', 'tls', 'cert_')
_RESET_MARKERS = ('connection reset', 'econnreset', 'connection aborted', 'remotedisconnected')
_TIMEOUT_MARKERS = ('timed out', 'timeout')

_ERRNO_ERRORS = {
    errno.ETIMEDOUT: FetchTimeoutError,
    errno.ECONNREFUSED: ConnectionRefusedFetchError,
    errno.ECONNRESET: ConnectionResetFetchError,
}
# Network-level failures with no taxonomy label; reported with their own message
_UNREACHABLE_ERRNOS = (errno.EHOSTUNREACH, errno.ENETUNREACH)

# Parts of urllib3/requests messages that carry the target host or URL
_HOST_NOISE_RE = re.compile(
    r"\w+\(host='[^']*', port=\d+\)"
    r"|<[\w.]+ object at 0x[0-9a-f]+>"
    r"|\b[a-z][a-z0-9+.-]*://\S+"
    r"|url: \S+"
    r"|host='[^']*'"
    r"|'[^'\s]+\.[^'\s]+'",
    re.I,
)


def _exception_chain(err: BaseException) -> Iterator[BaseException]:
    """Walk wrapped exceptions: causes, contexts, urllib3 ``reason`` and exception args."""
    stack = [err]
    seen = set()
    while stack:
        cur = stack.pop(0)
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur
        for nxt in (cur.__cause__, cur.__context__, getattr(cur, 'reason', None)):
            if isinstance(nxt, BaseException):
                stack.append(nxt)
        for arg in getattr(cur, 'args', ()):
            if isinstance(arg, BaseException):
                stack.append(arg)


def _own_message(e: BaseException) -> str:
    """Exception text with host names, URLs and object reprs removed."""
    text = _HOST_NOISE_RE.sub(' ', str(e))
    return ' '.join(text.split()).strip(' :;,')


def classify_error(err: BaseException) -> FetchError:
    """Classify a transport failure into the fetch error taxonomy.

    Type and errno checks over the whole exception chain come first; message
    text is the fallback for wrappers that only keep a string. Messages are
    scrubbed of the target host first so a host like ``www.timeout.com``
    cannot pick the label.

    Returns:
        One of FetchTimeoutError, DnsError, ConnectionRefusedFetchError,
        TlsError, ConnectionResetFetchError or UnknownFetchError
    """
    if isinstance(err, FetchError):
        return err
    chain = list(_exception_chain(err))
    for e in chain:
        if isinstance(e, (requests.exceptions.Timeout, socket.timeout, TimeoutError)):
            return FetchTimeoutError(details={'cause': type(e).__name__})
    for e in chain:
        if isinstance(e, (requests.exceptions.SSLError, ssl.SSLError)):
            return TlsError(details={'cause': type(e).__name__})
        if isinstance(e, socket.gaierror):
            return DnsError(details={'cause': type(e).__name__})
        if isinstance(e, ConnectionRefusedError):
            return ConnectionRefusedFetchError(details={'cause': type(e).__name__})
        if isinstance(e, ConnectionResetError):
            return ConnectionResetFetchError(details={'cause': type(e).__name__})
        if isinstance(e, OSError) and e.errno in _ERRNO_ERRORS:
            return _ERRNO_ERRORS[e.errno](details={'cause': type(e).__name__, 'errno': e.errno})
    # innermost first: wrappers only restate what they wrap
    messages = [m for m in (_own_message(e) for e in reversed(chain)) if m]
    detail = messages[0] if messages else type(err).__name__
    if any(isinstance(e, OSError) and e.errno in _UNREACHABLE_ERRNOS for e in chain):
        return UnknownFetchError(detail)
    msg = ' '.join(messages).lower()
    if any(m in msg for m in _TIMEOUT_MARKERS):
        return FetchTimeoutError()
    if any(m in msg for m in _DNS_MARKERS):
        return DnsError()
    if any(m in msg for m in _REFUSED_MARKERS):
        return ConnectionRefusedFetchError()
    if any(m in msg for m in _TLS_MARKERS):
        return TlsError()
    if any(m in msg for m in _RESET_MARKERS):
        return ConnectionResetFetchError()
    return UnknownFetchError(detail)


# ============ Exports ============

__all__ = [
    'Deadline',
    'classify_error',
]
