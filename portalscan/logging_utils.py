import logging
import threading
import time
from typing import Dict, Tuple

_ThrottleKey = Tuple[str, str]

_THROTTLE_LOCK = threading.Lock()
_THROTTLE_STATE: Dict[_ThrottleKey, Dict[str, float]] = {}


def log_suppressed(
    logger: logging.Logger,
    exc: BaseException,
    context: str,
    *,
    level: int = logging.DEBUG,
    sample: int = 5,
    cooldown: float = 120.0,
) -> bool:
    """Log a soft failure without flooding the log.

    The first ``sample`` occurrences per ``(logger, context)`` are written;
    after that at most one entry per ``cooldown`` seconds. Scrapes of
    malformed pages hit the same extraction error over and over, which is
    what this is for.

    Returns True when an entry was actually emitted.
    """
    now = time.monotonic()
    key: _ThrottleKey = (logger.name, context)
    with _THROTTLE_LOCK:
        state = _THROTTLE_STATE.setdefault(key, {'count': 0, 'last_emit': 0.0})
        state['count'] += 1
        count = int(state['count'])
        emit = count <= sample or (now - state['last_emit']) >= cooldown
        if emit:
            state['last_emit'] = now
    if emit:
        logger.log(level, '%s err=%s (seen=%d)', context, exc, count, exc_info=exc)
    return emit


def suppressed_counts() -> Dict[str, int]:
    """Occurrence counters keyed by ``logger:context``."""
    with _THROTTLE_LOCK:
        return {f'{name}:{ctx}': int(st['count']) for (name, ctx), st in _THROTTLE_STATE.items()}


def reset_suppressed_state() -> None:
    """Clear throttle counters. Useful for unit tests."""
    with _THROTTLE_LOCK:
        _THROTTLE_STATE.clear()
