"""Environment-driven settings.

Everything is read from ``PORTALSCAN_*`` variables once, when the app (or
the CLI) starts. Unparseable values fall back to the default instead of
failing startup; out-of-range numbers are clamped.
"""

import logging
import os
from typing import Any, Dict, Mapping, Optional

from .scan.domain import MAX_DOMAINS
from .scanners.core import DEFAULT_WINDOW_SIZE, SCHEDULES, SCHEDULE_WINDOWED
from .scanners.direct import DEFAULT_MAX_HTML_BYTES, DirectFetcher
from .scanners.render import DEFAULT_ENDPOINT, FirecrawlSource

log = logging.getLogger('portalscan.config')


def _env_int(env: Mapping[str, str], name: str, default: int, lo: int, hi: int) -> int:
    try:
        v = int(env.get(name, str(default)) or default)
    except ValueError:
        log.warning('ignoring non-integer %s=%r', name, env.get(name))
        v = default
    return min(max(v, lo), hi)


def _env_float(env: Mapping[str, str], name: str, default: float, lo: float, hi: float) -> float:
    try:
        v = float(env.get(name, str(default)) or default)
    except ValueError:
        log.warning('ignoring non-numeric %s=%r', name, env.get(name))
        v = default
    return min(max(v, lo), hi)


def _env_flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == '':
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def load_config(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    env = os.environ if environ is None else environ
    schedule = (env.get('PORTALSCAN_SCHEDULE') or SCHEDULE_WINDOWED).strip().lower()
    if schedule not in SCHEDULES:
        log.warning('unknown PORTALSCAN_SCHEDULE=%r, using %s', schedule, SCHEDULE_WINDOWED)
        schedule = SCHEDULE_WINDOWED
    return {
        'LOG_LEVEL': (env.get('PORTALSCAN_LOG_LEVEL') or 'INFO').upper(),
        'LOG_FILE': env.get('PORTALSCAN_LOG_FILE') or None,
        'LOG_MAX_BYTES': _env_int(env, 'PORTALSCAN_LOG_MAX_BYTES', 5 * 1024 * 1024, 1024, 1 << 30),
        'LOG_BACKUP_COUNT': _env_int(env, 'PORTALSCAN_LOG_BACKUP_COUNT', 5, 0, 100),
        'FETCH_TIMEOUT': _env_float(env, 'PORTALSCAN_FETCH_TIMEOUT', DirectFetcher.default_timeout, 1.0, 60.0),
        'RENDER_TIMEOUT': _env_float(env, 'PORTALSCAN_RENDER_TIMEOUT', FirecrawlSource.default_timeout, 1.0, 120.0),
        'WINDOW_SIZE': _env_int(env, 'PORTALSCAN_WINDOW_SIZE', DEFAULT_WINDOW_SIZE, 1, 30),
        'SCHEDULE': schedule,
        'MAX_DOMAINS': _env_int(env, 'PORTALSCAN_MAX_DOMAINS', MAX_DOMAINS, 1, 500),
        'MAX_HTML_BYTES': _env_int(env, 'PORTALSCAN_MAX_HTML_BYTES', DEFAULT_MAX_HTML_BYTES, 1024, 50 * 1024 * 1024),
        'CLASSIFY_URL': _env_flag(env, 'PORTALSCAN_CLASSIFY_URL', True),
        'EXTRACT_DETAILS': _env_flag(env, 'PORTALSCAN_EXTRACT_DETAILS', True),
        'PATTERNS_PATH': env.get('PORTALSCAN_PATTERNS_PATH') or None,
        'FIRECRAWL_API_KEY': env.get('PORTALSCAN_FIRECRAWL_API_KEY') or env.get('FIRECRAWL_API_KEY') or None,
        'FIRECRAWL_URL': env.get('PORTALSCAN_FIRECRAWL_URL') or DEFAULT_ENDPOINT,
        'PORTALSCAN_VERSION': env.get('PORTALSCAN_VERSION', '0.1.0'),
    }
