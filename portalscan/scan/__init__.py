"""PortalScan scanning helpers.

Modules:
- domain: Domain/URL normalisation and request validation
- network: Per-call deadlines and transport error classification
"""

from .domain import (
    MAX_DOMAINS,
    extract_host,
    to_url,
    validate_domains,
)
from .network import (
    Deadline,
    classify_error,
)

__all__ = [
    # domain.py exports
    'MAX_DOMAINS',
    'extract_host',
    'to_url',
    'validate_domains',
    # network.py exports
    'Deadline',
    'classify_error',
]
