"""Result and stream event records."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

STATUS_DONE = 'done'
STATUS_ERROR = 'error'

EVENT_INFO = 'info'
EVENT_PROCESSING = 'processing'
EVENT_RESULT = 'result'
EVENT_BATCH_COMPLETE = 'batch_complete'


@dataclass(frozen=True)
class FetchedPage:
    """What a content source hands back for classification."""
    html: str
    final_url: Optional[str] = None
    status_code: Optional[int] = None


@dataclass(frozen=True)
class ScrapeOutcome:
    domain: str
    index: int
    status: str
    payment_portals: List[str] = field(default_factory=list)
    psa_portals: List[str] = field(default_factory=list)
    error: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def failed(cls, domain: str, index: int, reason: str) -> 'ScrapeOutcome':
        return cls(domain=domain, index=index, status=STATUS_ERROR, error=reason)

    @property
    def ok(self) -> bool:
        return self.status == STATUS_DONE

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            'domain': self.domain,
            'index': self.index,
            'status': self.status,
            'paymentPortals': list(self.payment_portals),
            'psaPortals': list(self.psa_portals),
        }
        if self.error is not None:
            out['error'] = self.error
        if self.details is not None:
            out['details'] = self.details
        return out


@dataclass(frozen=True)
class StreamEvent:
    """Envelope for everything that travels on the result stream."""
    type: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def info(cls, scraper: str) -> 'StreamEvent':
        return cls(EVENT_INFO, {'scraper': scraper})

    @classmethod
    def processing(cls, domain: str, index: int) -> 'StreamEvent':
        return cls(EVENT_PROCESSING, {'domain': domain, 'index': index})

    @classmethod
    def result(cls, outcome: ScrapeOutcome) -> 'StreamEvent':
        return cls(EVENT_RESULT, outcome.to_dict())

    @classmethod
    def batch_complete(cls) -> 'StreamEvent':
        return cls(EVENT_BATCH_COMPLETE)

    @property
    def terminal(self) -> bool:
        return self.type == EVENT_BATCH_COMPLETE

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, **self.payload}
