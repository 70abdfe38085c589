"""Content source abstraction.

A content source turns a domain string into page HTML. The direct fetcher
and the render provider are interchangeable behind this interface; which one
a process uses is decided once at startup.
"""

from __future__ import annotations
from abc import ABC, abstractmethod

from ..models import FetchedPage
from ..scan.network import Deadline


class ContentSource(ABC):
    """Source contract.

    ``fetch`` returns a ``FetchedPage`` or raises a ``FetchError`` subclass.
    Implementations must honour ``deadline`` and must not keep state between
    calls: one instance serves every concurrent domain of a batch.
    """

    name: str = 'abstract'
    default_timeout: float = 8.0

    def __init__(self, timeout: float | None = None):
        self.timeout = float(timeout) if timeout else self.default_timeout

    @abstractmethod
    def fetch(self, domain: str, deadline: Deadline) -> FetchedPage:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f'<{type(self).__name__} name={self.name} timeout={self.timeout}>'
