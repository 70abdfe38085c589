"""Vendor pattern registry.

The detection tables live in ``data/patterns.json`` rather than in code so a
deployment can swap them (``PORTALSCAN_PATTERNS_PATH``) without a release.
File layout::

    {"categories": {"payment": [{"name": ..., "patterns": [...]}, ...],
                    "psa": [...],
                    "tech": [{"name": ..., "category": ..., "patterns": [...]}]}}

Entry order inside a category is significant: classifier output follows it.
Compiled registries are cached per path and never mutated afterwards, so one
instance is shared by every concurrent scrape.
"""

from __future__ import annotations
import json
import logging
import os
import pathlib
import re
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .exceptions import ConfigurationError

PAYMENT = 'payment'
PSA = 'psa'
TECH = 'tech'
REQUIRED_CATEGORIES = (PAYMENT, PSA)

DEFAULT_PATTERNS_PATH = pathlib.Path(__file__).resolve().parent / 'data' / 'patterns.json'

_CACHE: Dict[str, 'PatternRegistry'] = {}
_CACHE_LOCK = threading.Lock()

log = logging.getLogger('portalscan.patterns')


@dataclass(frozen=True)
class Detector:
    name: str
    patterns: Tuple[re.Pattern, ...]
    tag: Optional[str] = None

    def matches(self, text: str) -> bool:
        # any() stops at the first hit; the remaining patterns cannot change the answer
        return any(p.search(text) for p in self.patterns)


@dataclass(frozen=True)
class PatternRegistry:
    categories: Mapping[str, Tuple[Detector, ...]]
    source: str = '<memory>'

    def detectors(self, category: str) -> Tuple[Detector, ...]:
        return self.categories.get(category, ())

    def vendor_names(self, category: str) -> Tuple[str, ...]:
        seen = []
        for det in self.detectors(category):
            if det.name not in seen:
                seen.append(det.name)
        return tuple(seen)


def _compile(patterns: Any, where: str) -> Tuple[re.Pattern, ...]:
    items = patterns if isinstance(patterns, list) else [patterns]
    out = []
    for s in items:
        if not isinstance(s, str) or not s:
            continue
        try:
            out.append(re.compile(s, re.I))
        except re.error:
            log.warning('pattern is not a valid regex, matching literally where=%s pattern=%r', where, s)
            out.append(re.compile(re.escape(s), re.I))
    return tuple(out)


def build_registry(raw: Mapping[str, Any], source: str = '<memory>') -> PatternRegistry:
    """Compile an already-parsed pattern document."""
    cats = raw.get('categories') if isinstance(raw, Mapping) else None
    if not isinstance(cats, Mapping):
        raise ConfigurationError('patterns', f'{source}: missing "categories" mapping')
    for required in REQUIRED_CATEGORIES:
        if required not in cats:
            raise ConfigurationError('patterns', f'{source}: missing category "{required}"')
    compiled: Dict[str, Tuple[Detector, ...]] = {}
    for cat_name, entries in cats.items():
        if not isinstance(entries, list):
            raise ConfigurationError('patterns', f'{source}: category "{cat_name}" must be a list')
        detectors = []
        for pos, entry in enumerate(entries):
            name = entry.get('name') if isinstance(entry, Mapping) else None
            if not name or not isinstance(name, str):
                raise ConfigurationError('patterns', f'{source}: {cat_name}[{pos}] has no name')
            pats = _compile(entry.get('patterns'), f'{cat_name}/{name}')
            if not pats:
                raise ConfigurationError('patterns', f'{source}: {cat_name}/{name} has no usable patterns')
            tag = entry.get('category')
            detectors.append(Detector(name=name, patterns=pats, tag=tag if isinstance(tag, str) else None))
        compiled[cat_name] = tuple(detectors)
    return PatternRegistry(categories=MappingProxyType(compiled), source=source)


def load_registry(path: Optional[str] = None) -> PatternRegistry:
    """Load (once) and return the registry for ``path``.

    Resolution order: explicit argument, ``PORTALSCAN_PATTERNS_PATH``, the
    bundled table.
    """
    target = path or os.environ.get('PORTALSCAN_PATTERNS_PATH') or str(DEFAULT_PATTERNS_PATH)
    with _CACHE_LOCK:
        cached = _CACHE.get(target)
        if cached is not None:
            return cached
        p = pathlib.Path(target)
        try:
            with p.open('r', encoding='utf-8') as f:
                raw = json.load(f)
        except FileNotFoundError:
            raise ConfigurationError('PORTALSCAN_PATTERNS_PATH', f'pattern file not found: {target}')
        except json.JSONDecodeError as e:
            raise ConfigurationError('PORTALSCAN_PATTERNS_PATH', f'invalid JSON in {target}: {e}')
        registry = build_registry(raw, source=target)
        _CACHE[target] = registry
    log.info('pattern registry loaded path=%s %s', target,
             ' '.join(f'{k}={len(v)}' for k, v in registry.categories.items()))
    return registry


def clear_cache() -> None:
    with _CACHE_LOCK:
        _CACHE.clear()
