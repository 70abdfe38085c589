"""Apply the pattern registry to fetched page content."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .patterns import Detector, PatternRegistry, PAYMENT, PSA, TECH, load_registry


@dataclass
class Classification:
    payment_portals: List[str] = field(default_factory=list)
    psa_portals: List[str] = field(default_factory=list)
    tech_stack: List[Dict[str, str]] = field(default_factory=list)


def build_text(html: str, final_url: Optional[str] = None, fold_url: bool = True) -> str:
    """Lower-cased text the detectors run against.

    With ``fold_url`` the final (post-redirect) URL is appended so signals that
    only show up in the hostname, e.g. ``*.myshopify.com``, still count.
    """
    text = (html or '').lower()
    if fold_url and final_url:
        text = f'{text}\n{final_url.lower()}'
    return text


def match_detectors(text: str, detectors: Iterable[Detector]) -> List[Detector]:
    """Detectors that hit, first declaration per vendor name only."""
    hits: List[Detector] = []
    seen = set()
    for det in detectors:
        if det.name in seen:
            continue
        if det.matches(text):
            seen.add(det.name)
            hits.append(det)
    return hits


def detect_portals(text: str, registry: Optional[PatternRegistry] = None) -> Classification:
    reg = registry or load_registry()
    return Classification(
        payment_portals=[d.name for d in match_detectors(text, reg.detectors(PAYMENT))],
        psa_portals=[d.name for d in match_detectors(text, reg.detectors(PSA))],
    )


def detect_tech_stack(text: str, registry: Optional[PatternRegistry] = None) -> List[Dict[str, str]]:
    reg = registry or load_registry()
    return [{'name': d.name, 'category': d.tag or 'Other'} for d in match_detectors(text, reg.detectors(TECH))]


def classify(html: str, final_url: Optional[str] = None, registry: Optional[PatternRegistry] = None,
             fold_url: bool = True, with_tech: bool = False) -> Classification:
    """Classify one page. Pure function of its inputs; safe to call from any thread."""
    reg = registry or load_registry()
    text = build_text(html, final_url, fold_url)
    result = detect_portals(text, reg)
    if with_tech:
        result.tech_stack = detect_tech_stack(text, reg)
    return result
