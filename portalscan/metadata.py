"""Contact and page metadata extraction.

Regex based on purpose: pages are often broken HTML and all we need is a
handful of fields. Every field is best-effort and defaults to empty.
"""

from __future__ import annotations
import html as html_lib
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .logging_utils import log_suppressed

MAX_EMAILS = 5
MAX_PHONES = 5

TITLE_RE = re.compile(r'<title[^>]*>(.*?)</title>', re.I | re.S)
META_TAG_RE = re.compile(r'<meta\b[^>]*>', re.I)
ATTR_RE = re.compile(r'([a-zA-Z_:][-a-zA-Z0-9_:.]*)\s*=\s*(?:"([^"]*)"|\'([^\']*)\'|([^\s"\'>]+))')
EMAIL_RE = re.compile(r'[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}', re.I)
PHONE_RE = re.compile(r'(?<!\w)(?:\+?1[\s.-]?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}(?!\d)')
TEL_HREF_RE = re.compile(r'href\s*=\s*["\']tel:([^"\']+)["\']', re.I)
SCRIPT_STYLE_RE = re.compile(r'<(script|style|noscript)\b[^>]*>.*?</\1\s*>', re.I | re.S)
TAG_RE = re.compile(r'<[^>]+>')
WS_RE = re.compile(r'\s+')

ASSET_SUFFIXES = ('.png', '.jpg', '.jpeg', '.gif', '.svg', '.webp', '.avif', '.css', '.js')

# First match per platform wins; declaration order is the output order
SOCIAL_PATTERNS: Dict[str, re.Pattern] = {
    'facebook': re.compile(r'https?://(?:www\.|m\.)?facebook\.com/[^\s"\'<>]+', re.I),
    'twitter': re.compile(r'https?://(?:www\.)?(?:twitter\.com|x\.com)/[^\s"\'<>]+', re.I),
    'linkedin': re.compile(r'https?://(?:[a-z]{2,3}\.)?linkedin\.com/(?:company|in|school)/[^\s"\'<>]+', re.I),
    'instagram': re.compile(r'https?://(?:www\.)?instagram\.com/[^\s"\'<>]+', re.I),
    'youtube': re.compile(r'https?://(?:www\.)?youtube\.com/(?:channel/|c/|user/|@)[^\s"\'<>]+', re.I),
    'tiktok': re.compile(r'https?://(?:www\.)?tiktok\.com/@[^\s"\'<>]+', re.I),
}
# Share/intent endpoints, whole path segment only
SHARE_PATH_RE = re.compile(r'/(?:sharer(?:\.php)?|share|intent|sharearticle|share-offsite)(?=[/?#.]|$)', re.I)

log = logging.getLogger('portalscan.metadata')


def _clean(text: str) -> str:
    return WS_RE.sub(' ', html_lib.unescape(text or '')).strip()


def _meta_attrs(raw_html: str) -> List[Dict[str, str]]:
    out = []
    for tag in META_TAG_RE.findall(raw_html):
        attrs = {}
        for m in ATTR_RE.finditer(tag):
            value = m.group(2) if m.group(2) is not None else (m.group(3) if m.group(3) is not None else m.group(4))
            attrs[m.group(1).lower()] = value or ''
        out.append(attrs)
    return out


def extract_title(raw_html: str) -> str:
    m = TITLE_RE.search(raw_html or '')
    return _clean(m.group(1)) if m else ''


def extract_description(raw_html: str) -> str:
    fallback = ''
    for attrs in _meta_attrs(raw_html or ''):
        key = (attrs.get('name') or attrs.get('property') or '').lower()
        if key == 'description' and attrs.get('content'):
            return _clean(attrs['content'])
        if key == 'og:description' and not fallback:
            fallback = _clean(attrs.get('content', ''))
    return fallback


def visible_text(raw_html: str) -> str:
    stripped = SCRIPT_STYLE_RE.sub(' ', raw_html or '')
    return _clean(TAG_RE.sub(' ', stripped))


def extract_emails(raw_html: str, limit: int = MAX_EMAILS) -> List[str]:
    found: List[str] = []
    for m in EMAIL_RE.finditer(raw_html or ''):
        email = m.group(0).lower().strip('.')
        if email.endswith(ASSET_SUFFIXES) or email in found:
            continue
        found.append(email)
        if len(found) >= limit:
            break
    return found


def _phone_key(value: str) -> Optional[str]:
    digits = re.sub(r'\D', '', value)
    if len(digits) == 11 and digits.startswith('1'):
        digits = digits[1:]
    return digits if len(digits) == 10 else None


def extract_phones(raw_html: str, limit: int = MAX_PHONES) -> List[str]:
    candidates = [html_lib.unescape(t).strip() for t in TEL_HREF_RE.findall(raw_html or '')]
    candidates.extend(m.group(0).strip() for m in PHONE_RE.finditer(visible_text(raw_html)))
    found: List[str] = []
    keys = set()
    for c in candidates:
        key = _phone_key(c)
        if not key or key in keys:
            continue
        keys.add(key)
        found.append(c)
        if len(found) >= limit:
            break
    return found


def extract_social_links(raw_html: str) -> Dict[str, str]:
    links: Dict[str, str] = {}
    for platform, pattern in SOCIAL_PATTERNS.items():
        for m in pattern.finditer(raw_html or ''):
            url = html_lib.unescape(m.group(0)).rstrip('/\\);,')
            if SHARE_PATH_RE.search(url):
                continue
            links[platform] = url
            break
    return links


def empty_details(scraper: str = '') -> Dict[str, Any]:
    return {
        'title': '',
        'description': '',
        'emails': [],
        'phones': [],
        'socialLinks': {},
        'techStack': [],
        'scrapedAt': datetime.now(timezone.utc).isoformat(),
        'scraper': scraper,
    }


def extract_details(raw_html: str, *, tech_stack: Optional[List[Dict[str, str]]] = None,
                    scraper: str = '') -> Dict[str, Any]:
    """Secondary pass over a fetched page. Never raises."""
    details = empty_details(scraper)
    details['techStack'] = list(tech_stack or [])
    try:
        details['title'] = extract_title(raw_html)
        details['description'] = extract_description(raw_html)
        details['emails'] = extract_emails(raw_html)
        details['phones'] = extract_phones(raw_html)
        details['socialLinks'] = extract_social_links(raw_html)
    except Exception as exc:
        log_suppressed(log, exc, 'metadata extraction failed', level=logging.WARNING)
    return details
