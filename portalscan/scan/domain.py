"""Domain input handling.

This module provides functions for:
- Turning a domain or URL string into the URL we fetch
- Host extraction for logging and metrics
- Request validation (shape and count) before any network activity
"""

from typing import Any, List

from ..exceptions import DomainCountError, ValidationError

# Upper bound of domains per request
MAX_DOMAINS = 30


def to_url(value: str) -> str:
    """Resolve a domain string to a fully qualified URL.

    Bare hosts get ``https://``; anything already carrying an http(s) scheme
    is used as-is.
    """
    v = (value or "").strip()
    if v.lower().startswith(("http://", "https://")):
        return v
    if v.startswith("//"):
        return "https:" + v
    return "https://" + v


def extract_host(value: str) -> str:
    """Normalize input that may be a full URL into just the hostname.

    - Strips protocol (http/https)
    - Removes credentials, port, path, query, fragment
    - Lowercases result
    """
    v = (value or "").strip()
    if not v:
        return v
    if "://" in v:
        v = v.split("://", 1)[1]
    elif v.startswith("//"):
        v = v[2:]
    # Remove path/query/fragment
    for sep in ["/", "?", "#"]:
        if sep in v:
            v = v.split(sep, 1)[0]
    # Remove credentials
    if "@" in v:
        v = v.split("@", 1)[1]
    # Remove port
    if ":" in v:
        v = v.split(":", 1)[0]
    return v.lower()


def validate_domains(payload: Any, max_domains: int = MAX_DOMAINS) -> List[str]:
    """Validate a request body's ``domains`` value.

    The caller is expected to send a deduplicated, cleaned list; we only
    reject what would break the batch (wrong type, blank entries, count out
    of range). Entries are stripped but otherwise echoed back unchanged.

    Raises:
        ValidationError: malformed shape or entries
        DomainCountError: empty or oversized list
    """
    if not isinstance(payload, list):
        raise ValidationError('"domains" must be a list of strings')
    if not payload or len(payload) > max_domains:
        raise DomainCountError(len(payload), max_domains)
    out: List[str] = []
    for pos, item in enumerate(payload):
        if not isinstance(item, str) or not item.strip():
            raise ValidationError(f"domains[{pos}] must be a non-empty string", details={"index": pos})
        out.append(item.strip())
    return out
