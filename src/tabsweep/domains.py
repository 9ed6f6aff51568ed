"""URL validation and the cookie-domain/tab-domain relation.

``related()`` is a deliberately loose substring heuristic, not an eTLD+1
check: ``mail.example.com`` and ``example.com`` are related, and so are
``notexample.com`` and ``example.com``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlparse

import structlog

if TYPE_CHECKING:
    from tabsweep.models.cookies import Cookie

log = structlog.get_logger()

_TRACKABLE_SCHEMES = frozenset({"http", "https"})


def is_trackable(url: str | None) -> bool:
    """True only for absolute http(s) URLs that carry a hostname."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
        return parsed.scheme in _TRACKABLE_SCHEMES and bool(parsed.hostname)
    except ValueError:
        return False


def extract_domain(url: str | None) -> str | None:
    """Return the lowercase hostname of ``url``, or ``None`` if it can't be parsed."""
    if not url:
        return None
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        log.debug("url_parse_failed", url=url)
        return None
    return hostname.lower() if hostname else None


def normalise(domain: str) -> str:
    """Strip the cookie-jar wildcard dot and a leading ``www.``: ``'.www.a.com'`` → ``'a.com'``."""
    domain = domain.strip().lower()
    if domain.startswith("."):
        domain = domain[1:]
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


def related(cookie_domain: str, tab_domain: str) -> bool:
    """True if either normalised domain contains the other."""
    cookie_norm = normalise(cookie_domain)
    tab_norm = normalise(tab_domain)
    if not cookie_norm or not tab_norm:
        return False
    return cookie_norm in tab_norm or tab_norm in cookie_norm


def cookie_url(cookie: Cookie) -> str:
    """Rebuild the URL the cookie store needs to address ``cookie`` for removal."""
    scheme = "https" if cookie.secure else "http"
    host = cookie.domain[1:] if cookie.domain.startswith(".") else cookie.domain
    path = cookie.path if cookie.path.startswith("/") else f"/{cookie.path}"
    return f"{scheme}://{host}{path}"
