"""Outbound link discovery and crawl policy filters.

``extract_links`` reads anchors straight from the fetched markup. The policy
helpers decide whether a discovered URL may join the frontier: exclusion
substrings first, then the domain rules (exact host, or shared registrable
domain when subdomains are included; either can be overridden by following
external links).
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

from sitecrawl.models.requests import CrawlOptions

# href prefixes that never lead to a fetchable page
NON_NAVIGABLE_PREFIXES: tuple[str, ...] = ("javascript:", "mailto:", "tel:", "#", "data:")

_FOLLOWABLE_SCHEMES = {"http", "https"}


def extract_links(html: str, base_url: str) -> list[str]:
    """Return the absolute, fragment-free http(s) URLs linked from *html*.

    Order of first appearance is kept and duplicates are dropped.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    seen: set[str] = set()
    links: list[str] = []

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.lower().startswith(NON_NAVIGABLE_PREFIXES):
            continue
        try:
            absolute, _fragment = urldefrag(urljoin(base_url, href))
            scheme = urlparse(absolute).scheme.lower()
        except ValueError:
            continue
        if scheme not in _FOLLOWABLE_SCHEMES or absolute in seen:
            continue
        seen.add(absolute)
        links.append(absolute)

    return links


def hostname_of(url: str) -> str:
    """Lowercased hostname of *url*, or ``""`` when it has none."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def registrable_domain(hostname: str) -> str:
    """Last two dot-separated labels of *hostname* (``shop.example.com`` -> ``example.com``)."""
    return ".".join(hostname.lower().split(".")[-2:])


def is_excluded(url: str, patterns: Iterable[str]) -> bool:
    return any(pattern in url for pattern in patterns)


def is_domain_allowed(url: str, base_hostname: str, options: CrawlOptions) -> bool:
    """Apply the same-domain / subdomain / external-link rules to *url*."""
    if not options.same_domain or options.follow_external_links:
        return True

    hostname = hostname_of(url)
    if not hostname:
        return False
    if hostname == base_hostname:
        return True
    if options.include_subdomains:
        return registrable_domain(hostname) == registrable_domain(base_hostname)
    return False
