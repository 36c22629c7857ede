"""BeautifulSoup page extractor: title, meta, links, images and headings."""

from __future__ import annotations

import logging
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from sitecrawl.extraction.base import PageExtractor

logger = logging.getLogger(__name__)

HEADING_LEVELS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")


def to_absolute_url(href: str, base_url: str) -> str:
    """Resolve *href* against *base_url*; unresolvable values are returned as-is."""
    try:
        return urljoin(base_url, href)
    except ValueError:
        return href


class BasicPageExtractor(PageExtractor):
    """Extracts the basic structure of a page.

    The record holds ``url``, ``title``, ``description``, ``lang``,
    ``charset``, ``meta_tags``, ``open_graph``, ``links`` (absolute href, text,
    title, rel), ``images`` (absolute src, alt) and ``headings`` grouped by
    level.
    """

    def extract(self, html: str, final_url: str) -> dict:
        soup = BeautifulSoup(html or "", "html.parser")

        title_tag = soup.find("title")
        title = title_tag.get_text(strip=True) if title_tag else ""

        html_tag = soup.find("html")
        lang = ""
        if html_tag is not None:
            lang = html_tag.get("lang") or html_tag.get("xml:lang") or ""

        charset_tag = soup.find("meta", attrs={"charset": True})
        charset = charset_tag.get("charset", "") if charset_tag else ""

        meta_tags: dict[str, str] = {}
        open_graph: dict[str, str] = {}
        for meta in soup.find_all("meta"):
            content = meta.get("content")
            if content is None:
                continue
            prop = meta.get("property")
            name = meta.get("name")
            if prop and prop.startswith("og:"):
                open_graph[prop] = content
            elif name:
                meta_tags[name] = content
            elif prop:
                meta_tags[prop] = content

        links = []
        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if not href:
                continue
            text = anchor.get_text(" ", strip=True)
            links.append(
                {
                    "href": to_absolute_url(href, final_url),
                    "text": text or href,
                    "title": anchor.get("title", ""),
                    "rel": " ".join(anchor.get("rel", [])),
                }
            )

        images = []
        for img in soup.find_all("img"):
            src = img.get("src") or img.get("data-src") or img.get("data-lazy-src") or ""
            if not src:
                continue
            images.append({"src": to_absolute_url(src, final_url), "alt": img.get("alt", "")})

        headings: dict[str, list[str]] = {level: [] for level in HEADING_LEVELS}
        for tag in soup.find_all(list(HEADING_LEVELS)):
            text = tag.get_text(" ", strip=True)
            if text:
                headings[tag.name].append(text)

        return {
            "url": final_url,
            "title": title or "No title",
            "description": meta_tags.get("description", ""),
            "lang": lang,
            "charset": charset,
            "meta_tags": meta_tags,
            "open_graph": open_graph,
            "links": links,
            "images": images,
            "headings": headings,
        }

    def page_stats(self, record: dict) -> dict[str, int]:
        headings = record.get("headings") or {}
        return {
            "total_links": len(record.get("links") or []),
            "total_images": len(record.get("images") or []),
            "total_headings": sum(len(items) for items in headings.values()),
        }
