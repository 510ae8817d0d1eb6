"""
Website scraping tool.

Requires the 'requests' library for external HTTP calls.
"""

from __future__ import annotations

import re
from html.parser import HTMLParser
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin

import requests

from ..tools import tool

REQUEST_TIMEOUT = 15
MAX_TEXT_CHARS = 8000
MAX_LINKS = 100
EXTRACT_TYPES = ["text", "links", "headings", "all"]

_SKIPPED_TAGS = {"script", "style", "noscript", "template", "svg"}
_VOID_TAGS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
}
_HEADING = re.compile(r"^h([1-6])$")
_SELECTOR = re.compile(r"^(?P<tag>[a-zA-Z][\w-]*)?(?:#(?P<id>[\w-]+)|\.(?P<cls>[\w-]+))?$")


def _parse_selector(selector: Optional[str]) -> Optional[Tuple[Optional[str], Optional[str], Optional[str]]]:
    """Support ``tag``, ``#id``, ``.class``, ``tag#id`` and ``tag.class``."""
    if not selector:
        return None
    match = _SELECTOR.match(selector.strip())
    if not match or not any(match.groups()):
        raise ValueError(f"Unsupported selector '{selector}'. Use tag, #id or .class")
    tag = match.group("tag")
    return (tag.lower() if tag else None, match.group("id"), match.group("cls"))


class PageExtractor(HTMLParser):
    """Collects the title, visible text, headings and links of an HTML page."""

    def __init__(self, base_url: str = "", selector: Optional[str] = None):
        super().__init__(convert_charrefs=True)
        self.base_url = base_url
        self.title = ""
        self.headings: List[Dict[str, Any]] = []
        self.links: List[Dict[str, str]] = []
        self._text: List[str] = []
        self._selector = _parse_selector(selector)
        self._depth = 0
        self._scope_depth: Optional[int] = None if self._selector else 0
        self._skip_depth: Optional[int] = None
        self._in_title = False
        self._heading: Optional[Tuple[int, List[str]]] = None
        self._link: Optional[Tuple[str, List[str]]] = None

    @property
    def text(self) -> str:
        return re.sub(r"\s+", " ", " ".join(self._text)).strip()

    def _matches(self, tag: str, attrs: Dict[str, Optional[str]]) -> bool:
        assert self._selector is not None
        want_tag, want_id, want_cls = self._selector
        if want_tag and tag != want_tag:
            return False
        if want_id and attrs.get("id") != want_id:
            return False
        if want_cls and want_cls not in (attrs.get("class") or "").split():
            return False
        return True

    @property
    def _in_scope(self) -> bool:
        return self._scope_depth not in (None, -1) and self._skip_depth is None

    def handle_starttag(self, tag: str, attrs_list: List[Tuple[str, Optional[str]]]) -> None:
        attrs = dict(attrs_list)
        if tag in _VOID_TAGS:
            return
        self._depth += 1
        if tag == "title":
            self._in_title = True
        if self._scope_depth is None and self._selector and self._matches(tag, attrs):
            self._scope_depth = self._depth
        if tag in _SKIPPED_TAGS and self._skip_depth is None:
            self._skip_depth = self._depth
        if not self._in_scope:
            return
        heading = _HEADING.match(tag)
        if heading:
            self._heading = (int(heading.group(1)), [])
        elif tag == "a" and attrs.get("href"):
            self._link = (urljoin(self.base_url, attrs["href"] or ""), [])

    def handle_endtag(self, tag: str) -> None:
        if tag in _VOID_TAGS:
            return
        if tag == "title":
            self._in_title = False
        if self._heading is not None and _HEADING.match(tag):
            level, parts = self._heading
            text = " ".join("".join(parts).split())
            if text:
                self.headings.append({"level": level, "text": text})
            self._heading = None
        if tag == "a" and self._link is not None:
            href, parts = self._link
            if len(self.links) < MAX_LINKS:
                self.links.append({"text": " ".join("".join(parts).split()), "href": href})
            self._link = None
        if self._skip_depth is not None and self._depth <= self._skip_depth:
            self._skip_depth = None
        if self._selector and self._scope_depth is not None and self._depth <= self._scope_depth:
            # Only the first matching element is extracted.
            self._scope_depth = -1
        self._depth = max(self._depth - 1, 0)

    def handle_data(self, data: str) -> None:
        if self._in_title:
            self.title += data
            return
        if not self._in_scope:
            return
        self._text.append(data)
        if self._heading is not None:
            self._heading[1].append(data)
        if self._link is not None:
            self._link[1].append(data)


@tool(
    description=(
        "Scrape and extract content from a website URL. Can extract text content, "
        "links, headings, and structured data."
    ),
    param_metadata={
        "url": {"description": "The URL to scrape"},
        "extract_type": {
            "description": "What type of content to extract",
            "enum": EXTRACT_TYPES,
        },
        "selector": {
            "description": "Optional CSS selector (tag, #id or .class) to target specific content"
        },
    },
)
def scrape_website(url: str, extract_type: str = "all", selector: Optional[str] = None) -> Dict[str, Any]:
    """
    Fetch a page and extract its title plus the requested content.

    Returns:
        ``{success, url, title, content: {text?, headings?, links?}}`` or
        ``{success: False, url, error}``.
    """
    if not url.startswith(("http://", "https://")):
        return {"success": False, "url": url, "error": "URL must start with http:// or https://"}

    try:
        response = requests.get(
            url,
            timeout=REQUEST_TIMEOUT,
            headers={"User-Agent": "chatturn/0.1 (+scrape_website)"},
        )
        response.raise_for_status()
    except requests.exceptions.Timeout:
        return {"success": False, "url": url, "error": f"Request timed out after {REQUEST_TIMEOUT} seconds"}
    except requests.exceptions.ConnectionError:
        return {"success": False, "url": url, "error": f"Could not connect to {url}"}
    except requests.exceptions.RequestException as e:
        return {"success": False, "url": url, "error": f"Error fetching page: {e}"}

    try:
        extractor = PageExtractor(base_url=response.url or url, selector=selector)
    except ValueError as e:
        return {"success": False, "url": url, "error": str(e)}
    extractor.feed(response.text)
    extractor.close()

    content: Dict[str, Any] = {}
    if extract_type in ("text", "all"):
        text = extractor.text
        if len(text) > MAX_TEXT_CHARS:
            text = text[:MAX_TEXT_CHARS] + "... (truncated)"
        content["text"] = text
    if extract_type in ("headings", "all"):
        content["headings"] = extractor.headings
    if extract_type in ("links", "all"):
        content["links"] = extractor.links

    return {
        "success": True,
        "url": url,
        "title": extractor.title.strip(),
        "content": content,
    }


__all__ = ["scrape_website", "PageExtractor"]
