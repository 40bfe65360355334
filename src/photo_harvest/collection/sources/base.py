"""Source adapter base class, generic page scraping and the adapter registry."""

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator, Iterable
from urllib.parse import urldefrag, urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from photo_harvest.config import CRAWL_MAX_PAGES, PAGE_SIZE, SOURCE_TIMEOUTS, USER_AGENT
from photo_harvest.models import CandidateImage

logger = logging.getLogger(__name__)

_REJECTED_PATH_MARKERS = ("/static/", "/resources/")


class SourceAdapter:
    """Uniform interface to one external image source.

    Subclasses implement ``search``. Callers use ``fetch_candidates``, which
    bounds the call with a timeout and turns every failure into an empty list,
    so a broken source can never abort a collection run. Adapters never write
    to the catalog.
    """

    name = "web"
    requires_language = False
    max_page_size = PAGE_SIZE

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float | None = None):
        self.client = client
        self.timeout = timeout if timeout is not None else SOURCE_TIMEOUTS.get(self.name, 20.0)

    async def fetch_candidates(
        self,
        keyword: str,
        language_hint: str = "",
        page_size_hint: int = PAGE_SIZE,
        locale: str | None = None,
    ) -> list[CandidateImage]:
        """Search the source. Never raises except on cancellation."""
        try:
            return await asyncio.wait_for(
                self.search(keyword, language_hint, self.page_size(page_size_hint), locale),
                timeout=self.timeout,
            )
        except TimeoutError:
            logger.warning(
                "%s: search for %r timed out after %ss", self.name, keyword, self.timeout
            )
        except Exception as exc:
            logger.warning("%s: search for %r failed: %s", self.name, keyword, exc)
        return []

    async def search(
        self, keyword: str, language_hint: str, page_size: int, locale: str | None
    ) -> list[CandidateImage]:
        """Adapter-specific search. The default scrapes the public search page."""
        url = self.search_url(keyword)
        if url is None:
            return []
        return await self.scrape_page(url)

    def search_url(self, keyword: str) -> str | None:
        """Public search page for a keyword, if the source has one."""
        return None

    def page_size(self, hint: int) -> int:
        return max(1, min(hint, self.max_page_size))

    async def _get(self, url: str, **kwargs) -> httpx.Response:
        headers = {"User-Agent": USER_AGENT, **kwargs.pop("headers", {})}
        if self.client is not None:
            resp = await self.client.get(url, headers=headers, **kwargs)
        else:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                resp = await client.get(url, headers=headers, **kwargs)
        resp.raise_for_status()
        return resp

    async def scrape_page(self, url: str) -> list[CandidateImage]:
        """All <img>/<source> images on one page, with URLs made absolute."""
        try:
            resp = await self._get(url)
        except httpx.HTTPError as exc:
            logger.warning("Error scraping %s: %s", url, exc)
            return []
        return parse_page_images(resp.text, str(resp.url))

    async def crawl_site(
        self, start_url: str, max_pages: int = CRAWL_MAX_PAGES
    ) -> AsyncIterator[tuple[str, list[CandidateImage]]]:
        """Breadth-first crawl below ``start_url``, yielding (page_url, images) per page.

        Only URLs prefixed by ``start_url`` are followed and each page is
        fetched at most once.
        """
        start_url = urldefrag(start_url).url
        visited: set[str] = set()
        queue: deque[str] = deque([start_url])

        while queue and len(visited) < max_pages:
            current = queue.popleft()
            if current in visited:
                continue
            visited.add(current)

            try:
                resp = await self._get(current)
            except httpx.HTTPError as exc:
                logger.warning("Error crawling %s: %s", current, exc)
                continue
            if "html" not in resp.headers.get("content-type", "html"):
                continue

            base = str(resp.url)
            yield current, parse_page_images(resp.text, base)

            for link in extract_links(resp.text, base):
                if link.startswith(start_url) and link not in visited:
                    queue.append(link)


def open_client(timeout: float = max(SOURCE_TIMEOUTS.values())) -> httpx.AsyncClient:
    """Pooled client to share between all adapters of one command."""
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


class WebPageSource(SourceAdapter):
    """Generic scraper for arbitrary pages and whole-site crawls."""

    name = "web"


def parse_page_images(html: str, base_url: str) -> list[CandidateImage]:
    """Extract image URLs from ``<img>`` and ``<source>`` tags.

    ``src`` wins over ``srcset``; for ``srcset`` the first candidate is used.
    Relative URLs are resolved against ``base_url`` and only http(s) URLs are
    kept, each once, in document order.
    """
    soup = BeautifulSoup(html, "html.parser")
    seen: set[str] = set()
    images: list[CandidateImage] = []
    for tag in soup.find_all(["img", "source"]):
        raw = tag.get("src") or _first_srcset_url(tag.get("srcset"))
        if not raw:
            continue
        url = urljoin(base_url, raw.strip())
        if urlparse(url).scheme not in ("http", "https") or url in seen:
            continue
        seen.add(url)
        alt = tag.get("alt")
        images.append(CandidateImage(raw_url=url, alt_text=alt.strip() if alt else None))
    return images


def extract_links(html: str, base_url: str) -> list[str]:
    """Absolute, fragment-free http(s) links of a page."""
    soup = BeautifulSoup(html, "html.parser")
    links = []
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if not href or href.startswith(("mailto:", "tel:", "javascript:")):
            continue
        url = urldefrag(urljoin(base_url, href)).url
        if urlparse(url).scheme in ("http", "https"):
            links.append(url)
    return links


def is_rejected_image_url(url: str) -> bool:
    """Vector images and static site assets are never catalog candidates."""
    path = urlparse(url).path.lower()
    return path.endswith(".svg") or any(marker in url for marker in _REJECTED_PATH_MARKERS)


def _first_srcset_url(srcset: str | None) -> str | None:
    if not srcset:
        return None
    first = srcset.split(",")[0].strip()
    return first.split(" ")[0] if first else None


class SourceRegistry:
    """Maps source names to adapters."""

    def __init__(self, adapters: Iterable[SourceAdapter] = ()) -> None:
        self._adapters: dict[str, SourceAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: SourceAdapter) -> None:
        self._adapters[adapter.name] = adapter

    def get(self, name: str) -> SourceAdapter | None:
        return self._adapters.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._adapters

    def names(self) -> list[str]:
        return list(self._adapters)
