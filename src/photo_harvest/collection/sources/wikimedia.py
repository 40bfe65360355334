"""Wikimedia Commons source, scraped from the MediaSearch results page."""

import asyncio
import logging
import random
from urllib.parse import quote, urljoin

import httpx
from bs4 import BeautifulSoup
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from photo_harvest.collection.sources.base import SourceAdapter, is_rejected_image_url
from photo_harvest.collection.taxonomy import localize_keyword
from photo_harvest.config import WIKIMEDIA_BASE
from photo_harvest.models import CandidateImage

logger = logging.getLogger(__name__)

MAX_RESULTS = 40
DETAIL_CONCURRENCY = 5


class WikimediaSource(SourceAdapter):
    """Parses result thumbnails and, optionally, each file page for author and license."""

    name = "wikimedia"
    requires_language = False
    max_page_size = MAX_RESULTS

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        fetch_details: bool = True,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(client, timeout)
        self.fetch_details = fetch_details
        self.rng = rng or random.Random()

    def search_url(self, keyword: str) -> str:
        return (
            f"{WIKIMEDIA_BASE}/w/index.php?search={quote(keyword)}"
            "&title=Special:MediaSearch&go=Go&type=image"
        )

    async def search(
        self, keyword: str, language_hint: str, page_size: int, locale: str | None
    ) -> list[CandidateImage]:
        query = localize_keyword(keyword, locale, self.rng)
        resp = await self._get(self.search_url(query))
        results = parse_search_results(resp.text, limit=page_size)
        if not self.fetch_details:
            return [
                CandidateImage(raw_url=url, alt_text=alt, query=query) for url, alt, _ in results
            ]

        semaphore = asyncio.Semaphore(DETAIL_CONCURRENCY)

        async def enrich(url: str, alt: str | None, detail_url: str | None) -> CandidateImage:
            author = license_text = None
            if detail_url:
                async with semaphore:
                    try:
                        author, license_text = await self._fetch_detail(detail_url)
                    except httpx.HTTPError as exc:
                        logger.debug("wikimedia: detail fetch failed for %s: %s", detail_url, exc)
            return CandidateImage(
                raw_url=url,
                alt_text=alt,
                author=author,
                license=license_text,
                page_url=detail_url,
                query=query,
            )

        return list(await asyncio.gather(*(enrich(*result) for result in results)))

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, max=2),
        retry=retry_if_exception_type(httpx.TimeoutException),
        reraise=True,
    )
    async def _fetch_detail(self, detail_url: str) -> tuple[str | None, str | None]:
        resp = await self._get(detail_url)
        return parse_detail_page(resp.text)


def parse_search_results(
    html: str, limit: int = MAX_RESULTS
) -> list[tuple[str, str | None, str | None]]:
    """Return (image_url, alt_text, detail_page_url) for each usable thumbnail."""
    soup = BeautifulSoup(html, "html.parser")
    results = []
    for figure in soup.select("figure.sdms-search-result__media"):
        if len(results) >= limit:
            break
        img = figure.find("img")
        if img is None:
            continue
        src = (img.get("src") or "").strip()
        if not src:
            continue
        url = urljoin(WIKIMEDIA_BASE + "/", src)
        if is_rejected_image_url(url):
            continue
        alt = (img.get("alt") or "").strip() or None
        link = figure.select_one("a.sdms-search-result__media-container")
        href = link.get("href") if link is not None else None
        detail_url = urljoin(WIKIMEDIA_BASE + "/", href) if href else None
        results.append((url, alt, detail_url))
    return results


def parse_detail_page(html: str) -> tuple[str | None, str | None]:
    """Author and long license text from a Commons file page."""
    soup = BeautifulSoup(html, "html.parser")
    author_el = soup.select_one("#fileinfotpl_aut")
    license_el = soup.select_one("#licensetpl_long")
    if author_el is not None:
        # the id sits on the label cell; the value is the next cell
        author_el = author_el.find_next_sibling("td") or author_el
    author = author_el.get_text(strip=True) if author_el else None
    license_text = license_el.get_text(strip=True) if license_el else None
    return author or None, license_text or None
