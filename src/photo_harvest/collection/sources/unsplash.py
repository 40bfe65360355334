"""Unsplash REST API source.

Unsplash has no language filter, so the keyword is sometimes decorated with a
location term for the target locale instead.
"""

import logging
import random
from urllib.parse import quote

import httpx

from photo_harvest.collection.sources.base import SourceAdapter
from photo_harvest.collection.taxonomy import localize_keyword
from photo_harvest.config import UNSPLASH_ACCESS_KEY, UNSPLASH_API_BASE
from photo_harvest.models import CandidateImage

logger = logging.getLogger(__name__)


class UnsplashSource(SourceAdapter):
    name = "unsplash"
    requires_language = False
    max_page_size = 30

    def __init__(
        self,
        access_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(client, timeout)
        self.access_key = UNSPLASH_ACCESS_KEY if access_key is None else access_key
        self.rng = rng or random.Random()

    async def search(
        self, keyword: str, language_hint: str, page_size: int, locale: str | None
    ) -> list[CandidateImage]:
        if not self.access_key:
            logger.debug("unsplash: no access key configured, skipping %r", keyword)
            return []
        query = localize_keyword(keyword, locale, self.rng)
        resp = await self._get(
            UNSPLASH_API_BASE,
            params={"query": query, "per_page": str(page_size), "page": "1"},
            headers={"Authorization": f"Client-ID {self.access_key}"},
        )
        data = resp.json()
        candidates = []
        for photo in data.get("results") or []:
            urls = photo.get("urls") or {}
            url = urls.get("full") or urls.get("regular")
            if not url:
                continue
            candidates.append(
                CandidateImage(
                    raw_url=url,
                    alt_text=photo.get("alt_description") or photo.get("description") or None,
                    width=photo.get("width"),
                    height=photo.get("height"),
                    author=(photo.get("user") or {}).get("name"),
                    source_record_id=photo.get("id"),
                    page_url=(photo.get("links") or {}).get("html"),
                    query=query,
                )
            )
        return candidates

    def search_url(self, keyword: str) -> str:
        return f"https://unsplash.com/s/photos/{quote(keyword)}"
