"""Pexels REST API source (secondary stock-photo source)."""

import logging
from urllib.parse import quote

import httpx

from photo_harvest.collection.sources.base import SourceAdapter
from photo_harvest.config import PEXELS_API_BASE, PEXELS_API_KEY
from photo_harvest.models import CandidateImage

logger = logging.getLogger(__name__)


class PexelsSource(SourceAdapter):
    """Searches Pexels. ``language_hint`` is an ``xx-XX`` locale; "" means provider default."""

    name = "pexels"
    requires_language = True
    max_page_size = 80

    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(client, timeout)
        self.api_key = PEXELS_API_KEY if api_key is None else api_key

    async def search(
        self, keyword: str, language_hint: str, page_size: int, locale: str | None
    ) -> list[CandidateImage]:
        if not self.api_key:
            logger.debug("pexels: no API key configured, skipping %r", keyword)
            return []
        params = {"query": keyword, "per_page": str(page_size)}
        if language_hint:
            params["locale"] = language_hint
        resp = await self._get(
            PEXELS_API_BASE, params=params, headers={"Authorization": self.api_key}
        )
        data = resp.json()
        candidates = []
        for photo in data.get("photos") or []:
            url = (photo.get("src") or {}).get("original")
            if not url:
                continue
            candidates.append(
                CandidateImage(
                    raw_url=url,
                    alt_text=photo.get("alt") or None,
                    width=photo.get("width"),
                    height=photo.get("height"),
                    author=photo.get("photographer"),
                    source_record_id=str(photo["id"]) if photo.get("id") is not None else None,
                    page_url=photo.get("url"),
                )
            )
        return candidates

    def search_url(self, keyword: str) -> str:
        return f"https://www.pexels.com/search/{quote(keyword)}/"
