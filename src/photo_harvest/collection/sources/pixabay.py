"""Pixabay REST API source (primary stock-photo source)."""

import logging
from urllib.parse import quote

import httpx

from photo_harvest.collection.sources.base import SourceAdapter
from photo_harvest.config import PIXABAY_API_BASE, PIXABAY_API_KEY
from photo_harvest.models import CandidateImage

logger = logging.getLogger(__name__)


class PixabaySource(SourceAdapter):
    """Searches Pixabay photos, optionally filtered by a two-letter ``lang``."""

    name = "pixabay"
    requires_language = True
    max_page_size = 80

    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(client, timeout)
        self.api_key = PIXABAY_API_KEY if api_key is None else api_key

    async def search(
        self, keyword: str, language_hint: str, page_size: int, locale: str | None
    ) -> list[CandidateImage]:
        if not self.api_key:
            logger.debug("pixabay: no API key configured, skipping %r", keyword)
            return []
        params = {
            "key": self.api_key,
            "q": keyword,
            "image_type": "photo",
            "per_page": str(page_size),
            "safesearch": "true",
        }
        if language_hint:
            params["lang"] = language_hint
        resp = await self._get(PIXABAY_API_BASE, params=params)
        data = resp.json()
        return [
            _hit_to_candidate(hit)
            for hit in data.get("hits") or []
            if hit.get("largeImageURL") or hit.get("webformatURL")
        ]

    def search_url(self, keyword: str) -> str:
        return f"https://pixabay.com/images/search/{quote(keyword)}/"


def _hit_to_candidate(hit: dict) -> CandidateImage:
    return CandidateImage(
        raw_url=hit.get("largeImageURL") or hit["webformatURL"],
        alt_text=hit.get("tags") or None,
        width=hit.get("imageWidth"),
        height=hit.get("imageHeight"),
        author=hit.get("user"),
        source_record_id=str(hit["id"]) if hit.get("id") is not None else None,
        page_url=hit.get("pageURL"),
    )
