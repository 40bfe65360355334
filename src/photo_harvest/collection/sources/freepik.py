"""Freepik source, scraped from the public search page."""

from urllib.parse import quote

from photo_harvest.collection.sources.base import SourceAdapter
from photo_harvest.models import CandidateImage

IMAGE_HOST_PREFIX = "https://img.freepik.com"


class FreepikSource(SourceAdapter):
    name = "freepik"
    requires_language = False

    def search_url(self, keyword: str) -> str:
        return f"https://www.freepik.com/search?format=search&query={quote(keyword)}&type=photo"

    async def search(
        self, keyword: str, language_hint: str, page_size: int, locale: str | None
    ) -> list[CandidateImage]:
        images = await self.scrape_page(self.search_url(keyword))
        return [img for img in images if img.raw_url.startswith(IMAGE_HOST_PREFIX)]
