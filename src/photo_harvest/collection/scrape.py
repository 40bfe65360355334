"""Ad-hoc collection outside of a full run: explicit keywords x sites, or website crawls."""

import logging

from photo_harvest.catalog.store import CatalogStore
from photo_harvest.collection.ledger import DedupLedger, persist_candidates
from photo_harvest.collection.sources import SourceRegistry, WebPageSource
from photo_harvest.config import CRAWL_MAX_PAGES

logger = logging.getLogger(__name__)


def site_language_params(site: str, languages: list[str] | None) -> list[str]:
    """Language params selected for a site from ``site:param`` strings.

    >>> site_language_params("pixabay", ["pixabay:ja", "pexels:ja-JP", "pixabay:ko"])
    ['ja', 'ko']

    No selection means one unfiltered query.
    """
    prefix = f"{site}:"
    params = [lang[len(prefix):] for lang in languages or [] if lang.startswith(prefix)]
    return params or [""]


async def scrape_keywords(
    store: CatalogStore,
    registry: SourceRegistry,
    project_id: int,
    keywords: list[str],
    sites: list[str],
    languages: list[str] | None = None,
) -> int:
    """Query every site for every keyword and store new images. Returns the number added."""
    ledger = DedupLedger(store, project_id)
    total_added = 0
    for keyword in keywords:
        for site in sites:
            adapter = registry.get(site)
            if adapter is None:
                logger.warning("Unknown site %r, skipping", site)
                continue
            hints = site_language_params(site, languages) if adapter.requires_language else [""]
            for hint in hints:
                logger.info(
                    "Scraping %s with keyword=%r language=%r", site, keyword, hint or "default"
                )
                candidates = await adapter.fetch_candidates(keyword, hint)
                total_added += await persist_candidates(
                    ledger, candidates, source=site, keyword=keyword, language=hint
                )
    logger.info("Added %d images across %d sites", total_added, len(sites))
    return total_added


async def crawl_websites(
    store: CatalogStore,
    registry: SourceRegistry,
    project_id: int,
    urls: list[str],
    max_pages: int = CRAWL_MAX_PAGES,
) -> int:
    """Crawl each website and store every new image found. Returns the number added."""
    adapter = registry.get("web") or WebPageSource()
    ledger = DedupLedger(store, project_id)
    total_added = 0
    for url in urls:
        added = 0
        async for _page_url, images in adapter.crawl_site(url, max_pages=max_pages):
            added += await persist_candidates(ledger, images, source=adapter.name)
        logger.info("Crawled %s: +%d images", url, added)
        total_added += added
    return total_added
