"""Source adapters and the default registry."""

import httpx

from photo_harvest.collection.sources.base import (
    SourceAdapter,
    SourceRegistry,
    WebPageSource,
    open_client,
)
from photo_harvest.collection.sources.freepik import FreepikSource
from photo_harvest.collection.sources.pexels import PexelsSource
from photo_harvest.collection.sources.pixabay import PixabaySource
from photo_harvest.collection.sources.unsplash import UnsplashSource
from photo_harvest.collection.sources.wikimedia import WikimediaSource

# Priority order used by collection runs: primary stock API, secondary stock
# API, unfiltered high-quality source, generic web search.
COLLECTION_ORDER = ("pixabay", "pexels", "unsplash", "wikimedia")

__all__ = [
    "COLLECTION_ORDER",
    "FreepikSource",
    "PexelsSource",
    "PixabaySource",
    "SourceAdapter",
    "SourceRegistry",
    "UnsplashSource",
    "WebPageSource",
    "WikimediaSource",
    "build_registry",
    "open_client",
]


def build_registry(client: httpx.AsyncClient | None = None) -> SourceRegistry:
    """All known sources, configured from environment credentials.

    Pass a client from ``open_client()`` to pool connections; otherwise every
    request opens its own.
    """
    return SourceRegistry(
        [
            PixabaySource(client=client),
            PexelsSource(client=client),
            UnsplashSource(client=client),
            WikimediaSource(client=client),
            FreepikSource(client=client),
            WebPageSource(client=client),
        ]
    )
