"""Tests for source adapters, using httpx.MockTransport instead of the network."""

import asyncio
import random

import httpx
import pytest

from photo_harvest.collection.sources import (
    FreepikSource,
    PexelsSource,
    PixabaySource,
    SourceRegistry,
    UnsplashSource,
    WebPageSource,
    WikimediaSource,
    build_registry,
    open_client,
)
from photo_harvest.collection.sources.base import (
    extract_links,
    is_rejected_image_url,
    parse_page_images,
)
from photo_harvest.collection.sources.wikimedia import parse_detail_page, parse_search_results

PIXABAY_RESPONSE = {
    "total": 2,
    "hits": [
        {
            "id": 4719181,
            "pageURL": "https://pixabay.com/photos/cat-4719181/",
            "tags": "cat, pet, animal",
            "largeImageURL": "https://pixabay.com/get/g123_1280.jpg",
            "webformatURL": "https://pixabay.com/get/g123_640.jpg",
            "imageWidth": 4000,
            "imageHeight": 3000,
            "user": "alice",
        },
        {"id": 2, "tags": ""},
    ],
}


def mock_client(handler, requests: list | None = None) -> httpx.AsyncClient:
    def record(request: httpx.Request):
        if requests is not None:
            requests.append(request)
        return handler(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(record))


@pytest.mark.asyncio
async def test_pixabay_params_and_mapping():
    requests = []
    client = mock_client(lambda r: httpx.Response(200, json=PIXABAY_RESPONSE), requests)
    source = PixabaySource(api_key="k", client=client)

    found = await source.fetch_candidates("cat", "ja", page_size_hint=200)

    params = requests[0].url.params
    assert params["q"] == "cat"
    assert params["lang"] == "ja"
    assert params["image_type"] == "photo"
    assert params["per_page"] == "80"
    assert len(found) == 1
    assert found[0].raw_url == "https://pixabay.com/get/g123_1280.jpg"
    assert found[0].source_record_id == "4719181"
    assert found[0].author == "alice"
    assert found[0].width == 4000
    await client.aclose()


@pytest.mark.asyncio
async def test_pixabay_empty_language_hint_omits_lang():
    requests = []
    client = mock_client(lambda r: httpx.Response(200, json={"hits": []}), requests)
    source = PixabaySource(api_key="k", client=client)

    assert await source.fetch_candidates("cat", "") == []
    assert "lang" not in requests[0].url.params
    await client.aclose()


@pytest.mark.asyncio
async def test_missing_api_key_makes_no_request():
    requests = []
    client = mock_client(lambda r: httpx.Response(200, json=PIXABAY_RESPONSE), requests)

    assert await PixabaySource(api_key="", client=client).fetch_candidates("cat") == []
    assert await PexelsSource(api_key="", client=client).fetch_candidates("cat") == []
    assert await UnsplashSource(access_key="", client=client).fetch_candidates("cat") == []
    assert requests == []
    await client.aclose()


@pytest.mark.asyncio
async def test_http_error_yields_empty_list():
    client = mock_client(lambda r: httpx.Response(500, text="boom"))
    source = PixabaySource(api_key="k", client=client)
    assert await source.fetch_candidates("cat", "en") == []
    await client.aclose()


@pytest.mark.asyncio
async def test_malformed_payload_yields_empty_list():
    client = mock_client(lambda r: httpx.Response(200, text="not json"))
    source = PexelsSource(api_key="k", client=client)
    assert await source.fetch_candidates("cat", "en-US") == []
    await client.aclose()


@pytest.mark.asyncio
async def test_timeout_yields_empty_list():
    async def slow(request):
        await asyncio.sleep(1)
        return httpx.Response(200, json=PIXABAY_RESPONSE)

    client = httpx.AsyncClient(transport=httpx.MockTransport(slow))
    source = PixabaySource(api_key="k", client=client, timeout=0.05)
    assert await source.fetch_candidates("cat", "en") == []
    await client.aclose()


@pytest.mark.asyncio
async def test_pexels_locale_and_auth():
    requests = []
    payload = {
        "photos": [
            {
                "id": 99,
                "url": "https://www.pexels.com/photo/99/",
                "alt": "Brown dog",
                "width": 1200,
                "height": 800,
                "photographer": "bob",
                "src": {"original": "https://images.pexels.com/photos/99/a.jpeg"},
            },
            {"id": 100, "src": {}},
        ]
    }
    client = mock_client(lambda r: httpx.Response(200, json=payload), requests)
    source = PexelsSource(api_key="secret", client=client)

    found = await source.fetch_candidates("dog", "ja-JP", page_size_hint=20)

    assert requests[0].url.params["locale"] == "ja-JP"
    assert requests[0].url.params["per_page"] == "20"
    assert requests[0].headers["Authorization"] == "secret"
    assert [c.raw_url for c in found] == ["https://images.pexels.com/photos/99/a.jpeg"]
    assert found[0].alt_text == "Brown dog"
    assert found[0].source_record_id == "99"
    await client.aclose()


@pytest.mark.asyncio
async def test_unsplash_caps_page_size_and_maps_results():
    requests = []
    payload = {
        "results": [
            {
                "id": "abc",
                "alt_description": "mountain lake",
                "urls": {"full": "https://images.unsplash.com/photo-abc"},
                "user": {"name": "Carol"},
                "links": {"html": "https://unsplash.com/photos/abc"},
            }
        ]
    }
    client = mock_client(lambda r: httpx.Response(200, json=payload), requests)
    source = UnsplashSource(access_key="key", client=client, rng=random.Random(1))

    found = await source.fetch_candidates("lake", "", page_size_hint=80)

    assert requests[0].url.params["per_page"] == "30"
    assert requests[0].headers["Authorization"] == "Client-ID key"
    assert found[0].author == "Carol"
    assert found[0].source_record_id == "abc"
    await client.aclose()


def test_parse_page_images_resolves_relative_urls():
    html = """
    <img src="/img/a.png" alt=" Logo ">
    <img srcset="b-small.jpg 1x, b-large.jpg 2x">
    <picture><source srcset="https://cdn.test/c.webp"></picture>
    <img src="/img/a.png">
    <img src="data:image/png;base64,AAAA">
    <img>
    """
    images = parse_page_images(html, "https://site.test/docs/page")
    assert [i.raw_url for i in images] == [
        "https://site.test/img/a.png",
        "https://site.test/docs/b-small.jpg",
        "https://cdn.test/c.webp",
    ]
    assert images[0].alt_text == "Logo"


def test_extract_links():
    html = """
    <a href="/docs/next#top">next</a>
    <a href="mailto:me@site.test">mail</a>
    <a href="javascript:void(0)">js</a>
    <a href="https://other.test/">other</a>
    """
    assert extract_links(html, "https://site.test/docs/") == [
        "https://site.test/docs/next",
        "https://other.test/",
    ]


def test_is_rejected_image_url():
    assert is_rejected_image_url("https://commons.wikimedia.org/logo.SVG")
    assert is_rejected_image_url("https://commons.wikimedia.org/static/images/x.png")
    assert is_rejected_image_url("https://commons.wikimedia.org/resources/x.png")
    assert not is_rejected_image_url("https://upload.wikimedia.org/thumb/cat.jpg")


SITE = {
    "https://site.test/docs/": """
        <img src="/img/a.png">
        <a href="/docs/page2">2</a>
        <a href="/docs/#frag">self</a>
        <a href="/other/x">outside</a>
        <a href="https://elsewhere.test/docs/">elsewhere</a>
    """,
    "https://site.test/docs/page2": """
        <img srcset="b.jpg 1x, b2.jpg 2x">
        <a href="/docs/">back</a>
        <a href="/docs/page3">3</a>
    """,
    "https://site.test/docs/page3": "<p>no images</p>",
}


def site_handler(request: httpx.Request) -> httpx.Response:
    body = SITE.get(str(request.url))
    if body is None:
        return httpx.Response(404)
    return httpx.Response(200, html=body)


@pytest.mark.asyncio
async def test_crawl_site_stays_below_start_url():
    requests = []
    client = mock_client(site_handler, requests)
    source = WebPageSource(client=client)

    pages = [page async for page in source.crawl_site("https://site.test/docs/")]

    assert [url for url, _ in pages] == [
        "https://site.test/docs/",
        "https://site.test/docs/page2",
        "https://site.test/docs/page3",
    ]
    assert [i.raw_url for i in pages[1][1]] == ["https://site.test/docs/b.jpg"]
    fetched = [str(r.url) for r in requests]
    assert len(fetched) == len(set(fetched))
    assert all(url.startswith("https://site.test/docs/") for url in fetched)
    await client.aclose()


@pytest.mark.asyncio
async def test_crawl_site_respects_max_pages():
    client = mock_client(site_handler)
    source = WebPageSource(client=client)
    pages = [page async for page in source.crawl_site("https://site.test/docs/", max_pages=1)]
    assert len(pages) == 1
    await client.aclose()


@pytest.mark.asyncio
async def test_scrape_page_error_returns_empty():
    client = mock_client(lambda r: httpx.Response(404))
    source = WebPageSource(client=client)
    assert await source.scrape_page("https://site.test/missing") == []
    await client.aclose()


WIKIMEDIA_SEARCH = """
<figure class="sdms-search-result__media">
  <a class="sdms-search-result__media-container" href="/wiki/File:Cat.jpg">
    <img src="https://upload.wikimedia.org/thumb/cat.jpg" alt="A cat">
  </a>
</figure>
<figure class="sdms-search-result__media"><img src="https://upload.wikimedia.org/logo.svg"></figure>
<figure class="sdms-search-result__media"><img src="/static/images/icon.png"></figure>
<figure class="sdms-search-result__media"><img src="//upload.wikimedia.org/thumb/dog.jpg"></figure>
"""

WIKIMEDIA_DETAIL = """
<table><tr><td id="fileinfotpl_aut">Author</td><td> Jane Doe </td></tr></table>
<span id="licensetpl_long">Creative Commons Attribution-Share Alike 4.0</span>
"""


def test_parse_search_results_rejects_vectors_and_static_assets():
    results = parse_search_results(WIKIMEDIA_SEARCH)
    assert results == [
        (
            "https://upload.wikimedia.org/thumb/cat.jpg",
            "A cat",
            "https://commons.wikimedia.org/wiki/File:Cat.jpg",
        ),
        ("https://upload.wikimedia.org/thumb/dog.jpg", None, None),
    ]
    assert len(parse_search_results(WIKIMEDIA_SEARCH, limit=1)) == 1


def test_parse_detail_page():
    assert parse_detail_page(WIKIMEDIA_DETAIL) == (
        "Jane Doe",
        "Creative Commons Attribution-Share Alike 4.0",
    )
    assert parse_detail_page("<html></html>") == (None, None)


@pytest.mark.asyncio
async def test_wikimedia_search_with_details():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/w/index.php":
            return httpx.Response(200, html=WIKIMEDIA_SEARCH)
        return httpx.Response(200, html=WIKIMEDIA_DETAIL)

    client = mock_client(handler)
    source = WikimediaSource(client=client)

    found = await source.fetch_candidates("cat")

    assert [c.raw_url for c in found] == [
        "https://upload.wikimedia.org/thumb/cat.jpg",
        "https://upload.wikimedia.org/thumb/dog.jpg",
    ]
    assert found[0].author == "Jane Doe"
    assert found[0].license.startswith("Creative Commons")
    assert found[1].author is None
    await client.aclose()


@pytest.mark.asyncio
async def test_freepik_keeps_only_image_host():
    html = """
    <img src="https://img.freepik.com/free-photo/cat.jpg" alt="cat">
    <img src="https://www.freepik.com/logo.png">
    """
    client = mock_client(lambda r: httpx.Response(200, html=html))
    source = FreepikSource(client=client)
    found = await source.fetch_candidates("cat")
    assert [c.raw_url for c in found] == ["https://img.freepik.com/free-photo/cat.jpg"]
    await client.aclose()


def test_build_registry_has_all_sources():
    registry = build_registry()
    assert set(registry.names()) == {
        "pixabay", "pexels", "unsplash", "wikimedia", "freepik", "web"
    }
    assert "pixabay" in registry
    assert registry.get("flickr") is None


def test_registry_register_replaces_by_name():
    first, second = WebPageSource(), WebPageSource()
    registry = SourceRegistry([first])
    registry.register(second)
    assert registry.get("web") is second


class AlwaysLocalize(random.Random):
    def random(self):
        return 0.0


@pytest.mark.asyncio
async def test_unsplash_candidates_carry_localized_query():
    requests = []
    payload = {"results": [{"id": "abc", "urls": {"full": "https://images.unsplash.com/abc"}}]}
    client = mock_client(lambda r: httpx.Response(200, json=payload), requests)
    source = UnsplashSource(access_key="key", client=client, rng=AlwaysLocalize(0))

    found = await source.fetch_candidates("lake", "", locale="ja_JP")

    sent = requests[0].url.params["query"]
    assert sent.startswith("lake ")
    assert found[0].query == sent
    await client.aclose()


def test_build_registry_shares_client():
    client = open_client()
    registry = build_registry(client)
    assert all(registry.get(name).client is client for name in registry.names())
    assert client.follow_redirects is True
