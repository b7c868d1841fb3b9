"""Song lookup against the iTunes Search API for the add-song flow."""

import hashlib
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import asdict, dataclass

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
DEFAULT_LIMIT = 20
REQUEST_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class SongSuggestion:
    id: str
    title: str
    artist: str
    album: str
    artwork_url: str | None

    def to_dict(self) -> dict:
        return asdict(self)


def high_res_artwork_url(url: str | None) -> str | None:
    """The iTunes CDN serves larger artwork when the size segment is changed."""
    if not url:
        return None
    return url.replace("100x100bb", "600x600bb")


def build_search_url(term: str, limit: int = DEFAULT_LIMIT) -> str:
    base = getattr(settings, "SONG_SEARCH_URL", "https://itunes.apple.com/search")
    query = urllib.parse.urlencode(
        {"media": "music", "entity": "song", "limit": limit, "term": term},
        quote_via=urllib.parse.quote,
    )
    return f"{base}?{query}"


def parse_results(payload: dict) -> list[SongSuggestion]:
    return [
        SongSuggestion(
            id=str(item["trackId"]),
            title=item["trackName"],
            artist=item["artistName"],
            album=item.get("collectionName") or "",
            artwork_url=high_res_artwork_url(item.get("artworkUrl100")),
        )
        for item in payload.get("results", [])
        if "trackId" in item and "trackName" in item and "artistName" in item
    ]


def _fetch(url: str) -> dict | None:
    """GET a JSON document; None for any non-200 answer."""
    request = urllib.request.Request(url, headers={"Accept": "application/json"})
    try:
        with urllib.request.urlopen(request, timeout=REQUEST_TIMEOUT_SECONDS) as response:
            if response.status != 200:
                return None
            return json.loads(response.read())
    except urllib.error.HTTPError as e:
        logger.info(f"Song search returned HTTP {e.code}")
        return None


def search(query: str, limit: int = DEFAULT_LIMIT) -> list[SongSuggestion]:
    """
    Look up songs matching a free-text query.

    Queries shorter than two characters after trimming return no results
    without a network call. Answers are cached for SONG_SEARCH_CACHE_SECONDS.

    Raises:
        urllib.error.URLError: When the search service cannot be reached
    """
    term = query.strip()
    if len(term) < MIN_QUERY_LENGTH:
        return []

    url = build_search_url(term, limit)
    cache_key = "song_search:" + hashlib.sha1(url.encode()).hexdigest()
    payload = cache.get(cache_key)
    if payload is None:
        payload = _fetch(url)
        if payload is None:
            return []
        cache.set(cache_key, payload, getattr(settings, "SONG_SEARCH_CACHE_SECONDS", 3600))

    return parse_results(payload)
