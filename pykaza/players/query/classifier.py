from __future__ import annotations

import dataclasses
import re
from typing import Literal

from yarl import URL

from pykaza.constants import regex
from pykaza.constants.misc import TRACKING_PARAMETERS
from pykaza.constants.node_features import ENGINE_PLATFORMS, PLATFORM_ENGINES, SUPPORTED_PLATFORMS
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE

ContentType = Literal["track", "album", "playlist", "artist", "unknown"]

# Per platform: host pattern, then content patterns tried in order.
# The first non-empty capture group of the matching pattern is the canonical id.
PLATFORM_PATTERNS: dict[str, tuple[re.Pattern, tuple[tuple[ContentType, re.Pattern], ...]]] = {
    "spotify": (
        regex.SPOTIFY_HOST,
        (
            ("track", regex.SPOTIFY_TRACK),
            ("album", regex.SPOTIFY_ALBUM),
            ("playlist", regex.SPOTIFY_PLAYLIST),
            ("artist", regex.SPOTIFY_ARTIST),
        ),
    ),
    "applemusic": (
        regex.APPLE_MUSIC_HOST,
        (
            ("track", regex.APPLE_MUSIC_TRACK),
            ("album", regex.APPLE_MUSIC_ALBUM),
            ("playlist", regex.APPLE_MUSIC_PLAYLIST),
            ("artist", regex.APPLE_MUSIC_ARTIST),
        ),
    ),
    "youtubeMusic": (
        regex.YOUTUBE_MUSIC_HOST,
        (
            ("track", regex.YOUTUBE_MUSIC_TRACK),
            ("album", regex.YOUTUBE_MUSIC_ALBUM),
            ("playlist", regex.YOUTUBE_MUSIC_PLAYLIST),
            ("artist", regex.YOUTUBE_MUSIC_ARTIST),
        ),
    ),
    "youtube": (
        regex.YOUTUBE_HOST,
        (
            ("track", regex.YOUTUBE_TRACK),
            ("playlist", regex.YOUTUBE_PLAYLIST),
            ("artist", regex.YOUTUBE_ARTIST),
        ),
    ),
    "soundcloud": (
        regex.SOUND_CLOUD_HOST,
        (
            ("playlist", regex.SOUND_CLOUD_PLAYLIST),
            ("track", regex.SOUND_CLOUD_TRACK),
            ("artist", regex.SOUND_CLOUD_ARTIST),
        ),
    ),
    "deezer": (
        regex.DEEZER_HOST,
        (
            ("track", regex.DEEZER_TRACK),
            ("album", regex.DEEZER_ALBUM),
            ("playlist", regex.DEEZER_PLAYLIST),
            ("artist", regex.DEEZER_ARTIST),
        ),
    ),
    "tidal": (
        regex.TIDAL_HOST,
        (
            ("track", regex.TIDAL_TRACK),
            ("album", regex.TIDAL_ALBUM),
            ("playlist", regex.TIDAL_PLAYLIST),
            ("artist", regex.TIDAL_ARTIST),
        ),
    ),
    "qobuz": (
        regex.QOBUZ_HOST,
        (
            ("track", regex.QOBUZ_TRACK),
            ("album", regex.QOBUZ_ALBUM),
            ("playlist", regex.QOBUZ_PLAYLIST),
            ("artist", regex.QOBUZ_ARTIST),
        ),
    ),
    "bandcamp": (
        regex.BANDCAMP_HOST,
        (
            ("track", regex.BANDCAMP_TRACK),
            ("album", regex.BANDCAMP_ALBUM),
            ("artist", regex.BANDCAMP_ARTIST),
        ),
    ),
    "jiosaavn": (
        regex.JIOSAAVN_HOST,
        (
            ("track", regex.JIOSAAVN_TRACK),
            ("album", regex.JIOSAAVN_ALBUM),
            ("playlist", regex.JIOSAAVN_PLAYLIST),
            ("artist", regex.JIOSAAVN_ARTIST),
        ),
    ),
}

PLATFORM_URI_TEMPLATES = {
    "spotify": "https://open.spotify.com/{type}/{identifier}",
    "deezer": "https://www.deezer.com/{type}/{identifier}",
    "tidal": "https://tidal.com/browse/{type}/{identifier}",
}


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class QueryClassification:
    """The outcome of classifying a query string.

    Attributes
    ----------
    platform: :class:`str`
        The detected platform, ``http`` for unknown web URLs and ``generic`` for plain text.
    content_type: :class:`str`
        One of ``track``, ``album``, ``playlist``, ``artist`` or ``unknown``.
    canonical_id: :class:`str`
        The platform identifier extracted from the URL, empty when none could be extracted.
    search_engine_prefix: :class:`str` | None
        The search engine that matches the platform, None for plain text and unknown URLs.
    is_valid_url: :class:`bool`
        Whether the query is a well-formed http(s) URL.
    url: :class:`str`
        The normalised URL, or the stripped query for plain text.
    """

    platform: str
    content_type: ContentType
    canonical_id: str
    search_engine_prefix: str | None
    is_valid_url: bool
    url: str

    @property
    def is_search(self) -> bool:
        return not self.is_valid_url

    def to_dict(self) -> JSON_DICT_TYPE:
        return dataclasses.asdict(self)


def rewrite_platform_uri(query: str) -> str:
    """Rewrites ``platform:type:id`` URIs into the platform's https form, other input is returned as is"""
    if match := regex.PLATFORM_URI.match(query):
        return PLATFORM_URI_TEMPLATES[match["platform"].lower()].format(
            type=match["type"].lower(), identifier=match["identifier"]
        )
    return query


def strip_tracking_parameters(url: URL) -> URL:
    """Removes known tracking parameters from the query string of a URL"""
    if not url.query:
        return url
    kept = [(key, value) for key, value in url.query.items() if key.lower() not in TRACKING_PARAMETERS]
    if len(kept) == len(url.query):
        return url
    return url.with_query(kept)


def to_http_url(query: str) -> URL | None:
    """Parses a query into an absolute http(s) URL, returns None when the query is not one"""
    try:
        url = URL(rewrite_platform_uri(query))
    except (ValueError, TypeError):
        return None
    if not url.is_absolute() or url.scheme not in {"http", "https"} or not url.host:
        return None
    return url


def is_url(query: str) -> bool:
    return isinstance(query, str) and to_http_url(query.strip()) is not None


def classify(query: str) -> QueryClassification:
    """Classifies a query string into platform, content type and search engine.

    This never raises, anything that is not an http(s) URL is classified as a ``generic`` search term.

    Parameters
    ----------
    query: :class:`str`
        A URL, a platform URI such as ``spotify:track:<id>`` or free text.

    Returns
    -------
    :class:`QueryClassification`
        The classification.
    """
    text = query.strip() if isinstance(query, str) else ""
    url = to_http_url(text) if text else None
    if url is None:
        return QueryClassification(
            platform="generic",
            content_type="unknown",
            canonical_id="",
            search_engine_prefix=None,
            is_valid_url=False,
            url=text,
        )

    normalized = str(strip_tracking_parameters(url))
    for platform in SUPPORTED_PLATFORMS:
        host, patterns = PLATFORM_PATTERNS[platform]
        if not host.match(normalized):
            continue
        content_type: ContentType = "unknown"
        canonical_id = ""
        for candidate, pattern in patterns:
            if match := pattern.match(normalized):
                content_type = candidate
                canonical_id = next((group for group in match.groups() if group), "")
                break
        return QueryClassification(
            platform=platform,
            content_type=content_type,
            canonical_id=canonical_id,
            search_engine_prefix=PLATFORM_ENGINES[platform],
            is_valid_url=True,
            url=normalized,
        )

    return QueryClassification(
        platform="http",
        content_type="track",
        canonical_id="",
        search_engine_prefix=None,
        is_valid_url=True,
        url=normalized,
    )


def get_search_engine(platform: str) -> str:
    """Returns the search engine for a platform, ``ytsearch`` for anything unknown"""
    return PLATFORM_ENGINES.get(platform, "ytsearch")


def platform_for_engine(engine: str) -> str:
    return ENGINE_PLATFORMS.get(engine, "generic")


def supported_platforms() -> list[str]:
    return list(SUPPORTED_PLATFORMS)


def format_search_query(query: str, platform: str | None = None) -> str:
    """Returns the URL unchanged, or the text prefixed with the engine for ``platform`` (default YouTube)"""
    classification = classify(query)
    if classification.is_valid_url:
        return query.strip()
    return f"{get_search_engine(platform or 'youtube')}:{query.strip()}"


def extract_source_name(uri: str | None) -> str:
    """Infers the source platform from a track URI"""
    if not uri:
        return "unknown"
    classification = classify(uri)
    match classification.platform:
        case "youtubeMusic":
            return "youtube"
        case "generic":
            return "unknown"
        case platform:
            return platform
