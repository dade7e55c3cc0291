from __future__ import annotations

import pytest
from yarl import URL

from pykaza.players.query.classifier import (
    classify,
    extract_source_name,
    format_search_query,
    get_search_engine,
    is_url,
    platform_for_engine,
    rewrite_platform_uri,
    strip_tracking_parameters,
    supported_platforms,
)


@pytest.mark.parametrize(
    ("url", "platform", "canonical_id"),
    [
        ("https://open.spotify.com/track/4iV5W9uYEdYUVa79Axb7Rh", "spotify", "4iV5W9uYEdYUVa79Axb7Rh"),
        ("https://open.spotify.com/intl-de/track/4iV5W9uYEdYUVa79Axb7Rh", "spotify", "4iV5W9uYEdYUVa79Axb7Rh"),
        ("https://music.apple.com/us/album/some-album/1440857781?i=1440857790", "applemusic", "1440857790"),
        ("https://music.apple.com/us/song/some-song/1440857790", "applemusic", "1440857790"),
        ("https://music.youtube.com/watch?v=dQw4w9WgXcQ", "youtubeMusic", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "youtube", "dQw4w9WgXcQ"),
        ("https://youtu.be/dQw4w9WgXcQ", "youtube", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/shorts/dQw4w9WgXcQ", "youtube", "dQw4w9WgXcQ"),
        ("https://soundcloud.com/artist-name/track-name", "soundcloud", "artist-name/track-name"),
        ("https://www.deezer.com/en/track/3135556", "deezer", "3135556"),
        ("https://tidal.com/browse/track/77640617", "tidal", "77640617"),
        ("https://www.qobuz.com/us-en/track/some-track/12345678", "qobuz", "12345678"),
        ("https://artist.bandcamp.com/track/some-song", "bandcamp", "some-song"),
        ("https://www.jiosaavn.com/song/some-song/ABC123xyz", "jiosaavn", "ABC123xyz"),
    ],
)
def test_track_urls_classify_as_tracks(url: str, platform: str, canonical_id: str):
    classification = classify(url)
    assert classification.platform == platform
    assert classification.content_type == "track"
    assert classification.canonical_id == canonical_id
    assert classification.is_valid_url
    assert classification.search_engine_prefix == get_search_engine(platform)


@pytest.mark.parametrize(
    ("url", "content_type"),
    [
        ("https://open.spotify.com/album/1DFixLWuPkv3KT3TnV35m3", "album"),
        ("https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M", "playlist"),
        ("https://open.spotify.com/artist/0OdUWJ0sBjDrqHygGUXeCF", "artist"),
        ("https://www.youtube.com/playlist?list=PLFgquLnL59alCl_2TQvOiD5Vgm1hCaGSI", "playlist"),
        ("https://soundcloud.com/artist-name/sets/my-set", "playlist"),
        ("https://soundcloud.com/artist-name", "artist"),
        ("https://www.deezer.com/album/302127", "album"),
        ("https://music.apple.com/us/playlist/todays-hits/pl.f4d106fed2bd41149aaacabb233eb5eb", "playlist"),
    ],
)
def test_collection_urls(url: str, content_type: str):
    assert classify(url).content_type == content_type


@pytest.mark.parametrize("query", ["not a url", "", "   ", "ftp://example.com/file.mp3", "https://", "lofi beats"])
def test_invalid_urls_are_generic(query: str):
    classification = classify(query)
    assert classification.platform == "generic"
    assert not classification.is_valid_url
    assert classification.search_engine_prefix is None
    assert classification.is_search


def test_unknown_web_urls_are_http():
    classification = classify("https://example.com/stream.mp3")
    assert classification.platform == "http"
    assert classification.is_valid_url
    assert classification.search_engine_prefix is None


def test_music_youtube_wins_over_youtube():
    assert classify("https://music.youtube.com/playlist?list=OLAK5uy_abc").platform == "youtubeMusic"


def test_tracking_parameters_are_stripped():
    classification = classify("https://open.spotify.com/track/4iV5W9uYEdYUVa79Axb7Rh?si=abcdef&utm_source=copy")
    assert classification.url == "https://open.spotify.com/track/4iV5W9uYEdYUVa79Axb7Rh"
    kept = strip_tracking_parameters(URL("https://www.youtube.com/watch?v=dQw4w9WgXcQ&feature=share&t=42"))
    assert dict(kept.query) == {"v": "dQw4w9WgXcQ", "t": "42"}


def test_platform_uris_are_rewritten():
    assert rewrite_platform_uri("spotify:track:4iV5W9uYEdYUVa79Axb7Rh") == (
        "https://open.spotify.com/track/4iV5W9uYEdYUVa79Axb7Rh"
    )
    assert rewrite_platform_uri("deezer:album:302127") == "https://www.deezer.com/album/302127"
    assert rewrite_platform_uri("ytsearch:song") == "ytsearch:song"
    classification = classify("spotify:track:4iV5W9uYEdYUVa79Axb7Rh")
    assert classification.platform == "spotify"
    assert classification.content_type == "track"
    assert classification.url.startswith("https://open.spotify.com/")


def test_helpers():
    assert is_url("https://example.com")
    assert not is_url("hello")
    assert platform_for_engine("spsearch") == "spotify"
    assert platform_for_engine("nope") == "generic"
    assert get_search_engine("unknown") == "ytsearch"
    assert supported_platforms()[0] == "spotify"
    assert format_search_query("never gonna give you up") == "ytsearch:never gonna give you up"
    assert format_search_query("song", "soundcloud") == "scsearch:song"
    assert format_search_query(" https://youtu.be/dQw4w9WgXcQ ") == "https://youtu.be/dQw4w9WgXcQ"
    assert extract_source_name("https://music.youtube.com/watch?v=dQw4w9WgXcQ") == "youtube"
    assert extract_source_name("https://open.spotify.com/track/4iV5W9uYEdYUVa79Axb7Rh") == "spotify"
    assert extract_source_name(None) == "unknown"
    assert extract_source_name("plain words") == "unknown"


def test_classify_never_raises_on_odd_input():
    assert classify(None).platform == "generic"  # type: ignore
    assert classify("http://[::1").platform in {"generic", "http"}
