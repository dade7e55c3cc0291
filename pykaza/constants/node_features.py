from __future__ import annotations

__all__ = (
    "SUPPORTED_SEARCHES",
    "SUPPORTED_PLATFORMS",
    "PLATFORM_ENGINES",
    "ENGINE_PLATFORMS",
    "ENGINE_ALIASES",
    "PLATFORM_DISPLAY_NAMES",
    "DEFAULT_FALLBACK_ENGINES",
)

# noinspection SpellCheckingInspection
SUPPORTED_SEARCHES = {
    "ytsearch": "YouTube",
    "ytmsearch": "YouTube Music",
    "spsearch": "Spotify",
    "amsearch": "Apple Music",
    "dzsearch": "Deezer",
    "scsearch": "SoundCloud",
    "jiosaavn": "JioSaavn",
    "qobuz": "Qobuz",
    "tidal": "Tidal",
    "bandcamp": "Bandcamp",
}

# Classification priority order, first match wins.
SUPPORTED_PLATFORMS = (
    "spotify",
    "applemusic",
    "youtubeMusic",
    "youtube",
    "soundcloud",
    "deezer",
    "tidal",
    "qobuz",
    "bandcamp",
    "jiosaavn",
)

# noinspection SpellCheckingInspection
PLATFORM_ENGINES = {
    "spotify": "spsearch",
    "applemusic": "amsearch",
    "youtubeMusic": "ytmsearch",
    "youtube": "ytsearch",
    "soundcloud": "scsearch",
    "deezer": "dzsearch",
    "tidal": "tidal",
    "qobuz": "qobuz",
    "bandcamp": "bandcamp",
    "jiosaavn": "jiosaavn",
}
ENGINE_PLATFORMS = {engine: platform for platform, engine in PLATFORM_ENGINES.items()}

PLATFORM_DISPLAY_NAMES = {
    "spotify": "Spotify",
    "applemusic": "Apple Music",
    "youtubeMusic": "YouTube Music",
    "youtube": "YouTube",
    "soundcloud": "SoundCloud",
    "deezer": "Deezer",
    "tidal": "Tidal",
    "qobuz": "Qobuz",
    "bandcamp": "Bandcamp",
    "jiosaavn": "JioSaavn",
    "http": "HTTP Stream",
    "generic": "Unknown",
}

# noinspection SpellCheckingInspection
ENGINE_ALIASES = {
    "youtube": "ytsearch",
    "yt": "ytsearch",
    "youtubemusic": "ytmsearch",
    "youtube_music": "ytmsearch",
    "ytm": "ytmsearch",
    "spotify": "spsearch",
    "sp": "spsearch",
    "applemusic": "amsearch",
    "apple_music": "amsearch",
    "apple": "amsearch",
    "am": "amsearch",
    "deezer": "dzsearch",
    "dz": "dzsearch",
    "soundcloud": "scsearch",
    "sc": "scsearch",
    "jiosaavn": "jiosaavn",
    "jio": "jiosaavn",
    "jssearch": "jiosaavn",
    "qobuz": "qobuz",
    "qbsearch": "qobuz",
    "tidal": "tidal",
    "tdsearch": "tidal",
    "bandcamp": "bandcamp",
    "bc": "bandcamp",
    "bcsearch": "bandcamp",
}

# noinspection SpellCheckingInspection
DEFAULT_FALLBACK_ENGINES = ("ytsearch", "ytmsearch", "spsearch", "scsearch")
