from __future__ import annotations

import re

# https://github.com/topi314/LavaSrc/blob/master/main/src/main/java/com/github/topi314/lavasrc/spotify/SpotifySourceManager.java
SPOTIFY_HOST = re.compile(r"^https?://(?:open\.|play\.)?spotify\.com/", re.IGNORECASE)
_SPOTIFY_PREFIX = r"^https?://(?:open\.|play\.)?spotify\.com/(?:intl-[a-z]{2}/)?(?:user/[\w-]+/)?"
SPOTIFY_TRACK = re.compile(_SPOTIFY_PREFIX + r"track/([a-zA-Z\d]+)", re.IGNORECASE)
SPOTIFY_ALBUM = re.compile(_SPOTIFY_PREFIX + r"album/([a-zA-Z\d]+)", re.IGNORECASE)
SPOTIFY_PLAYLIST = re.compile(_SPOTIFY_PREFIX + r"playlist/([a-zA-Z\d]+)", re.IGNORECASE)
SPOTIFY_ARTIST = re.compile(_SPOTIFY_PREFIX + r"artist/([a-zA-Z\d]+)", re.IGNORECASE)

# https://github.com/topi314/LavaSrc/blob/master/main/src/main/java/com/github/topi314/lavasrc/applemusic/AppleMusicSourceManager.java
APPLE_MUSIC_HOST = re.compile(r"^https?://(?:geo\.)?music\.apple\.com/", re.IGNORECASE)
_APPLE_MUSIC_PREFIX = r"^https?://(?:geo\.)?music\.apple\.com/(?:[a-z]{2}/)?"
APPLE_MUSIC_TRACK = re.compile(
    _APPLE_MUSIC_PREFIX + r"(?:album/[^/?]+/\d+\?(?:[^#]*&)?i=(\d+)|song/(?:[^/?]+/)?(\d+))", re.IGNORECASE
)
APPLE_MUSIC_ALBUM = re.compile(_APPLE_MUSIC_PREFIX + r"album/(?:[^/?]+/)?(\d+)", re.IGNORECASE)
APPLE_MUSIC_PLAYLIST = re.compile(_APPLE_MUSIC_PREFIX + r"playlist/(?:[^/?]+/)?(pl\.[\w-]+)", re.IGNORECASE)
APPLE_MUSIC_ARTIST = re.compile(_APPLE_MUSIC_PREFIX + r"artist/(?:[^/?]+/)?(\d+)", re.IGNORECASE)

YOUTUBE_MUSIC_HOST = re.compile(r"^https?://music\.youtube\.com/", re.IGNORECASE)
YOUTUBE_MUSIC_TRACK = re.compile(r"^https?://music\.youtube\.com/watch\?(?:[^#]*&)?v=([\w-]{11})", re.IGNORECASE)
YOUTUBE_MUSIC_ALBUM = re.compile(r"^https?://music\.youtube\.com/browse/(MPREb_[\w-]+)", re.IGNORECASE)
YOUTUBE_MUSIC_PLAYLIST = re.compile(
    r"^https?://music\.youtube\.com/playlist\?(?:[^#]*&)?list=([\w-]+)", re.IGNORECASE
)
YOUTUBE_MUSIC_ARTIST = re.compile(r"^https?://music\.youtube\.com/channel/([\w-]+)", re.IGNORECASE)

# https://github.com/lavalink-devs/youtube-source
YOUTUBE_HOST = re.compile(r"^https?://(?:(?:www|m)\.)?(?:youtube\.com|youtu\.be)/", re.IGNORECASE)
YOUTUBE_TRACK = re.compile(
    r"^https?://(?:(?:www|m)\.)?"
    r"(?:youtube\.com/(?:watch\?(?:[^#]*&)?v=|shorts/|embed/|live/)|youtu\.be/)"
    r"([\w-]{11})",
    re.IGNORECASE,
)
YOUTUBE_PLAYLIST = re.compile(
    r"^https?://(?:(?:www|m)\.)?youtube\.com/playlist\?(?:[^#]*&)?list=([\w-]+)", re.IGNORECASE
)
YOUTUBE_ARTIST = re.compile(r"^https?://(?:(?:www|m)\.)?youtube\.com/(?:channel/([\w-]+)|@([\w.-]+))", re.IGNORECASE)

SOUND_CLOUD_HOST = re.compile(r"^https?://(?:(?:www|m|on)\.)?soundcloud\.com/", re.IGNORECASE)
SOUND_CLOUD_PLAYLIST = re.compile(
    r"^https?://(?:(?:www|m)\.)?soundcloud\.com/([\w-]+/sets/[\w-]+)/?(?:[?#]|$)", re.IGNORECASE
)
SOUND_CLOUD_TRACK = re.compile(
    r"^https?://(?:on\.soundcloud\.com/([\w-]+)|(?:(?:www|m)\.)?soundcloud\.com/([\w-]+/[\w-]+))/?(?:[?#]|$)",
    re.IGNORECASE,
)
SOUND_CLOUD_ARTIST = re.compile(r"^https?://(?:(?:www|m)\.)?soundcloud\.com/([\w-]+)/?(?:[?#]|$)", re.IGNORECASE)

# https://github.com/topi314/LavaSrc/blob/master/main/src/main/java/com/github/topi314/lavasrc/deezer/DeezerAudioSourceManager.java
DEEZER_HOST = re.compile(r"^https?://(?:(?:www\.)?deezer\.com|deezer\.page\.link|link\.deezer\.com)/", re.IGNORECASE)
_DEEZER_PREFIX = r"^https?://(?:www\.)?deezer\.com/(?:[a-z]{2}/)?"
DEEZER_TRACK = re.compile(_DEEZER_PREFIX + r"track/(\d+)", re.IGNORECASE)
DEEZER_ALBUM = re.compile(_DEEZER_PREFIX + r"album/(\d+)", re.IGNORECASE)
DEEZER_PLAYLIST = re.compile(_DEEZER_PREFIX + r"playlist/(\d+)", re.IGNORECASE)
DEEZER_ARTIST = re.compile(_DEEZER_PREFIX + r"artist/(\d+)", re.IGNORECASE)

TIDAL_HOST = re.compile(r"^https?://(?:(?:www|listen)\.)?tidal\.com/", re.IGNORECASE)
_TIDAL_PREFIX = r"^https?://(?:(?:www|listen)\.)?tidal\.com/(?:browse/)?"
TIDAL_TRACK = re.compile(_TIDAL_PREFIX + r"track/(\d+)", re.IGNORECASE)
TIDAL_ALBUM = re.compile(_TIDAL_PREFIX + r"album/(\d+)", re.IGNORECASE)
TIDAL_PLAYLIST = re.compile(_TIDAL_PREFIX + r"playlist/([\w-]+)", re.IGNORECASE)
TIDAL_ARTIST = re.compile(_TIDAL_PREFIX + r"artist/(\d+)", re.IGNORECASE)

QOBUZ_HOST = re.compile(r"^https?://(?:(?:www|open|play)\.)?qobuz\.com/", re.IGNORECASE)
_QOBUZ_PREFIX = r"^https?://(?:(?:www|open|play)\.)?qobuz\.com/(?:[a-z]{2}-[a-z]{2}/)?"
QOBUZ_TRACK = re.compile(_QOBUZ_PREFIX + r"track/(?:[\w-]+/)?(\d+)", re.IGNORECASE)
QOBUZ_ALBUM = re.compile(_QOBUZ_PREFIX + r"album/(?:[\w-]+/)?([a-zA-Z\d]+)/?(?:[?#]|$)", re.IGNORECASE)
QOBUZ_PLAYLIST = re.compile(_QOBUZ_PREFIX + r"playlist/(\d+)", re.IGNORECASE)
QOBUZ_ARTIST = re.compile(_QOBUZ_PREFIX + r"(?:interpreter|artist)/(?:[\w-]+/)?(\d+)", re.IGNORECASE)

# https://github.com/lavalink-devs/lavaplayer/blob/main/main/src/main/java/com/sedmelluq/discord/lavaplayer/source/bandcamp/BandcampAudioSourceManager.java
BANDCAMP_HOST = re.compile(r"^https?://(?:[\w-]+\.)?bandcamp\.com/?", re.IGNORECASE)
BANDCAMP_TRACK = re.compile(r"^https?://[\w-]+\.bandcamp\.com/track/([\w-]+)", re.IGNORECASE)
BANDCAMP_ALBUM = re.compile(r"^https?://[\w-]+\.bandcamp\.com/album/([\w-]+)", re.IGNORECASE)
BANDCAMP_ARTIST = re.compile(r"^https?://([\w-]+)\.bandcamp\.com/?(?:[?#]|$)", re.IGNORECASE)

JIOSAAVN_HOST = re.compile(r"^https?://(?:www\.)?jiosaavn\.com/", re.IGNORECASE)
JIOSAAVN_TRACK = re.compile(r"^https?://(?:www\.)?jiosaavn\.com/song/[^/]+/([\w-]+)", re.IGNORECASE)
JIOSAAVN_ALBUM = re.compile(r"^https?://(?:www\.)?jiosaavn\.com/album/[^/]+/([\w-]+)", re.IGNORECASE)
JIOSAAVN_PLAYLIST = re.compile(
    r"^https?://(?:www\.)?jiosaavn\.com/(?:featured|s/playlist/[^/]+)/[^/]+/([\w-]+)", re.IGNORECASE
)
JIOSAAVN_ARTIST = re.compile(r"^https?://(?:www\.)?jiosaavn\.com/artist/[^/]+/([\w-]+)", re.IGNORECASE)

PLATFORM_URI = re.compile(
    r"^(?P<platform>spotify|deezer|tidal):(?P<type>track|album|playlist|artist):(?P<identifier>[\w.-]+)$",
    re.IGNORECASE,
)

SOURCE_INPUT_MATCH_SEARCH = re.compile(
    r"^(?P<search_source>ytm?search|spsearch|amsearch|dzsearch|dzisrc|scsearch|jssearch|tdsearch|qbsearch|"
    r"bcsearch|tidal|qobuz|bandcamp|jiosaavn):\s*?(?P<search_query>.+)$",
    re.IGNORECASE,
)
SOURCE_INPUT_MATCH_HTTP = re.compile(r"^https?://", re.IGNORECASE)
YOUTUBE_ARTWORK_URL = "https://img.youtube.com/vi/{identifier}/maxresdefault.jpg"
