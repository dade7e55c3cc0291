from __future__ import annotations

import dataclasses
from typing import Any, Literal

from pykaza.exceptions.base import KazaException
from pykaza.nodes.api.responses.rest_api import LoadTrackResponses, PlaylistResponse
from pykaza.players.tracks.obj import Track
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE

SearchResultType = Literal["track", "playlist", "search", "empty", "error"]


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class SearchMetadata:
    """How a result was obtained.

    Attributes
    ----------
    engine: :class:`str` | None
        The engine that produced the result, None for direct URLs that were never qualified.
    platform: :class:`str`
        The platform of the query, or of the engine when the query was plain text.
    elapsed: :class:`float`
        Milliseconds spent resolving, 0 for cache hits.
    cache_hit: :class:`bool`
        Whether the result was served from the resolution cache.
    attempted_engines: tuple[:class:`str`, ...]
        Every engine tried, in order.
    """

    engine: str | None
    platform: str
    elapsed: float = 0.0
    cache_hit: bool = False
    attempted_engines: tuple[str, ...] = ()

    def to_dict(self) -> JSON_DICT_TYPE:
        return {
            "engine": self.engine,
            "platform": self.platform,
            "elapsed": self.elapsed,
            "cacheHit": self.cache_hit,
            "attemptedEngines": list(self.attempted_engines),
        }


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class SearchResult:
    """The uniform result of a search.

    A result is truthy only when it holds at least one track. Failed searches are returned with type ``error``
    and the structured error in :attr:`exception`, searches without matches are returned with type ``empty``
    and a :class:`NoResultsException` carrying suggestions.
    """

    type: SearchResultType
    tracks: list[Track]
    metadata: SearchMetadata
    playlist_name: str | None = None
    selected_track: int | None = None
    exception: KazaException | None = None

    def __bool__(self) -> bool:
        return bool(self.tracks)

    def __len__(self) -> int:
        return len(self.tracks)

    @property
    def platform(self) -> str:
        return self.metadata.platform

    @property
    def engine(self) -> str | None:
        return self.metadata.engine

    @property
    def cache_hit(self) -> bool:
        return self.metadata.cache_hit

    @property
    def is_playlist(self) -> bool:
        return self.type == "playlist"

    @classmethod
    def from_response(
        cls, response: LoadTrackResponses, metadata: SearchMetadata, limit: int, requester: Any = None
    ) -> SearchResult:
        """Normalises a typed node response.

        Parameters
        ----------
        response: :class:`LoadTrackResponses`
            The parsed node response.
        metadata: :class:`SearchMetadata`
            Metadata describing how the response was obtained.
        limit: :class:`int`
            The maximum number of tracks kept.
        requester: Any
            Attached to every track.
        """
        tracks = [Track.from_api(track, requester=requester) for track in response.tracks[:limit]]
        playlist_name = None
        selected_track = None
        if isinstance(response, PlaylistResponse):
            playlist_name = response.data.info.name
            if 0 <= response.data.info.selectedTrack < len(tracks):
                selected_track = response.data.info.selectedTrack
        return cls(
            type=response.loadType,
            tracks=tracks,
            metadata=metadata,
            playlist_name=playlist_name,
            selected_track=selected_track,
        )

    @classmethod
    def from_error(cls, error: KazaException, metadata: SearchMetadata) -> SearchResult:
        return cls(type="error", tracks=[], metadata=metadata, exception=error)

    @classmethod
    def empty(cls, error: KazaException, metadata: SearchMetadata) -> SearchResult:
        return cls(type="empty", tracks=[], metadata=metadata, exception=error)

    def with_requester(self, requester: Any) -> SearchResult:
        """Returns a copy holding copies of the tracks with ``requester`` attached"""
        return dataclasses.replace(self, tracks=[track.with_requester(requester) for track in self.tracks])

    def to_dict(self) -> JSON_DICT_TYPE:
        return {
            "type": self.type,
            "tracks": [track.to_dict() for track in self.tracks],
            "playlistName": self.playlist_name,
            "selectedTrack": self.selected_track,
            "exception": self.exception.to_dict() if self.exception else None,
            "metadata": self.metadata.to_dict(),
        }
