from __future__ import annotations

import dataclasses
import typing
from typing import Literal, TypeAlias, Union

from dacite import from_dict  # type: ignore

from pykaza.nodes.api.responses.exceptions import LoadException
from pykaza.nodes.api.responses.playlists import Info
from pykaza.nodes.api.responses.track import Track
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE

# Lavalink v3 load types and their v4 equivalents
LEGACY_LOAD_TYPES = {
    "TRACK_LOADED": "track",
    "PLAYLIST_LOADED": "playlist",
    "SEARCH_RESULT": "search",
    "NO_MATCHES": "empty",
    "LOAD_FAILED": "error",
}


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class PlaylistData:
    info: Info
    tracks: list[Track]
    pluginInfo: dict | None = None

    def to_dict(self) -> JSON_DICT_TYPE:
        return dataclasses.asdict(self)


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class BaseTrackResponse:
    loadType: Literal["track", "playlist", "search", "empty", "error"]
    data: Track | PlaylistData | list[Track] | LoadException | None

    def __bool__(self):
        return True

    @property
    def tracks(self) -> list[Track]:
        return []

    def to_dict(self) -> JSON_DICT_TYPE:
        return dataclasses.asdict(self)


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class TrackResponse(BaseTrackResponse):
    loadType: Literal["track"]
    data: Track

    @property
    def tracks(self) -> list[Track]:
        return [self.data]


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class PlaylistResponse(BaseTrackResponse):
    loadType: Literal["playlist"]
    data: PlaylistData

    @property
    def tracks(self) -> list[Track]:
        return self.data.tracks


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class SearchResponse(BaseTrackResponse):
    loadType: Literal["search"]
    data: list[Track]

    @property
    def tracks(self) -> list[Track]:
        return self.data


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class EmptyResponse(BaseTrackResponse):
    loadType: Literal["empty"]
    data: None = None

    def __bool__(self):
        return False


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class ErrorResponse(BaseTrackResponse):  # noqa
    loadType: Literal["error"]
    data: LoadException

    def __bool__(self):
        return False


LoadTrackResponses: TypeAlias = Union[TrackResponse, PlaylistResponse, SearchResponse, EmptyResponse, ErrorResponse]


def _from_legacy(data: JSON_DICT_TYPE) -> JSON_DICT_TYPE:
    load_type = LEGACY_LOAD_TYPES[data["loadType"]]
    # v3 tracks carry the encoded track under "track"
    tracks = [
        {"encoded": track.get("encoded", track.get("track")), "info": track["info"]}
        for track in data.get("tracks") or []
    ]
    match load_type:
        case "track":
            return {"loadType": load_type, "data": tracks[0] if tracks else None}
        case "playlist":
            return {
                "loadType": load_type,
                "data": {"info": data.get("playlistInfo") or {}, "tracks": tracks},
            }
        case "search":
            return {"loadType": load_type, "data": tracks}
        case "error":
            return {"loadType": load_type, "data": data.get("exception") or {}}
        case _:
            return {"loadType": load_type, "data": None}


def parse_load_result(data: JSON_DICT_TYPE) -> LoadTrackResponses:
    """Parses the raw JSON returned by a node for a load request.

    Parameters
    ----------
    data: :class:`dict`
        The raw response, in either the v4 or the legacy v3 shape.

    Returns
    -------
    :class:`LoadTrackResponses`
        The typed response.

    Raises
    ------
    :class:`KeyError`
        When the response has no recognisable load type.
    """
    if data["loadType"] in LEGACY_LOAD_TYPES:
        data = _from_legacy(data)
    match data["loadType"]:
        case "track" if data.get("data"):
            return typing.cast(TrackResponse, from_dict(data_class=TrackResponse, data=data))
        case "playlist":
            return typing.cast(PlaylistResponse, from_dict(data_class=PlaylistResponse, data=data))
        case "search":
            return typing.cast(SearchResponse, from_dict(data_class=SearchResponse, data=data))
        case "error":
            return typing.cast(ErrorResponse, from_dict(data_class=ErrorResponse, data=data))
        case "empty" | "track":
            return EmptyResponse(loadType="empty")
        case _:
            raise KeyError(f"Unknown load type: {data['loadType']}")
