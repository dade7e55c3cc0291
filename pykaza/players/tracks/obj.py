from __future__ import annotations

import dataclasses
from typing import Any

from pykaza.constants.regex import YOUTUBE_ARTWORK_URL
from pykaza.helpers.format import format_time
from pykaza.nodes.api.responses.track import Track as APITrack
from pykaza.players.query.classifier import extract_source_name
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True, eq=False)
class Track:
    """A resolved, playable track.

    Tracks are immutable once resolved, the requester is the only attribute that may be attached later.

    Attributes
    ----------
    encoded: :class:`str`
        The node's opaque playable reference.
    title: :class:`str`
        The track title.
    author: :class:`str`
        The track author.
    length: :class:`int`
        Duration in milliseconds, 0 when unknown.
    source_name: :class:`str`
        The platform the track was loaded from.
    requester: Any
        An opaque tag supplied by the caller, usually a member or user id.
    """

    encoded: str
    identifier: str = ""
    title: str = "Unknown title"
    author: str = "Unknown author"
    length: int = 0
    source_name: str = "unknown"
    is_seekable: bool = True
    is_stream: bool = False
    uri: str | None = None
    artwork_url: str | None = None
    isrc: str | None = None
    requester: Any = None

    @classmethod
    def from_api(cls, data: APITrack, requester: Any = None) -> Track:
        """Builds a track from a node response, filling the fields the node omitted.

        Parameters
        ----------
        data: :class:`APITrack`
            The track object returned by the node.
        requester: Any
            The requester to attach.
        """
        info = data.info
        source_name = info.sourceName or extract_source_name(info.uri)
        artwork_url = info.artworkUrl
        if artwork_url is None and source_name == "youtube" and info.identifier:
            artwork_url = YOUTUBE_ARTWORK_URL.format(identifier=info.identifier)
        return cls(
            encoded=data.encoded,
            identifier=info.identifier,
            title=info.title,
            author=info.author,
            length=max(info.length, 0) if not info.isStream else 0,
            source_name=source_name,
            is_seekable=info.isSeekable,
            is_stream=info.isStream,
            uri=info.uri,
            artwork_url=artwork_url,
            isrc=info.isrc,
            requester=requester,
        )

    def set_requester(self, requester: Any) -> None:
        object.__setattr__(self, "requester", requester)

    def with_requester(self, requester: Any) -> Track:
        """Returns a copy of this track with another requester attached"""
        return dataclasses.replace(self, requester=requester)

    @property
    def duration(self) -> str:
        return "LIVE" if self.is_stream else format_time(self.length)

    def to_dict(self) -> JSON_DICT_TYPE:
        return {
            "encoded": self.encoded,
            "identifier": self.identifier,
            "title": self.title,
            "author": self.author,
            "length": self.length,
            "sourceName": self.source_name,
            "isSeekable": self.is_seekable,
            "isStream": self.is_stream,
            "uri": self.uri,
            "artworkUrl": self.artwork_url,
            "isrc": self.isrc,
        }
