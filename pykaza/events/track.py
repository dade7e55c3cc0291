from __future__ import annotations

from typing import TYPE_CHECKING

from pykaza.events.base import KazaEvent

if TYPE_CHECKING:
    from pykaza.nodes.api.responses.websocket import TrackEnd, TrackException, TrackStuck
    from pykaza.players.player import Player
    from pykaza.players.tracks.obj import Track


class TrackStartEvent(KazaEvent):
    """This event is dispatched when the player starts to play a track.

    Event can be listened to by adding a listener with the name `track_start`,
    or on the bot with the name `kaza_track_start_event`.

    Attributes
    ----------
    player: :class:`Player`
        The player that started to play the track.
    track: :class:`Track`
        The track that was started.
    """

    __slots__ = ("player", "track")

    def __init__(self, player: Player, track: Track) -> None:
        self.player = player
        self.track = track


class TrackEndEvent(KazaEvent):
    """This event is dispatched when a track ends.

    Event can be listened to by adding a listener with the name `track_end`.

    Attributes
    ----------
    player: :class:`Player`
        The player that played the track.
    track: :class:`Track`
        The track that ended, None when the node reported the end of an unknown track.
    reason: :class:`str`
        One of ``finished``, ``loadFailed``, ``stopped``, ``replaced`` or ``cleanup``.
    event: :class:`TrackEnd`
        The raw event object.
    """

    __slots__ = ("player", "track", "reason", "event")

    def __init__(self, player: Player, track: Track | None, reason: str, event_object: TrackEnd) -> None:
        self.player = player
        self.track = track
        self.reason = reason
        self.event = event_object


class TrackExceptionEvent(KazaEvent):
    """This event is dispatched when the node fails to play a track.

    Event can be listened to by adding a listener with the name `track_exception`.

    Attributes
    ----------
    player: :class:`Player`
        The player that tried to play the track.
    track: :class:`Track`
        The track that failed.
    exception: :class:`TrackFailedException`
        The structured error.
    event: :class:`TrackException`
        The raw event object.
    """

    __slots__ = ("player", "track", "exception", "event")

    def __init__(self, player: Player, track: Track | None, exception: Exception, event_object: TrackException) -> None:
        self.player = player
        self.track = track
        self.exception = exception
        self.event = event_object


class TrackStuckEvent(KazaEvent):
    """This event is dispatched when the node stops receiving audio for the current track.

    Event can be listened to by adding a listener with the name `track_stuck`.

    Attributes
    ----------
    player: :class:`Player`
        The player whose track got stuck.
    track: :class:`Track`
        The stuck track.
    threshold: :class:`int`
        The threshold, in milliseconds, that was exceeded.
    event: :class:`TrackStuck`
        The raw event object.
    """

    __slots__ = ("player", "track", "threshold", "event")

    def __init__(self, player: Player, track: Track | None, threshold: int, event_object: TrackStuck) -> None:
        self.player = player
        self.track = track
        self.threshold = threshold
        self.event = event_object
