from __future__ import annotations

from typing import TYPE_CHECKING

from pykaza.events.base import KazaEvent

if TYPE_CHECKING:
    from pykaza.nodes.api.responses.websocket import Closed, PlayerUpdate
    from pykaza.players.player import Player


class PlayerCreateEvent(KazaEvent):
    """This event is dispatched when a player is created.

    Event can be listened to by adding a listener with the name `player_create`.

    Attributes
    ----------
    player: :class:`Player`
        The new player.
    """

    __slots__ = ("player",)

    def __init__(self, player: Player) -> None:
        self.player = player


class PlayerDestroyEvent(KazaEvent):
    """This event is dispatched once when a player is destroyed.

    Event can be listened to by adding a listener with the name `player_destroy`.

    Attributes
    ----------
    player: :class:`Player`
        The destroyed player.
    """

    __slots__ = ("player",)

    def __init__(self, player: Player) -> None:
        self.player = player


class PlayerClosedEvent(KazaEvent):
    """This event is dispatched when the voice websocket of a player is closed by Discord.

    Event can be listened to by adding a listener with the name `player_closed`.

    Attributes
    ----------
    player: :class:`Player`
        The player whose connection closed.
    code: :class:`int`
        The close code.
    reason: :class:`str`
        The close reason.
    by_remote: :class:`bool`
        Whether Discord closed the connection.
    event: :class:`Closed`
        The raw event object.
    """

    __slots__ = ("player", "code", "reason", "by_remote", "event")

    def __init__(self, player: Player, event_object: Closed) -> None:
        self.player = player
        self.code = event_object.code
        self.reason = event_object.reason
        self.by_remote = event_object.byRemote
        self.event = event_object


class PlayerUpdateEvent(KazaEvent):
    """This event is dispatched when the node sends a player state update.

    Event can be listened to by adding a listener with the name `player_update`.

    Attributes
    ----------
    player: :class:`Player`
        The updated player.
    position: :class:`int`
        The position reported by the node, in milliseconds.
    event: :class:`PlayerUpdate`
        The raw event object.
    """

    __slots__ = ("player", "position", "event")

    def __init__(self, player: Player, event_object: PlayerUpdate) -> None:
        self.player = player
        self.position = event_object.state.position
        self.event = event_object


class PlayerResumedEvent(KazaEvent):
    """This event is dispatched when the node resumes a player after a reconnect.

    Event can be listened to by adding a listener with the name `player_resumed`.
    """

    __slots__ = ("player",)

    def __init__(self, player: Player) -> None:
        self.player = player


class PlayerMovedEvent(KazaEvent):
    """This event is dispatched when a player is moved to another voice channel.

    Event can be listened to by adding a listener with the name `player_moved`.

    Attributes
    ----------
    player: :class:`Player`
        The moved player.
    before: :class:`int`
        The previous channel id.
    after: :class:`int`
        The new channel id.
    """

    __slots__ = ("player", "before", "after")

    def __init__(self, player: Player, before: int | None, after: int | None) -> None:
        self.player = player
        self.before = before
        self.after = after


class PlayerDisconnectedEvent(KazaEvent):
    """This event is dispatched when a player is disconnected from its voice channel.

    Event can be listened to by adding a listener with the name `player_disconnected`.

    Attributes
    ----------
    player: :class:`Player`
        The disconnected player.
    channel_id: :class:`int`
        The channel the player was connected to.
    """

    __slots__ = ("player", "channel_id")

    def __init__(self, player: Player, channel_id: int | None) -> None:
        self.player = player
        self.channel_id = channel_id


class PlayerReconnectFailedEvent(KazaEvent):
    """This event is dispatched when a player gives up reconnecting to a voice channel.

    Event can be listened to by adding a listener with the name `player_reconnect_failed`.

    Attributes
    ----------
    player: :class:`Player`
        The player.
    channel_id: :class:`int`
        The channel the player tried to join.
    attempts: :class:`int`
        The number of attempts made.
    error: :class:`Exception`
        The last error.
    """

    __slots__ = ("player", "channel_id", "attempts", "error")

    def __init__(self, player: Player, channel_id: int | None, attempts: int, error: Exception | None) -> None:
        self.player = player
        self.channel_id = channel_id
        self.attempts = attempts
        self.error = error
