from __future__ import annotations

from typing import TYPE_CHECKING

from pykaza.events.base import KazaEvent

if TYPE_CHECKING:
    from pykaza.players.player import Player


class QueueEndEvent(KazaEvent):
    """This event is dispatched when the queue has no more tracks to play.

    Event can be listened to by adding a listener with the name `queue_end`,
    or on the bot with the name `kaza_queue_end_event`.

    Attributes
    ----------
    player: :class:`Player`
        The player whose queue ended.
    """

    __slots__ = ("player",)

    def __init__(self, player: Player) -> None:
        self.player = player
