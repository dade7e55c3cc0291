from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from pykaza.events import base, player, queue, track
from pykaza.events.utils import get_event_name, get_simple_event_name
from pykaza.logging import getLogger

if TYPE_CHECKING:
    from discord.ext.commands import Bot

LOGGER = getLogger("PyKaza.DispatchManager")

Listener = Callable[[Any], Awaitable[None] | None]


class DispatchManager:
    """
    The Dispatcher is responsible for dispatching events to the appropriate
    handlers.

    Listeners are registered under the simple event name, e.g. ``track_start``, and are called in
    registration order. When a bot is attached every event is also dispatched through it with the
    ``kaza_`` prefixed name.

    Examples
    --------
    >>> async def announce(event: track.TrackStartEvent):
    >>>    print(f"Now playing: {event.track.title}")

    >>> client.add_listener("track_start", announce)

    >>> @commands.Cog.listener()
    >>> async def on_kaza_queue_end_event(self, event: queue.QueueEndEvent):
    >>>    print(f"Queue ended: {event.player.guild_id}")
    """

    __slots__ = ("_bot", "mapping", "simple_mapping", "_listeners")

    def __init__(self, bot: Bot | None = None) -> None:
        self._bot = bot
        self.mapping: dict[type[base.KazaEvent], str] = {}
        self.simple_mapping: dict[type[base.KazaEvent], str] = {}
        self._listeners: dict[str, list[Listener]] = {}
        self._update_mapper(player)
        self._update_mapper(queue)
        self._update_mapper(track)

    def _update_mapper(self, module: player | queue | track) -> None:  # type: ignore
        """Updates the mapping with the events from the given module."""
        for __, cls in inspect.getmembers(module, inspect.isclass):
            if issubclass(cls, base.KazaEvent) and cls is not base.KazaEvent:
                self.mapping[cls] = get_event_name(cls)
                self.simple_mapping[cls] = get_simple_event_name(cls)

    def _validate_name(self, event: str | type[base.KazaEvent]) -> str:
        if isinstance(event, type):
            event = get_simple_event_name(event)
        if event not in self.simple_event_names():
            raise ValueError(f"Unknown event: {event}")
        return event

    def add_listener(self, event: str | type[base.KazaEvent], listener: Listener) -> None:
        """Registers a listener for an event.

        Parameters
        ----------
        event: :class:`str` | type[:class:`KazaEvent`]
            The simple event name or the event class.
        listener: Callable
            A function or coroutine function called with the event.

        Raises
        ------
        ValueError
            When the event name is unknown.
        """
        self._listeners.setdefault(self._validate_name(event), []).append(listener)

    def remove_listener(self, event: str | type[base.KazaEvent], listener: Listener) -> bool:
        """Removes a listener, returns whether it was registered"""
        listeners = self._listeners.get(self._validate_name(event), [])
        if listener not in listeners:
            return False
        listeners.remove(listener)
        return True

    def listeners(self, event: str | type[base.KazaEvent]) -> list[Listener]:
        return list(self._listeners.get(self._validate_name(event), []))

    async def dispatch(self, event: base.KazaEvent) -> None:
        """Dispatches an event to its listeners and to the bot, listener errors are logged and do not propagate"""
        simple_name = self.simple_mapping[type(event)]
        LOGGER.trace("Dispatching %s", simple_name)
        for listener in list(self._listeners.get(simple_name, [])):
            try:
                outcome = listener(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:  # noqa
                LOGGER.exception("Listener %r for %s raised", listener, simple_name)
        if self._bot is not None:
            self._bot.dispatch(self.mapping[type(event)], event)

    def get_event_names(self) -> set[str]:
        """Returns a set of all event names

        Returns
        -------
        set[str]
            A set of all event names prefixed with `kaza_`
        """
        return set(self.mapping.values())

    def simple_event_names(self) -> set[str]:
        """Returns a set of all simple event names

        Returns
        -------
        set[str]
            A set of all event names

        """
        return set(self.simple_mapping.values())
