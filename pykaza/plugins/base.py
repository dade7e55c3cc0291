from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from pykaza.events.utils import to_snake_case
from pykaza.exceptions.client import PluginLoadException
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE

if TYPE_CHECKING:
    from pykaza.core.client import Client
    from pykaza.events.manager import Listener
    from pykaza.players.player import Player


class KazaPlugin:
    """Base class for plugins.

    Subclasses set :attr:`name` and :attr:`default_config`, register their listeners in :meth:`setup` through
    :meth:`listen` and release anything else they hold in :meth:`teardown`.

    Parameters
    ----------
    config: Mapping
        Overrides for :attr:`default_config`, camelCase keys are converted to snake_case.
    """

    name: ClassVar[str] = ""
    version: ClassVar[str] = "1.0.0"
    description: ClassVar[str] = ""
    default_config: ClassVar[JSON_DICT_TYPE] = {}

    def __init__(self, config: Mapping[str, Any] | None = None) -> None:
        self.config: JSON_DICT_TYPE = dict(self.default_config)
        self.update_config(**(config or {}))
        self.client: Client | None = None
        self._listeners: list[tuple[str, Listener]] = []

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(name={self.name!r} loaded={self.client is not None})>"

    def update_config(self, **config: Any) -> None:
        self.config.update({to_snake_case(key): value for key, value in config.items()})

    def listen(self, event: str, listener: Listener) -> None:
        """Registers a listener that is removed again on teardown"""
        if self.client is None:
            raise PluginLoadException(f"Plugin {self.name} is not loaded", details={"plugin": self.name})
        self.client.add_listener(event, listener)
        self._listeners.append((event, listener))

    async def setup(self, client: Client) -> None:
        """|coro|
        Called once when the plugin is loaded"""
        self.client = client

    async def teardown(self) -> None:
        """|coro|
        Called once when the plugin is unloaded"""
        if self.client is not None:
            for event, listener in self._listeners:
                self.client.remove_listener(event, listener)
        self._listeners.clear()
        self.client = None

    async def on_voice_state_update(self, player: Player, before: int | None, after: int | None) -> None:
        """|coro|
        Called when the bot's voice channel changed outside of the library"""

    def stats(self) -> JSON_DICT_TYPE:
        return {"name": self.name, "version": self.version, "loaded": self.client is not None}
