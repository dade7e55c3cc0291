from __future__ import annotations

from typing import TYPE_CHECKING

from pykaza.events.player import PlayerDisconnectedEvent, PlayerMovedEvent
from pykaza.exceptions.base import KazaException
from pykaza.helpers.errors import log_error
from pykaza.logging import getLogger
from pykaza.plugins.base import KazaPlugin
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE

if TYPE_CHECKING:
    from pykaza.players.player import Player

LOGGER = getLogger("PyKaza.Plugin.PlayerMoved")


class PlayerMovedPlugin(KazaPlugin):
    """Keeps players in sync with voice channel changes made outside of the library.

    When the bot is moved the player adopts the new channel, when it is disconnected the player is paused and,
    with ``auto_reconnect`` enabled, brought back to its previous channel.
    """

    name = "PlayerMoved"
    description = "Handles voice channel movement events and auto-reconnection"
    default_config = {
        "auto_reconnect": True,
        "max_reconnect_attempts": 3,
        "reconnect_delay": 5.0,
        "track_movement": True,
    }

    def __init__(self, config=None) -> None:
        super().__init__(config)
        self.reconnect_attempts = 0
        self.successful_reconnects = 0
        self.failed_reconnects = 0

    async def on_voice_state_update(self, player: Player, before: int | None, after: int | None) -> None:
        if before == after or player.destroyed:
            return
        if after is None:
            await self._handle_disconnect(player, before)
            return
        if self.config["track_movement"]:
            LOGGER.info("Player %s moved from channel %s to %s", player.guild_id, before, after)
        player.channel_id = after
        await self.client.dispatcher.dispatch(PlayerMovedEvent(player, before, after))
        if self.config["auto_reconnect"] and not player.is_connected:
            await self._reconnect(player, after)

    async def _handle_disconnect(self, player: Player, channel_id: int | None) -> None:
        LOGGER.info("Player %s was disconnected from channel %s", player.guild_id, channel_id)
        if player.playing:
            try:
                await player.pause()
            except KazaException as exc:
                log_error(exc, "PlayerMoved")
        await self.client.dispatcher.dispatch(PlayerDisconnectedEvent(player, channel_id))
        if self.config["auto_reconnect"] and channel_id is not None:
            await self._reconnect(player, channel_id)

    async def _reconnect(self, player: Player, channel_id: int) -> None:
        attempts = int(self.config["max_reconnect_attempts"])
        self.reconnect_attempts += 1
        if not await player.reconnect(channel_id, attempts=attempts, delay=float(self.config["reconnect_delay"])):
            self.failed_reconnects += 1
            return
        self.successful_reconnects += 1
        if player.paused:
            await player.resume()

    def stats(self) -> JSON_DICT_TYPE:
        return super().stats() | {
            "reconnectAttempts": self.reconnect_attempts,
            "successfulReconnects": self.successful_reconnects,
            "failedReconnects": self.failed_reconnects,
        }
