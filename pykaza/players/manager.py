from __future__ import annotations

from collections.abc import Iterator

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from pykaza.constants.config import (
    DEFAULT_PLAYER_VOLUME,
    POSITION_UPDATE_INTERVAL,
    RECONNECT_ATTEMPTS,
    RECONNECT_DELAY,
)
from pykaza.events.manager import DispatchManager
from pykaza.events.player import PlayerCreateEvent
from pykaza.exceptions.player import PlayerNotFoundException
from pykaza.logging import getLogger
from pykaza.nodes.protocols import VoiceConnector
from pykaza.players.player import Player

LOGGER = getLogger("PyKaza.PlayerManager")


class PlayerController:
    """Represents the player manager that contains all the players.

    len(x):
        Returns the total amount of cached players.
    iter(x):
        Returns an iterator that yields a tuple of (guild_id, player).

    Parameters
    ----------
    connector: :class:`VoiceConnector`
        Used by players to join and leave voice channels.
    dispatcher: :class:`DispatchManager`
        Receives every player event.
    scheduler: :class:`AsyncIOScheduler`
        Runs the position tracking jobs, position tracking is disabled when None.
    """

    __slots__ = (
        "_players",
        "connector",
        "dispatcher",
        "scheduler",
        "default_volume",
        "position_update_interval",
        "reconnect_attempts",
        "reconnect_delay",
    )

    def __init__(
        self,
        connector: VoiceConnector,
        dispatcher: DispatchManager,
        scheduler: AsyncIOScheduler | None = None,
        *,
        default_volume: int = DEFAULT_PLAYER_VOLUME,
        position_update_interval: int = POSITION_UPDATE_INTERVAL,
        reconnect_attempts: int = RECONNECT_ATTEMPTS,
        reconnect_delay: float = RECONNECT_DELAY,
    ) -> None:
        self._players: dict[int, Player] = {}
        self.connector = connector
        self.dispatcher = dispatcher
        self.scheduler = scheduler
        self.default_volume = default_volume
        self.position_update_interval = position_update_interval
        self.reconnect_attempts = reconnect_attempts
        self.reconnect_delay = reconnect_delay

    def __len__(self) -> int:
        return len(self._players)

    def __iter__(self) -> Iterator[tuple[int, Player]]:
        """Returns an iterator that yields a tuple of (guild_id, player)"""
        yield from list(self._players.items())

    def __contains__(self, guild_id: int) -> bool:
        return guild_id in self._players

    @property
    def players(self) -> dict[int, Player]:
        """Returns a dictionary of all players in manager."""
        return self._players

    @property
    def connected_players(self) -> list[Player]:
        """Returns a list of all the connected players"""
        return [p for p in self._players.values() if p.is_connected]

    @property
    def playing_players(self) -> list[Player]:
        """Returns a list of all the playing players"""
        return [p for p in self._players.values() if p.playing]

    @property
    def paused_players(self) -> list[Player]:
        """Returns a list of all the paused players"""
        return [p for p in self._players.values() if p.paused]

    def get(self, guild_id: int) -> Player | None:
        """Gets a player from cache.

        Parameters
        ----------
        guild_id: int
            The guild_id associated with the player to get.

        Returns
        -------
        Optional[:class:`Player`]
            The player, or None when the guild has none.
        """
        return self._players.get(guild_id)

    def get_or_raise(self, guild_id: int) -> Player:
        if (player := self._players.get(guild_id)) is None:
            raise PlayerNotFoundException(details={"guild_id": guild_id})
        return player

    async def create(
        self,
        guild_id: int,
        channel_id: int | None = None,
        *,
        text_channel_id: int | None = None,
        volume: int | None = None,
        deaf: bool = True,
        mute: bool = False,
        connect: bool = True,
    ) -> Player:
        """|coro|
        Creates a player for a guild, or returns the guild's existing player.

        Parameters
        ----------
        guild_id: :class:`int`
            The guild.
        channel_id: :class:`int`
            The voice channel to join.
        text_channel_id: :class:`int`
            An optional text channel kept on the player.
        volume: :class:`int`
            The initial volume, defaults to the controller's default volume.
        deaf: :class:`bool`
            Whether to join deafened.
        mute: :class:`bool`
            Whether to join muted.
        connect: :class:`bool`
            Whether to join the voice channel right away.

        Raises
        ------
        :class:`VoiceConnectionFailedException`
            When joining the voice channel fails, the player is discarded.
        """
        if (player := self._players.get(guild_id)) is not None:
            return player
        player = Player(
            self,
            guild_id,
            channel_id,
            text_channel_id=text_channel_id,
            volume=self.default_volume if volume is None else volume,
            deaf=deaf,
            mute=mute,
        )
        self._players[guild_id] = player
        if connect:
            try:
                await player.connect()
            except Exception:
                self._players.pop(guild_id, None)
                raise
        LOGGER.info("Created player for guild %s", guild_id)
        await self.dispatcher.dispatch(PlayerCreateEvent(player))
        return player

    def forget(self, guild_id: int, player: Player | None = None) -> None:
        """Drops a player from the cache without touching its connection"""
        if player is None or self._players.get(guild_id) is player:
            self._players.pop(guild_id, None)

    async def destroy(self, guild_id: int) -> bool:
        """|coro|
        Destroys the player of a guild.

        Returns
        -------
        :class:`bool`
            Whether a player existed.
        """
        if (player := self._players.get(guild_id)) is None:
            return False
        await player.destroy()
        self.forget(guild_id, player)
        return True

    async def destroy_all(self) -> int:
        """|coro|
        Destroys every player, returns how many were destroyed"""
        count = 0
        for guild_id, __ in self:
            if await self.destroy(guild_id):
                count += 1
        return count
