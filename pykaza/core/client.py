from __future__ import annotations

import asyncio
import contextlib
import inspect
from typing import TYPE_CHECKING, Any, Literal

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from pykaza import __VERSION__
from pykaza.constants.config import (
    CACHE_HEALTH_CEILING,
    CACHE_SWEEP_INTERVAL,
    CACHE_TTL,
    DEFAULT_PLAYER_VOLUME,
    DEFAULT_SEARCH_SOURCE,
    PLUGIN_CONFIG,
    POSITION_UPDATE_INTERVAL,
    RECONNECT_ATTEMPTS,
    RECONNECT_DELAY,
    SEARCH_LIMIT,
    SEARCH_RETRY_ATTEMPTS,
    SEARCH_RETRY_BASE_DELAY,
    SEARCH_TIMEOUT,
)
from pykaza.events.base import KazaEvent
from pykaza.events.manager import DispatchManager, Listener
from pykaza.exceptions.client import InvalidConfigException
from pykaza.helpers.time import get_now_utc, get_tz_utc
from pykaza.logging import getLogger
from pykaza.nodes.protocols import NodePool, VoiceConnector, VoiceSender
from pykaza.players.manager import PlayerController
from pykaza.players.player import Player
from pykaza.players.query.classifier import QueryClassification, classify
from pykaza.players.tracks.obj import Track
from pykaza.plugins.builtin import register_builtin_plugins
from pykaza.plugins.config import apply_plugin_config
from pykaza.plugins.registry import PluginRegistry
from pykaza.search.cache import ResolutionCache
from pykaza.search.manager import SearchManager, SearchOptionsInput
from pykaza.search.options import SearchOptions
from pykaza.search.result import SearchResult
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE

if TYPE_CHECKING:
    from discord.ext.commands import Bot

LOGGER = getLogger("PyKaza.Client")

HealthStatus = Literal["healthy", "degraded", "unhealthy"]


class Client:
    """The entry point of the library.

    A client owns every piece of mutable state: the players, the resolution cache, the search statistics and the
    loaded plugins. Several clients can live side by side, each one with its own scheduler and registries.

    Parameters
    ----------
    node_pool: :class:`NodePool`
        The pool of audio nodes used to resolve queries.
    connector: :class:`VoiceConnector`
        Used by players to join and leave voice channels.
    send: :class:`VoiceSender`
        Relays raw voice gateway payloads to Discord.
    bot: :class:`discord.ext.commands.Bot`
        When given, every event is also dispatched through the bot as ``kaza_<event>_event``.
    plugins: :class:`PluginRegistry`
        A registry to use, a new one is created when omitted.
    register_builtins: :class:`bool`
        Whether to register the builtin plugins that are not registered yet.
    scheduler: :class:`AsyncIOScheduler`
        A scheduler to share, the client creates and owns one when omitted.

    The remaining keyword arguments default to the ``PYKAZA__*`` environment variables.
    """

    __slots__ = (
        "_node_pool",
        "_send",
        "_bot",
        "_scheduler",
        "_owns_scheduler",
        "_dispatch_manager",
        "_cache",
        "_search_manager",
        "_player_controller",
        "_plugins",
        "_cache_sweep_interval",
        "_initiated",
        "_started_at",
        "_asyncio_lock",
    )

    def __init__(
        self,
        node_pool: NodePool,
        connector: VoiceConnector,
        send: VoiceSender | None = None,
        bot: Bot | None = None,
        *,
        default_search_source: str = DEFAULT_SEARCH_SOURCE,
        search_timeout: float = SEARCH_TIMEOUT,
        search_retry_attempts: int = SEARCH_RETRY_ATTEMPTS,
        search_retry_base_delay: float = SEARCH_RETRY_BASE_DELAY,
        search_limit: int = SEARCH_LIMIT,
        cache_ttl: float = CACHE_TTL,
        cache_sweep_interval: float = CACHE_SWEEP_INTERVAL,
        cache_health_ceiling: int = CACHE_HEALTH_CEILING,
        default_volume: int = DEFAULT_PLAYER_VOLUME,
        position_update_interval: int = POSITION_UPDATE_INTERVAL,
        reconnect_attempts: int = RECONNECT_ATTEMPTS,
        reconnect_delay: float = RECONNECT_DELAY,
        plugin_config: str | None = PLUGIN_CONFIG,
        plugins: PluginRegistry | None = None,
        register_builtins: bool = True,
        scheduler: AsyncIOScheduler | None = None,
    ) -> None:
        self._node_pool = node_pool
        self._send = send
        self._bot = bot
        self._owns_scheduler = scheduler is None
        if scheduler is None:
            scheduler = AsyncIOScheduler(prefix="pykaza_scheduler.")
            scheduler.configure(timezone=get_tz_utc())
        self._scheduler = scheduler
        self._dispatch_manager = DispatchManager(bot)
        self._cache = ResolutionCache(ttl=cache_ttl, ceiling=cache_health_ceiling)
        self._search_manager = SearchManager(
            node_pool,
            cache=self._cache,
            default_source=default_search_source,
            default_options=SearchOptions(
                limit=search_limit, timeout=search_timeout, retry_attempts=search_retry_attempts
            ),
            retry_base_delay=search_retry_base_delay,
        )
        self._player_controller = PlayerController(
            connector,
            self._dispatch_manager,
            self._scheduler,
            default_volume=default_volume,
            position_update_interval=position_update_interval,
            reconnect_attempts=reconnect_attempts,
            reconnect_delay=reconnect_delay,
        )
        self._plugins = plugins if plugins is not None else PluginRegistry()
        if register_builtins:
            builtins = PluginRegistry()
            register_builtin_plugins(builtins)
            for registration in builtins.registrations:
                if registration.name not in self._plugins:
                    self._plugins.register(registration)
        if plugin_config:
            apply_plugin_config(self._plugins, plugin_config)
        self._cache_sweep_interval = cache_sweep_interval
        self._initiated = False
        self._started_at = get_now_utc()
        self._asyncio_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"<Client(version={__VERSION__} players={len(self._player_controller)} initiated={self._initiated})>"

    @property
    def initialized(self) -> bool:
        """Returns whether the client has been initialized"""
        return self._initiated

    @property
    def bot(self) -> Bot | None:
        return self._bot

    @property
    def scheduler(self) -> AsyncIOScheduler:
        """Returns the scheduler"""
        return self._scheduler

    @property
    def dispatcher(self) -> DispatchManager:
        """Returns the dispatch manager"""
        return self._dispatch_manager

    @property
    def search_manager(self) -> SearchManager:
        return self._search_manager

    @property
    def player_manager(self) -> PlayerController:
        return self._player_controller

    @property
    def plugins(self) -> PluginRegistry:
        return self._plugins

    @property
    def cache(self) -> ResolutionCache:
        return self._cache

    @property
    def node_pool(self) -> NodePool:
        return self._node_pool

    @property
    def cache_sweep_job_id(self) -> str:
        return f"pykaza-{id(self)}-cache_sweep"

    async def initialize(self) -> None:
        """|coro|
        Starts the scheduler and the cache sweep job and loads the enabled plugins"""
        async with self._asyncio_lock:
            if self._initiated:
                return
            for message in self._plugins.validate_dependencies():
                LOGGER.warning(message)
            self._scheduler.add_job(
                self._cache.sweep,
                trigger="interval",
                seconds=self._cache_sweep_interval,
                max_instances=1,
                replace_existing=True,
                name="cache_sweep",
                coalesce=True,
                id=self.cache_sweep_job_id,
            )
            if self._owns_scheduler and not self._scheduler.running:
                self._scheduler.start()
            await self._plugins.load_all(self)
            self._started_at = get_now_utc()
            self._initiated = True
            LOGGER.info("PyKaza %s initialized", __VERSION__)

    async def shutdown(self) -> None:
        """|coro|
        Destroys every player, unloads the plugins, clears the cache and stops the scheduler"""
        async with self._asyncio_lock:
            destroyed = await self._player_controller.destroy_all()
            await self._plugins.unload_all()
            self._search_manager.clear_cache()
            with contextlib.suppress(JobLookupError):
                self._scheduler.remove_job(job_id=self.cache_sweep_job_id)
            if self._owns_scheduler and self._scheduler.running:
                self._scheduler.shutdown(wait=False)
                # AsyncIOScheduler stops on the next loop iteration
                while self._scheduler.running:
                    await asyncio.sleep(0)
            self._initiated = False
            LOGGER.info("PyKaza shut down, %s player(s) destroyed", destroyed)

    def add_listener(self, event: str | type[KazaEvent], listener: Listener) -> None:
        self._dispatch_manager.add_listener(event, listener)

    def remove_listener(self, event: str | type[KazaEvent], listener: Listener) -> bool:
        return self._dispatch_manager.remove_listener(event, listener)

    @staticmethod
    def classify(query: str) -> QueryClassification:
        return classify(query)

    async def search(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        """|coro|
        Searches for tracks, see :meth:`SearchManager.search`"""
        return await self._search_manager.search(query, options, **overrides)

    async def search_platform(
        self, platform: str, query: str, options: SearchOptionsInput = None, **overrides: Any
    ) -> SearchResult:
        return await self._search_manager.search_platform(platform, query, options, **overrides)

    async def search_youtube(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self._search_manager.search_youtube(query, options, **overrides)

    async def search_youtube_music(
        self, query: str, options: SearchOptionsInput = None, **overrides: Any
    ) -> SearchResult:
        return await self._search_manager.search_youtube_music(query, options, **overrides)

    async def search_spotify(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self._search_manager.search_spotify(query, options, **overrides)

    async def search_apple_music(
        self, query: str, options: SearchOptionsInput = None, **overrides: Any
    ) -> SearchResult:
        return await self._search_manager.search_apple_music(query, options, **overrides)

    async def search_deezer(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self._search_manager.search_deezer(query, options, **overrides)

    async def search_soundcloud(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self._search_manager.search_soundcloud(query, options, **overrides)

    async def search_jiosaavn(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self._search_manager.search_jiosaavn(query, options, **overrides)

    async def search_qobuz(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self._search_manager.search_qobuz(query, options, **overrides)

    async def search_tidal(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self._search_manager.search_tidal(query, options, **overrides)

    async def search_bandcamp(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self._search_manager.search_bandcamp(query, options, **overrides)

    async def create_player(self, guild_id: int, channel_id: int | None = None, **kwargs: Any) -> Player:
        """|coro|
        Creates the player of a guild, or returns the existing one, see :meth:`PlayerController.create`"""
        return await self._player_controller.create(guild_id, channel_id, **kwargs)

    def get_player(self, guild_id: int) -> Player | None:
        return self._player_controller.get(guild_id)

    async def destroy_player(self, guild_id: int) -> bool:
        return await self._player_controller.destroy(guild_id)

    async def play(self, guild_id: int, track: Track | None = None) -> Track:
        """|coro|
        Plays a track on a guild's player while holding the player's lock.

        Raises
        ------
        :class:`PlayerNotFoundException`
            When the guild has no player.
        """
        player = self._player_controller.get_or_raise(guild_id)
        async with player.lock:
            return await player.play(track)

    async def search_and_enqueue(
        self,
        guild_id: int,
        query: str,
        options: SearchOptionsInput = None,
        *,
        start: bool = True,
        **overrides: Any,
    ) -> SearchResult:
        """|coro|
        Searches and adds the result to a guild's queue as a single step.

        The player's lock is held from the search until playback was started, so concurrent commands for the same
        guild can not interleave with the queue changes. Playlists are enqueued whole, other results enqueue
        their first track.

        Parameters
        ----------
        guild_id: :class:`int`
            The guild whose player receives the tracks.
        query: :class:`str`
            The query to search.
        options: :class:`SearchOptions` | :class:`dict`
            Search options.
        start: :class:`bool`
            Start playback when the player is connected and idle.

        Raises
        ------
        :class:`PlayerNotFoundException`
            When the guild has no player.
        """
        player = self._player_controller.get_or_raise(guild_id)
        async with player.lock:
            result = await self._search_manager.search(query, options, **overrides)
            if not result:
                return result
            player.queue.add(result.tracks if result.is_playlist else result.tracks[:1])
            if start and player.is_connected and player.current is None:
                await player.play()
            return result

    async def relay_voice_payload(self, guild_id: int, payload: JSON_DICT_TYPE) -> None:
        """|coro|
        Relays a raw voice gateway payload through the host application's sender.

        Raises
        ------
        :class:`InvalidConfigException`
            When the client was created without a sender.
        """
        if self._send is None:
            raise InvalidConfigException("No voice payload sender was configured", details={"guild_id": guild_id})
        outcome = self._send(guild_id, payload)
        if inspect.isawaitable(outcome):
            await outcome

    async def handle_voice_state_update(
        self, guild_id: int, old_channel_id: int | None, new_channel_id: int | None
    ) -> None:
        """|coro|
        Forwards a change of the bot's voice channel, made outside of the library, to the loaded plugins"""
        if (player := self._player_controller.get(guild_id)) is None:
            return
        for name, plugin in self._plugins.loaded.items():
            try:
                await plugin.on_voice_state_update(player, old_channel_id, new_channel_id)
            except Exception:  # noqa
                LOGGER.exception("Plugin %s failed to handle a voice state update for guild %s", name, guild_id)

    def stats(self) -> JSON_DICT_TYPE:
        return {
            "version": __VERSION__,
            "players": len(self._player_controller),
            "playingPlayers": len(self._player_controller.playing_players),
            "nodes": len(self._node_pool.nodes),
            "uptime": (get_now_utc() - self._started_at).total_seconds(),
            "search": self._search_manager.stats(),
            "cache": self._cache.stats(),
            "plugins": self._plugins.stats(),
        }

    async def health_check(self) -> JSON_DICT_TYPE:
        """|coro|
        Reports the health of the client.

        ``healthy`` when every component is healthy, ``degraded`` when most are and ``unhealthy`` otherwise.
        """
        components = {
            "nodes": len(self._node_pool.nodes) > 0,
            "search": await self._search_manager.health_check(),
            "cache": self._cache.healthy,
            "plugins": self._plugins.healthy,
        }
        healthy_count = sum(components.values())
        status: HealthStatus
        if healthy_count == len(components):
            status = "healthy"
        elif healthy_count > len(components) / 2:
            status = "degraded"
        else:
            status = "unhealthy"
        return {"status": status, "components": components, "timestamp": get_now_utc().isoformat()}
