from __future__ import annotations

import asyncio
import contextlib
import datetime
import enum
from typing import TYPE_CHECKING, Any

from apscheduler.jobstores.base import JobLookupError
from dacite import from_dict  # type: ignore

from pykaza.constants.config import DEFAULT_PLAYER_VOLUME
from pykaza.constants.errors import ErrorCode
from pykaza.constants.misc import MAX_VOLUME, MIN_VOLUME
from pykaza.events.player import (
    PlayerClosedEvent,
    PlayerDestroyEvent,
    PlayerDisconnectedEvent,
    PlayerMovedEvent,
    PlayerReconnectFailedEvent,
    PlayerResumedEvent,
    PlayerUpdateEvent,
)
from pykaza.events.queue import QueueEndEvent
from pykaza.events.track import TrackEndEvent, TrackExceptionEvent, TrackStartEvent, TrackStuckEvent
from pykaza.exceptions.base import KazaException
from pykaza.exceptions.player import PlayerDestroyedException, PlayerNotConnectedException, TrackFailedException
from pykaza.exceptions.queue import QueueEmptyException
from pykaza.helpers.errors import create_error, exception_to_error, log_error
from pykaza.helpers.format import format_time
from pykaza.helpers.time import get_now_utc, monotonic_ms
from pykaza.logging import getLogger
from pykaza.nodes.api.responses.websocket import Closed, PlayerUpdate, TrackEnd, TrackException, TrackStuck
from pykaza.nodes.protocols import PlayerHandle
from pykaza.players.queue import Queue
from pykaza.players.tracks.obj import Track
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE

if TYPE_CHECKING:
    from pykaza.players.manager import PlayerController

LOGGER = getLogger("PyKaza.Player")


class PlayerState(enum.Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    PLAYING = "playing"
    PAUSED = "paused"
    DESTROYED = "destroyed"


class Player:
    """The playback state of a single guild.

    A player owns one :class:`Queue`, drives the node side player handle returned by the voice connector and
    advances the queue when the node reports that a track ended. Node events are re-dispatched as library
    events through the client's :class:`DispatchManager`.

    Parameters
    ----------
    manager: :class:`PlayerController`
        The controller that owns this player.
    guild_id: :class:`int`
        The guild this player belongs to.
    channel_id: :class:`int`
        The voice channel to connect to.
    text_channel_id: :class:`int`
        An optional text channel, kept for host applications.
    volume: :class:`int`
        The initial volume, clamped to 0-100.
    deaf: :class:`bool`
        Whether to join deafened.
    mute: :class:`bool`
        Whether to join muted.
    """

    __slots__ = (
        "manager",
        "guild_id",
        "channel_id",
        "text_channel_id",
        "queue",
        "lock",
        "ping",
        "created_at",
        "_handle",
        "_state",
        "_connected",
        "_volume",
        "_deaf",
        "_mute",
        "_last_position",
        "_last_update",
        "_node_track",
        "_previous_track",
        "_stopping",
        "_skipping",
    )

    def __init__(
        self,
        manager: PlayerController,
        guild_id: int,
        channel_id: int | None,
        *,
        text_channel_id: int | None = None,
        volume: int = DEFAULT_PLAYER_VOLUME,
        deaf: bool = True,
        mute: bool = False,
    ) -> None:
        self.manager = manager
        self.guild_id = guild_id
        self.channel_id = channel_id
        self.text_channel_id = text_channel_id
        self.queue = Queue()
        self.lock = asyncio.Lock()
        self.ping = 0
        self.created_at = get_now_utc()
        self._handle: PlayerHandle | None = None
        self._state = PlayerState.IDLE
        self._connected = False
        self._volume = self._clamp_volume(volume)
        self._deaf = deaf
        self._mute = mute
        self._last_position = 0.0
        self._last_update = monotonic_ms()
        self._node_track: Track | None = None
        self._previous_track: Track | None = None
        self._stopping = False
        self._skipping = False

    def __repr__(self) -> str:
        return (
            f"<Player(guild_id={self.guild_id} channel_id={self.channel_id} state={self._state.value} "
            f"current={self.current!r} queue={len(self.queue)})>"
        )

    @staticmethod
    def _clamp_volume(volume: int) -> int:
        return max(min(int(volume), MAX_VOLUME), MIN_VOLUME)

    @property
    def state(self) -> PlayerState:
        return self._state

    @property
    def current(self) -> Track | None:
        """The track being played, None when idle"""
        return self.queue.current

    @property
    def playing(self) -> bool:
        return self._state is PlayerState.PLAYING

    @property
    def paused(self) -> bool:
        return self._state is PlayerState.PAUSED

    @property
    def destroyed(self) -> bool:
        return self._state is PlayerState.DESTROYED

    @property
    def is_connected(self) -> bool:
        return self._connected and self._handle is not None and not self.destroyed

    @property
    def volume(self) -> int:
        return self._volume

    @property
    def position(self) -> int:
        """The position in the current track in milliseconds, interpolated since the last node update"""
        if self.current is None:
            return 0
        position = self._last_position
        if self._state is PlayerState.PLAYING:
            position += monotonic_ms() - self._last_update
        if not self.current.is_stream and self.current.length:
            position = min(position, self.current.length)
        return int(max(position, 0))

    @property
    def formatted_position(self) -> str:
        return format_time(self.position)

    @property
    def formatted_duration(self) -> str:
        return self.current.duration if self.current else format_time(0)

    @property
    def position_job_id(self) -> str:
        return f"{self.guild_id}-position_tracker"

    def _require_connection(self) -> PlayerHandle:
        if self.destroyed:
            raise PlayerDestroyedException(details={"guild_id": self.guild_id})
        if not self.is_connected:
            raise PlayerNotConnectedException(details={"guild_id": self.guild_id})
        return self._handle  # type: ignore

    def _set_position(self, position: float) -> None:
        self._last_position = position
        self._last_update = monotonic_ms()

    async def _dispatch(self, event: Any) -> None:
        await self.manager.dispatcher.dispatch(event)

    def _start_position_tracker(self) -> None:
        scheduler = self.manager.scheduler
        if scheduler is None:
            return
        scheduler.add_job(
            self._track_position,
            trigger="interval",
            seconds=self.manager.position_update_interval,
            max_instances=1,
            id=self.position_job_id,
            replace_existing=True,
            coalesce=True,
            next_run_time=get_now_utc() + datetime.timedelta(seconds=self.manager.position_update_interval),
        )

    def _stop_position_tracker(self) -> None:
        scheduler = self.manager.scheduler
        if scheduler is None:
            return
        with contextlib.suppress(JobLookupError):
            scheduler.remove_job(job_id=self.position_job_id)

    async def _track_position(self) -> None:
        if self._state is PlayerState.PLAYING:
            self._set_position(self.position)

    def _subscribe(self, handle: PlayerHandle) -> None:
        handle.on("start", self._on_start)
        handle.on("end", self._on_end)
        handle.on("exception", self._on_exception)
        handle.on("stuck", self._on_stuck)
        handle.on("closed", self._on_closed)
        handle.on("update", self._on_update)
        handle.on("resumed", self._on_resumed)

    async def _join(self, channel_id: int) -> None:
        self._state = PlayerState.CONNECTING
        try:
            handle = await self.manager.connector.join_channel(
                self.guild_id, channel_id, deaf=self._deaf, mute=self._mute
            )
        except Exception as exc:
            self._state = PlayerState.IDLE
            raise create_error(
                ErrorCode.VOICE_CONNECTION_FAILED, {"guild_id": self.guild_id, "channel_id": channel_id}
            ) from exc
        self._handle = handle
        self._connected = True
        self.channel_id = channel_id
        self._subscribe(handle)
        self._state = PlayerState.IDLE
        if self._volume != MAX_VOLUME:
            await handle.set_volume(self._volume)
        self._start_position_tracker()

    async def connect(self, channel_id: int | None = None) -> None:
        """|coro|
        Joins the voice channel.

        Parameters
        ----------
        channel_id: :class:`int`
            The channel to join, defaults to the channel the player was created for.

        Raises
        ------
        :class:`VoiceConnectionFailedException`
            When there is no channel to join or the connector fails.
        :class:`PlayerDestroyedException`
            When the player was destroyed.
        """
        if self.destroyed:
            raise PlayerDestroyedException(details={"guild_id": self.guild_id})
        channel_id = channel_id or self.channel_id
        if channel_id is None:
            raise create_error(
                ErrorCode.VOICE_CONNECTION_FAILED, {"guild_id": self.guild_id}, "No voice channel to connect to"
            )
        if self.is_connected and channel_id == self.channel_id:
            return
        if self.is_connected:
            await self.move_to(channel_id)
            return
        await self._join(channel_id)
        LOGGER.verbose("Player %s connected to channel %s", self.guild_id, channel_id)

    async def disconnect(self) -> None:
        """|coro|
        Leaves the voice channel, the queue is kept"""
        if not self.is_connected:
            return
        channel_id = self.channel_id
        self._connected = False
        self._handle = None
        self._stop_position_tracker()
        if self._state is not PlayerState.DESTROYED:
            self._state = PlayerState.IDLE
        await self.manager.connector.leave_channel(self.guild_id)
        LOGGER.verbose("Player %s disconnected from channel %s", self.guild_id, channel_id)
        await self._dispatch(PlayerDisconnectedEvent(self, channel_id))

    async def move_to(self, channel_id: int) -> bool:
        """|coro|
        Moves the player to another voice channel, reconnecting when the move fails.

        Returns
        -------
        :class:`bool`
            Whether the player ended up in ``channel_id``.
        """
        handle = self._require_connection()
        before = self.channel_id
        try:
            await handle.move(channel_id)
        except Exception as exc:
            log_error(exception_to_error(exc), "PlayerMove")
            return await self.reconnect(channel_id)
        self.channel_id = channel_id
        await self._dispatch(PlayerMovedEvent(self, before, channel_id))
        return True

    async def reconnect(
        self, channel_id: int | None = None, attempts: int | None = None, delay: float | None = None
    ) -> bool:
        """|coro|
        Tries to get the player into a voice channel a bounded number of times.

        A ``player_reconnect_failed`` event is dispatched once every attempt failed.

        Parameters
        ----------
        channel_id: :class:`int`
            The channel to join, defaults to the current channel.
        attempts: :class:`int`
            The number of attempts, defaults to the controller's setting.
        delay: :class:`float`
            Seconds between attempts, defaults to the controller's setting.
        """
        if self.destroyed:
            return False
        channel_id = channel_id or self.channel_id
        attempts = max(attempts or self.manager.reconnect_attempts, 1)
        delay = self.manager.reconnect_delay if delay is None else delay
        before = self.channel_id
        error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                if self.is_connected:
                    await self._handle.move(channel_id)  # type: ignore
                    self.channel_id = channel_id
                else:
                    await self._join(channel_id)
            except Exception as exc:
                error = exc
                LOGGER.debug("Reconnect attempt %s/%s for player %s failed: %s", attempt, attempts, self.guild_id, exc)
                if attempt < attempts:
                    await asyncio.sleep(delay)
                continue
            LOGGER.info("Player %s reconnected to channel %s after %s attempt(s)", self.guild_id, channel_id, attempt)
            await self._dispatch(PlayerMovedEvent(self, before, channel_id))
            return True
        LOGGER.warning("Giving up reconnecting player %s after %s attempts", self.guild_id, attempts)
        await self._dispatch(PlayerReconnectFailedEvent(self, channel_id, attempts, error))
        return False

    async def _start(self, track: Track) -> None:
        handle = self._require_connection()
        self._stopping = False
        self._skipping = False
        self._previous_track, self._node_track = self._node_track, track
        self._set_position(0)
        try:
            await handle.play_track(track.encoded)
        except Exception as exc:
            error = exception_to_error(exc)
            if error.code is ErrorCode.UNKNOWN_ERROR:
                error = TrackFailedException(details={"track": track.title, "original_error": repr(exc)})
            raise error from exc
        self._state = PlayerState.PLAYING
        LOGGER.debug("Player %s playing %r", self.guild_id, track.title)

    async def play(self, track: Track | None = None) -> Track:
        """|coro|
        Plays a track.

        Parameters
        ----------
        track: :class:`Track`
            The track to play, the next track in the queue is used when omitted.

        Returns
        -------
        :class:`Track`
            The track that is now playing.

        Raises
        ------
        :class:`PlayerNotConnectedException`
            When the player is not connected.
        :class:`QueueEmptyException`
            When no track was given and the queue is empty.
        """
        self._require_connection()
        if track is None:
            track = self.queue.next(force=True)
            if track is None:
                raise QueueEmptyException("There is no track to play", details={"guild_id": self.guild_id})
        else:
            self.queue.current = track
        await self._start(track)
        return track

    async def stop(self) -> None:
        """|coro|
        Stops playback without advancing the queue"""
        handle = self._require_connection()
        self._stopping = True
        self._previous_track, self._node_track = self._node_track, None
        await handle.stop_track()
        self.queue.current = None
        self._set_position(0)
        self._state = PlayerState.IDLE

    async def pause(self, pause: bool = True) -> None:
        """|coro|
        Pauses or resumes playback, the current track is kept"""
        handle = self._require_connection()
        await handle.set_paused(pause)
        if self.current is None:
            return
        if pause and self._state is PlayerState.PLAYING:
            self._set_position(self.position)
            self._state = PlayerState.PAUSED
        elif not pause and self._state is PlayerState.PAUSED:
            self._set_position(self._last_position)
            self._state = PlayerState.PLAYING

    async def resume(self) -> None:
        await self.pause(False)

    async def skip(self) -> None:
        """|coro|
        Skips the current track.

        The node is asked to stop the track and the queue advances when the node reports the end, ignoring track
        repeat. When nothing is playing the next queued track is started instead.

        Raises
        ------
        :class:`QueueEmptyException`
            When nothing is playing and the queue is empty.
        """
        handle = self._require_connection()
        if self.current is None:
            await self.play()
            return
        self._skipping = True
        await handle.stop_track()

    async def seek(self, position: int) -> None:
        """|coro|
        Seeks the current track to ``position`` milliseconds, clamped to the track length"""
        handle = self._require_connection()
        track = self.current
        if track is None:
            raise QueueEmptyException("Nothing is playing", details={"guild_id": self.guild_id})
        if not track.is_seekable or track.is_stream:
            raise TrackFailedException("This track is not seekable", details={"track": track.title})
        position = max(int(position), 0)
        if track.length:
            position = min(position, track.length)
        await handle.seek_to(position)
        self._set_position(position)

    async def set_volume(self, volume: int) -> int:
        """|coro|
        Sets the volume, clamped to 0-100.

        The volume is stored and applied on connect when the player is not connected.

        Returns
        -------
        :class:`int`
            The volume that was applied.
        """
        if self.destroyed:
            raise PlayerDestroyedException(details={"guild_id": self.guild_id})
        self._volume = self._clamp_volume(volume)
        if self.is_connected:
            await self._handle.set_volume(self._volume)  # type: ignore
        return self._volume

    async def destroy(self) -> bool:
        """|coro|
        Stops playback, clears the queue and releases the player.

        Calling this on an already destroyed player does nothing.

        Returns
        -------
        :class:`bool`
            Whether this call destroyed the player.
        """
        if self.destroyed:
            return False
        self._state = PlayerState.DESTROYED
        self._stop_position_tracker()
        handle, self._handle = self._handle, None
        was_connected, self._connected = self._connected, False
        if handle is not None:
            try:
                await handle.destroy()
            except Exception as exc:
                log_error(exception_to_error(exc), "PlayerDestroy")
        if was_connected:
            try:
                await self.manager.connector.leave_channel(self.guild_id)
            except Exception as exc:
                log_error(exception_to_error(exc), "PlayerDestroy")
        self.queue.reset()
        self._node_track = self._previous_track = None
        self.manager.forget(self.guild_id, self)
        LOGGER.verbose("Player %s destroyed", self.guild_id)
        await self._dispatch(PlayerDestroyEvent(self))
        return True

    async def _on_start(self, data: JSON_DICT_TYPE | None = None) -> None:
        if self.destroyed:
            return
        if self._state is not PlayerState.PAUSED:
            self._state = PlayerState.PLAYING
        self._set_position(0)
        await self._dispatch(TrackStartEvent(self, self._node_track or self.current))

    async def _on_end(self, data: JSON_DICT_TYPE | None = None) -> None:
        if self.destroyed:
            return
        data = data or {}
        event = from_dict(data_class=TrackEnd, data=data)
        ended = (data.get("track") or {}).get("encoded")
        stale = ended is not None and (self._node_track is None or ended != self._node_track.encoded)
        if self._stopping or event.reason == "replaced" or stale:
            # A deliberate stop, or the end of a track that was already replaced, must not advance the queue
            self._stopping = False
            await self._dispatch(TrackEndEvent(self, self._previous_track, event.reason, event))
            return
        track = self._node_track
        force = self._skipping or event.reason == "loadFailed"
        self._skipping = False
        self._node_track = None
        self._set_position(0)
        await self._dispatch(TrackEndEvent(self, track, event.reason, event))
        if self.destroyed:
            return
        next_track = self.queue.next(force=force)
        if next_track is None:
            self._state = PlayerState.IDLE
            LOGGER.debug("Queue ended for player %s", self.guild_id)
            await self._dispatch(QueueEndEvent(self))
            return
        try:
            await self._start(next_track)
        except KazaException as exc:
            self._state = PlayerState.IDLE
            self._node_track = None
            self.queue.current = None
            log_error(exc, "PlayerAdvance")

    async def _on_exception(self, data: JSON_DICT_TYPE | None = None) -> None:
        event = from_dict(data_class=TrackException, data=data or {})
        track = self._node_track or self.current
        severity = event.exception.severity
        error = TrackFailedException(
            event.exception.message or None,
            details={"track": track.title if track else None, "cause": event.exception.cause},
            severity=severity if severity in {"common", "suspicious", "fault"} else None,
        )
        log_error(error, "TrackException")
        await self._dispatch(TrackExceptionEvent(self, track, error, event))

    async def _on_stuck(self, data: JSON_DICT_TYPE | None = None) -> None:
        event = from_dict(data_class=TrackStuck, data=data or {})
        LOGGER.warning("Track stuck on player %s after %sms", self.guild_id, event.thresholdMs)
        await self._dispatch(TrackStuckEvent(self, self._node_track or self.current, event.thresholdMs, event))

    async def _on_closed(self, data: JSON_DICT_TYPE | None = None) -> None:
        event = from_dict(data_class=Closed, data=data or {})
        LOGGER.verbose("Voice connection of player %s closed: %s %s", self.guild_id, event.code, event.reason)
        if not self.destroyed and event.byRemote and event.code == 4014:
            # Disconnected from the channel, the handle can not be used until the player reconnects
            self._connected = False
            self._set_position(self.position)
            self._state = PlayerState.IDLE
        await self._dispatch(PlayerClosedEvent(self, event))

    async def _on_update(self, data: JSON_DICT_TYPE | None = None) -> None:
        event = from_dict(data_class=PlayerUpdate, data=data or {"state": {}})
        self._set_position(event.state.position or 0)
        self.ping = event.state.ping
        await self._dispatch(PlayerUpdateEvent(self, event))

    async def _on_resumed(self, data: JSON_DICT_TYPE | None = None) -> None:
        if self.destroyed:
            return
        self._connected = self._handle is not None
        if self.current is not None:
            self._set_position(self._last_position)
            self._state = PlayerState.PLAYING
        await self._dispatch(PlayerResumedEvent(self))

    def stats(self) -> JSON_DICT_TYPE:
        return {
            "guildId": self.guild_id,
            "channelId": self.channel_id,
            "textChannelId": self.text_channel_id,
            "state": self._state.value,
            "playing": self.playing,
            "paused": self.paused,
            "connected": self.is_connected,
            "position": self.position,
            "formattedPosition": self.formatted_position,
            "volume": self._volume,
            "ping": self.ping,
            "current": self.current.to_dict() if self.current else None,
            "queue": self.queue.stats(),
        }
