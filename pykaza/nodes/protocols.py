from __future__ import annotations

from collections.abc import Awaitable, Callable, Collection
from typing import Any, Protocol, runtime_checkable

from pykaza.type_hints.dict_typing import JSON_DICT_TYPE

__all__ = (
    "Node",
    "NodePool",
    "PlayerHandle",
    "VoiceConnector",
    "VoiceSender",
    "NODE_EVENTS",
)

# Lifecycle events emitted by a player handle
NODE_EVENTS = ("start", "end", "exception", "stuck", "closed", "update", "resumed")

EventListener = Callable[[JSON_DICT_TYPE], Awaitable[None] | None]


@runtime_checkable
class Node(Protocol):
    """An audio node able to resolve queries, node selection and the wire protocol live outside this library"""

    name: str

    async def resolve(self, identifier: str) -> JSON_DICT_TYPE:
        """Resolves an engine qualified query or a URL into a raw load result"""
        ...


@runtime_checkable
class NodePool(Protocol):
    @property
    def nodes(self) -> Collection[Node]:
        ...

    def ideal_node(self) -> Node | None:
        """Returns the least loaded node, or None when no node is available"""
        ...


@runtime_checkable
class PlayerHandle(Protocol):
    """The node side player returned by a voice join"""

    async def play_track(self, encoded: str, **options: Any) -> None:
        ...

    async def stop_track(self) -> None:
        ...

    async def set_paused(self, paused: bool) -> None:
        ...

    async def seek_to(self, position: int) -> None:
        ...

    async def set_volume(self, volume: int) -> None:
        ...

    async def move(self, channel_id: int) -> None:
        ...

    async def destroy(self) -> None:
        ...

    def on(self, event: str, listener: EventListener) -> None:
        """Subscribes to one of :data:`NODE_EVENTS`"""
        ...


@runtime_checkable
class VoiceConnector(Protocol):
    async def join_channel(
        self, guild_id: int, channel_id: int, *, deaf: bool = True, mute: bool = False
    ) -> PlayerHandle:
        ...

    async def leave_channel(self, guild_id: int) -> None:
        ...


class VoiceSender(Protocol):
    def __call__(self, guild_id: int, payload: JSON_DICT_TYPE) -> Awaitable[None] | None:
        ...
