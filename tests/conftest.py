from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

import pytest
from apscheduler.jobstores.base import JobLookupError

from pykaza.events.manager import DispatchManager
from pykaza.players.manager import PlayerController
from pykaza.players.tracks.obj import Track


def api_track(identifier: str, title: str | None = None, *, length: int = 180000, uri: str | None = None) -> dict:
    return {
        "encoded": f"encoded-{identifier}",
        "info": {
            "identifier": identifier,
            "isSeekable": True,
            "author": "Artist",
            "length": length,
            "isStream": False,
            "position": 0,
            "title": title or f"Track {identifier}",
            "uri": uri or f"https://www.youtube.com/watch?v={identifier}",
            "sourceName": "youtube",
        },
    }


def search_response(*identifiers: str) -> dict:
    return {"loadType": "search", "data": [api_track(identifier) for identifier in identifiers]}


def track_response(identifier: str) -> dict:
    return {"loadType": "track", "data": api_track(identifier)}


def playlist_response(name: str, *identifiers: str, selected: int = -1) -> dict:
    return {
        "loadType": "playlist",
        "data": {
            "info": {"name": name, "selectedTrack": selected},
            "tracks": [api_track(identifier) for identifier in identifiers],
        },
    }


EMPTY_RESPONSE = {"loadType": "empty", "data": None}


def make_track(identifier: str, *, length: int = 180000, **kwargs: Any) -> Track:
    return Track(
        encoded=f"encoded-{identifier}", identifier=identifier, title=f"Track {identifier}", length=length, **kwargs
    )


class FakeNode:
    """Resolves queries from a script of responses, exceptions or callables keyed by qualified query"""

    def __init__(self, name: str = "node-1", responses: dict[str, Any] | None = None, default: Any = None) -> None:
        self.name = name
        self.responses = responses or {}
        self.default = EMPTY_RESPONSE if default is None else default
        self.calls: list[str] = []

    async def resolve(self, identifier: str) -> dict:
        self.calls.append(identifier)
        outcome = self.responses.get(identifier, self.default)
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        if callable(outcome):
            outcome = outcome(identifier)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakePool:
    def __init__(self, *nodes: FakeNode) -> None:
        self._nodes = list(nodes)

    @property
    def nodes(self) -> list[FakeNode]:
        return self._nodes

    def ideal_node(self) -> FakeNode | None:
        return self._nodes[0] if self._nodes else None


class FakeHandle:
    """Records every call made by a player and lets tests emit node events"""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.listeners: dict[str, list[Callable]] = {}
        self.fail_move = False
        self.fail_play = False

    async def play_track(self, encoded: str, **options: Any) -> None:
        if self.fail_play:
            raise ConnectionError("play failed")
        self.calls.append(("play", encoded))

    async def stop_track(self) -> None:
        self.calls.append(("stop", None))

    async def set_paused(self, paused: bool) -> None:
        self.calls.append(("pause", paused))

    async def seek_to(self, position: int) -> None:
        self.calls.append(("seek", position))

    async def set_volume(self, volume: int) -> None:
        self.calls.append(("volume", volume))

    async def move(self, channel_id: int) -> None:
        if self.fail_move:
            raise ConnectionError("move failed")
        self.calls.append(("move", channel_id))

    async def destroy(self) -> None:
        self.calls.append(("destroy", None))

    def on(self, event: str, listener: Callable) -> None:
        self.listeners.setdefault(event, []).append(listener)

    def played(self) -> list[str]:
        return [value for name, value in self.calls if name == "play"]

    async def emit(self, event: str, data: dict | None = None) -> None:
        for listener in self.listeners.get(event, []):
            await listener(data or {})


class FakeConnector:
    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.handles: list[FakeHandle] = []
        self.joins: list[tuple[int, int]] = []
        self.leaves: list[int] = []

    @property
    def handle(self) -> FakeHandle:
        return self.handles[-1]

    async def join_channel(
        self, guild_id: int, channel_id: int, *, deaf: bool = True, mute: bool = False
    ) -> FakeHandle:
        self.joins.append((guild_id, channel_id))
        if self.failures:
            self.failures -= 1
            raise ConnectionError("voice join failed")
        handle = FakeHandle()
        self.handles.append(handle)
        return handle

    async def leave_channel(self, guild_id: int) -> None:
        self.leaves.append(guild_id)


class FakeScheduler:
    """Records jobs instead of running them"""

    def __init__(self) -> None:
        self.jobs: dict[str, tuple] = {}
        self.running = False

    def add_job(self, func, **kwargs) -> None:
        self.jobs[kwargs["id"]] = (func, kwargs)

    def remove_job(self, job_id: str) -> None:
        if job_id not in self.jobs:
            raise JobLookupError(job_id)
        del self.jobs[job_id]

    async def run(self, job_id: str) -> None:
        func, kwargs = self.jobs[job_id]
        await func(*kwargs.get("args", ()))


class EventRecorder:
    def __init__(self, dispatcher: DispatchManager, *names: str) -> None:
        self.events: list[tuple[str, Any]] = []
        for name in names or sorted(dispatcher.simple_event_names()):
            dispatcher.add_listener(name, self._recorder(name))

    def _recorder(self, name: str) -> Callable:
        async def record(event: Any) -> None:
            self.events.append((name, event))

        return record

    def names(self) -> list[str]:
        return [name for name, __ in self.events]

    def of(self, name: str) -> list[Any]:
        return [event for event_name, event in self.events if event_name == name]


@pytest.fixture
def node() -> FakeNode:
    return FakeNode()


@pytest.fixture
def pool(node: FakeNode) -> FakePool:
    return FakePool(node)


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def dispatcher() -> DispatchManager:
    return DispatchManager()


@pytest.fixture
def recorder(dispatcher: DispatchManager) -> EventRecorder:
    return EventRecorder(dispatcher)


@pytest.fixture
def controller(connector: FakeConnector, dispatcher: DispatchManager) -> PlayerController:
    return PlayerController(connector, dispatcher, reconnect_attempts=2, reconnect_delay=0)
