from __future__ import annotations

import pytest

from pykaza.events.manager import DispatchManager
from pykaza.events.queue import QueueEndEvent
from pykaza.events.track import TrackStartEvent
from pykaza.events.utils import get_event_name, get_simple_event_name, to_snake_case

EVENT_NAMES = {
    "player_create",
    "player_destroy",
    "player_closed",
    "player_update",
    "player_resumed",
    "player_moved",
    "player_disconnected",
    "player_reconnect_failed",
    "track_start",
    "track_end",
    "track_exception",
    "track_stuck",
    "queue_end",
}


class FakeBot:
    def __init__(self) -> None:
        self.dispatched: list[tuple[str, object]] = []

    def dispatch(self, name: str, event: object) -> None:
        self.dispatched.append((name, event))


def test_event_names():
    dispatcher = DispatchManager()
    assert dispatcher.simple_event_names() == EVENT_NAMES
    assert "kaza_track_start_event" in dispatcher.get_event_names()
    assert get_event_name(QueueEndEvent) == "kaza_queue_end_event"
    assert get_simple_event_name(QueueEndEvent) == "queue_end"
    assert to_snake_case("maxReconnectAttempts") == "max_reconnect_attempts"
    assert to_snake_case("already_snake") == "already_snake"


def test_unknown_events_are_rejected():
    dispatcher = DispatchManager()
    with pytest.raises(ValueError):
        dispatcher.add_listener("track_started", print)
    with pytest.raises(ValueError):
        dispatcher.listeners("nope")


async def test_dispatch_calls_listeners_in_order_and_the_bot():
    bot = FakeBot()
    dispatcher = DispatchManager(bot)  # type: ignore
    calls = []

    def sync_listener(event):
        calls.append(("sync", event))

    async def async_listener(event):
        calls.append(("async", event))

    dispatcher.add_listener("queue_end", sync_listener)
    dispatcher.add_listener(QueueEndEvent, async_listener)
    event = QueueEndEvent(player=None)  # type: ignore
    await dispatcher.dispatch(event)
    assert calls == [("sync", event), ("async", event)]
    assert bot.dispatched == [("kaza_queue_end_event", event)]


async def test_listener_errors_do_not_propagate(caplog: pytest.LogCaptureFixture):
    dispatcher = DispatchManager()
    calls = []

    async def broken(event):
        raise RuntimeError("listener failure")

    dispatcher.add_listener("track_start", broken)
    dispatcher.add_listener("track_start", calls.append)
    event = TrackStartEvent(player=None, track=None)  # type: ignore
    await dispatcher.dispatch(event)
    assert calls == [event]
    assert any("track_start" in record.getMessage() for record in caplog.records)


def test_remove_listener():
    dispatcher = DispatchManager()
    dispatcher.add_listener("queue_end", print)
    assert dispatcher.listeners("queue_end") == [print]
    assert dispatcher.remove_listener("queue_end", print)
    assert not dispatcher.remove_listener("queue_end", print)
    assert dispatcher.listeners(QueueEndEvent) == []


def test_event_repr():
    event = QueueEndEvent(player="guild")  # type: ignore
    assert repr(event) == "<QueueEndEvent(player='guild')>"
