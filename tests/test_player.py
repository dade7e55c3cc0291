from __future__ import annotations

import pytest
from conftest import FakeConnector, FakeScheduler, make_track

from pykaza.exceptions.player import (
    PlayerDestroyedException,
    PlayerNotConnectedException,
    PlayerNotFoundException,
    TrackFailedException,
    VoiceConnectionFailedException,
)
from pykaza.exceptions.queue import QueueEmptyException
from pykaza.players.manager import PlayerController
from pykaza.players.player import PlayerState
from pykaza.players.queue import RepeatMode


def _end(identifier: str, reason: str = "finished") -> dict:
    return {"reason": reason, "track": {"encoded": f"encoded-{identifier}"}}


@pytest.fixture
async def player(controller):
    player = await controller.create(1, 10)
    player.queue.add([make_track("1"), make_track("2"), make_track("3")])
    return player


async def test_create_connects_and_dispatches(controller, connector, recorder):
    player = await controller.create(1, 10, text_channel_id=5)
    assert connector.joins == [(1, 10)]
    assert player.is_connected
    assert player.state is PlayerState.IDLE
    assert player.text_channel_id == 5
    assert recorder.names() == ["player_create"]
    assert await controller.create(1, 11) is player
    assert len(controller) == 1
    assert list(controller) == [(1, player)]
    assert 1 in controller
    assert controller.connected_players == [player]


async def test_create_failure_discards_the_player(dispatcher, recorder):
    controller = PlayerController(FakeConnector(failures=1), dispatcher)
    with pytest.raises(VoiceConnectionFailedException):
        await controller.create(1, 10)
    assert controller.get(1) is None
    assert recorder.names() == []


async def test_connect_requires_a_channel(controller):
    player = await controller.create(1, connect=False)
    with pytest.raises(VoiceConnectionFailedException):
        await player.connect()


async def test_get_or_raise(controller):
    with pytest.raises(PlayerNotFoundException):
        controller.get_or_raise(404)


async def test_play_from_queue(player, connector, recorder):
    track = await player.play()
    assert track.identifier == "1"
    assert connector.handle.played() == ["encoded-1"]
    assert player.state is PlayerState.PLAYING
    assert player.current is track
    assert len(player.queue) == 2
    await connector.handle.emit("start", {})
    assert recorder.of("track_start")[0].track is track


async def test_play_explicit_track_keeps_queue(player, connector):
    track = make_track("explicit")
    await player.play(track)
    assert player.current is track
    assert len(player.queue) == 3


async def test_play_with_empty_queue(controller):
    player = await controller.create(1, 10)
    with pytest.raises(QueueEmptyException):
        await player.play()


async def test_play_requires_connection(controller):
    player = await controller.create(1, 10, connect=False)
    player.queue.add(make_track("1"))
    with pytest.raises(PlayerNotConnectedException):
        await player.play()


async def test_track_end_advances_the_queue(player, connector, recorder):
    await player.play()
    await connector.handle.emit("end", _end("1"))
    assert connector.handle.played() == ["encoded-1", "encoded-2"]
    assert player.current.identifier == "2"
    end = recorder.of("track_end")[0]
    assert end.track.identifier == "1"
    assert end.reason == "finished"


async def test_queue_end(player, connector, recorder):
    player.queue.clear()
    player.queue.add(make_track("only"))
    await player.play()
    await connector.handle.emit("end", _end("only"))
    assert player.current is None
    assert player.state is PlayerState.IDLE
    assert recorder.names()[-2:] == ["track_end", "queue_end"]


async def test_track_repeat_replays(player, connector):
    player.queue.set_repeat(RepeatMode.TRACK)
    await player.play()
    await connector.handle.emit("end", _end("1"))
    assert connector.handle.played() == ["encoded-1", "encoded-1"]


async def test_stop_does_not_advance(player, connector, recorder):
    await player.play()
    await player.stop()
    assert ("stop", None) in connector.handle.calls
    assert player.current is None
    assert player.state is PlayerState.IDLE
    await connector.handle.emit("end", _end("1", "stopped"))
    assert connector.handle.played() == ["encoded-1"]
    assert len(player.queue) == 2
    assert "queue_end" not in recorder.names()


async def test_skip_ignores_track_repeat(player, connector):
    player.queue.set_repeat(RepeatMode.TRACK)
    await player.play()
    await player.skip()
    await connector.handle.emit("end", _end("1", "stopped"))
    assert connector.handle.played() == ["encoded-1", "encoded-2"]


async def test_skip_when_idle_starts_playback(player, connector):
    await player.skip()
    assert connector.handle.played() == ["encoded-1"]


async def test_replaced_and_stale_end_events_do_not_advance(player, connector):
    await player.play()
    replacement = make_track("replacement")
    await player.play(replacement)
    await connector.handle.emit("end", _end("1", "replaced"))
    await connector.handle.emit("end", _end("unrelated"))
    assert connector.handle.played() == ["encoded-1", "encoded-replacement"]
    assert player.current is replacement
    assert player.state is PlayerState.PLAYING


async def test_load_failed_skips_ahead(player, connector):
    player.queue.set_repeat(RepeatMode.TRACK)
    await player.play()
    await connector.handle.emit("end", _end("1", "loadFailed"))
    assert connector.handle.played() == ["encoded-1", "encoded-2"]


async def test_failed_advance_leaves_the_player_idle(player, connector):
    await player.play()
    connector.handle.fail_play = True
    await connector.handle.emit("end", _end("1"))
    assert player.state is PlayerState.IDLE
    assert player.current is None
    assert player.queue.current is None
    assert [track.identifier for track in player.queue] == ["3"]


async def test_pause_and_resume(player, connector):
    await player.play()
    await player.pause()
    assert player.paused
    assert ("pause", True) in connector.handle.calls
    await player.resume()
    assert player.playing
    assert ("pause", False) in connector.handle.calls


async def test_seek_is_clamped(player, connector):
    await player.play()
    await player.seek(10**9)
    await player.seek(-5)
    assert [value for name, value in connector.handle.calls if name == "seek"] == [180000, 0]


async def test_seek_rejects_unseekable_tracks(player):
    await player.play(make_track("live", is_seekable=False))
    with pytest.raises(TrackFailedException):
        await player.seek(1000)


async def test_volume_is_clamped_and_applied_on_connect(controller, connector):
    player = await controller.create(1, 10, volume=150, connect=False)
    assert player.volume == 100
    assert await player.set_volume(50) == 50
    await player.connect()
    assert ("volume", 50) in connector.handle.calls
    assert await player.set_volume(-10) == 0
    assert connector.handle.calls[-1] == ("volume", 0)


async def test_destroy_is_idempotent(player, controller, connector, recorder):
    assert await player.destroy()
    assert not await player.destroy()
    assert player.destroyed
    assert recorder.names().count("player_destroy") == 1
    assert connector.handle.calls.count(("destroy", None)) == 1
    assert connector.leaves == [1]
    assert controller.get(1) is None
    assert player.queue.is_empty
    with pytest.raises(PlayerDestroyedException):
        await player.play()
    with pytest.raises(PlayerDestroyedException):
        await player.set_volume(10)
    assert not await controller.destroy(1)


async def test_destroy_all(controller):
    await controller.create(1, 10)
    await controller.create(2, 20)
    assert await controller.destroy_all() == 2
    assert len(controller) == 0


async def test_remote_disconnect_closes_the_connection(player, connector, recorder):
    await player.play()
    await connector.handle.emit("closed", {"code": 4006, "reason": "Session invalid", "byRemote": True})
    assert player.is_connected
    await connector.handle.emit("closed", {"code": 4014, "reason": "Disconnected", "byRemote": True})
    assert not player.is_connected
    assert player.state is PlayerState.IDLE
    closed = recorder.of("player_closed")
    assert [event.code for event in closed] == [4006, 4014]
    assert await player.reconnect(10)
    assert player.is_connected
    assert len(connector.handles) == 2
    assert recorder.of("player_moved")[-1].after == 10


async def test_update_sets_position_and_ping(player, connector, recorder):
    await player.play()
    await connector.handle.emit("update", {"state": {"time": 0, "position": 5000, "connected": True, "ping": 20}})
    assert player.ping == 20
    assert 5000 <= player.position < 6000
    assert recorder.of("player_update")[0].position == 5000


async def test_position_is_clamped_to_track_length(player, connector):
    await player.play()
    await connector.handle.emit("update", {"state": {"position": 10**9, "ping": 1}})
    assert player.position == 180000
    assert player.formatted_position == "3:00"
    assert player.formatted_duration == "3:00"


async def test_exception_and_stuck_events(player, connector, recorder):
    await player.play()
    await connector.handle.emit("exception", {"exception": {"message": "boom", "severity": "fault", "cause": "x"}})
    await connector.handle.emit("stuck", {"thresholdMs": 10000})
    exception = recorder.of("track_exception")[0]
    assert isinstance(exception.exception, TrackFailedException)
    assert exception.exception.message == "boom"
    assert exception.track.identifier == "1"
    assert recorder.of("track_stuck")[0].threshold == 10000


async def test_move_to(player, connector, recorder):
    assert await player.move_to(20)
    assert player.channel_id == 20
    assert ("move", 20) in connector.handle.calls
    moved = recorder.of("player_moved")[0]
    assert (moved.before, moved.after) == (10, 20)


async def test_failed_moves_give_up_after_bounded_attempts(player, connector, recorder):
    connector.handle.fail_move = True
    assert not await player.move_to(20)
    failed = recorder.of("player_reconnect_failed")[0]
    assert failed.attempts == 2
    assert failed.channel_id == 20
    assert player.channel_id == 10


async def test_disconnect_keeps_the_queue(player, connector, recorder):
    await player.disconnect()
    assert not player.is_connected
    assert connector.leaves == [1]
    assert len(player.queue) == 3
    assert recorder.of("player_disconnected")[0].channel_id == 10


async def test_position_tracker_job(connector, dispatcher):
    scheduler = FakeScheduler()
    controller = PlayerController(connector, dispatcher, scheduler, position_update_interval=1)  # type: ignore
    player = await controller.create(7, 70)
    assert player.position_job_id == "7-position_tracker"
    func, kwargs = scheduler.jobs["7-position_tracker"]
    assert kwargs["trigger"] == "interval"
    assert kwargs["seconds"] == 1
    player.queue.add(make_track("1"))
    await player.play()
    await func()
    await player.destroy()
    assert scheduler.jobs == {}


async def test_stats(player):
    await player.play()
    stats = player.stats()
    assert stats["guildId"] == 1
    assert stats["state"] == "playing"
    assert stats["current"]["identifier"] == "1"
    assert stats["queue"]["length"] == 2
