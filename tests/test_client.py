from __future__ import annotations

import asyncio

import pytest
from conftest import EventRecorder, FakeConnector, FakeNode, FakePool, FakeScheduler, playlist_response, search_response

from pykaza.core.client import Client
from pykaza.exceptions.client import InvalidConfigException
from pykaza.exceptions.player import PlayerNotFoundException


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


def _client(node: FakeNode | None = None, **kwargs) -> Client:
    kwargs.setdefault("scheduler", FakeScheduler())
    kwargs.setdefault("connector", FakeConnector())
    pool = FakePool(node) if node is not None else FakePool()
    return Client(pool, plugin_config=None, search_retry_base_delay=0, reconnect_delay=0, **kwargs)


async def test_initialize_schedules_the_cache_sweep_and_loads_plugins(scheduler):
    client = _client(FakeNode(), scheduler=scheduler)
    assert not client.initialized
    await client.initialize()
    assert client.initialized
    func, kwargs = scheduler.jobs[client.cache_sweep_job_id]
    assert func == client.cache.sweep
    assert kwargs["trigger"] == "interval"
    assert list(client.plugins.loaded) == ["PlayerMoved"]
    await client.initialize()
    assert list(scheduler.jobs) == [client.cache_sweep_job_id]


async def test_initialize_starts_an_owned_scheduler():
    client = Client(FakePool(FakeNode()), FakeConnector(), plugin_config=None)
    await client.initialize()
    assert client.scheduler.running
    await client.shutdown()
    assert not client.scheduler.running
    assert not client.initialized


async def test_initialize_after_shutdown_restarts_the_scheduler():
    client = Client(FakePool(FakeNode()), FakeConnector(), plugin_config=None)
    await client.initialize()
    await client.shutdown()
    await client.initialize()
    await asyncio.sleep(0.01)
    assert client.scheduler.running
    assert client.initialized
    assert client.scheduler.get_job(client.cache_sweep_job_id) is not None
    await client.shutdown()
    assert not client.scheduler.running


async def test_search_and_enqueue_plays_the_first_track():
    connector = FakeConnector()
    client = _client(FakeNode(responses={"ytsearch:song": search_response("a", "b")}), connector=connector)
    player = await client.create_player(1, 10)
    result = await client.search_and_enqueue(1, "song")
    assert [track.identifier for track in result.tracks] == ["a", "b"]
    assert connector.handle.played() == ["encoded-a"]
    assert player.current.identifier == "a"
    assert player.queue.is_empty


async def test_search_and_enqueue_adds_whole_playlists():
    url = "https://www.youtube.com/playlist?list=PL1234567890"
    node = FakeNode(default=playlist_response("Mix", "a", "b", "c"))
    client = _client(node)
    player = await client.create_player(1, 10)
    result = await client.search_and_enqueue(1, url, start=False)
    assert result.is_playlist
    assert player.current is None
    assert [track.identifier for track in player.queue] == ["a", "b", "c"]


async def test_search_and_enqueue_requires_a_player():
    client = _client(FakeNode(default=search_response("a")))
    with pytest.raises(PlayerNotFoundException):
        await client.search_and_enqueue(1, "song")
    with pytest.raises(PlayerNotFoundException):
        await client.play(1)


async def test_search_and_enqueue_leaves_the_queue_alone_on_errors():
    client = _client(FakeNode(default=ConnectionError("refused")), search_retry_attempts=1)
    player = await client.create_player(1, 10)
    result = await client.search_and_enqueue(1, "song")
    assert result.type == "error"
    assert player.queue.is_empty
    assert player.current is None


async def test_concurrent_enqueues_are_serialized():
    active = 0
    peak = 0

    async def slow(identifier: str) -> dict:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return search_response(identifier.split(":", 1)[1])

    connector = FakeConnector()
    client = _client(FakeNode(default=slow), connector=connector)
    player = await client.create_player(1, 10)
    await asyncio.gather(client.search_and_enqueue(1, "first"), client.search_and_enqueue(1, "second"))
    assert peak == 1
    assert connector.handle.played() == ["encoded-first"]
    assert [track.identifier for track in player.queue] == ["second"]


async def test_play_holds_the_player_lock():
    connector = FakeConnector()
    client = _client(FakeNode(default=search_response("a")), connector=connector)
    player = await client.create_player(1, 10)
    await client.search_and_enqueue(1, "song", start=False)
    async with player.lock:
        task = asyncio.ensure_future(client.play(1))
        await asyncio.sleep(0)
        assert connector.handle.played() == []
    track = await task
    assert track.identifier == "a"
    assert connector.handle.played() == ["encoded-a"]


async def test_relay_voice_payload():
    sent = []

    async def async_send(guild_id, payload):
        sent.append(("async", guild_id, payload))

    await _client(send=lambda guild_id, payload: sent.append(("sync", guild_id, payload))).relay_voice_payload(
        1, {"op": 4}
    )
    await _client(send=async_send).relay_voice_payload(2, {"op": 4})
    assert sent == [("sync", 1, {"op": 4}), ("async", 2, {"op": 4})]
    with pytest.raises(InvalidConfigException):
        await _client().relay_voice_payload(1, {"op": 4})


async def test_stats():
    client = _client(FakeNode(default=search_response("a")))
    await client.create_player(1, 10)
    await client.search("song")
    stats = client.stats()
    assert stats["players"] == 1
    assert stats["playingPlayers"] == 0
    assert stats["nodes"] == 1
    assert stats["search"]["totalSearches"] == 1
    assert stats["cache"]["size"] == 1
    assert stats["plugins"]["builtin"] == 2
    assert stats["uptime"] >= 0


async def test_health_is_healthy():
    report = await _client(FakeNode()).health_check()
    assert report["status"] == "healthy"
    assert all(report["components"].values())


async def test_health_is_degraded_when_the_node_fails():
    report = await _client(FakeNode(default=ConnectionError("refused"))).health_check()
    assert report["status"] == "degraded"
    assert not report["components"]["search"]


async def test_health_is_unhealthy_without_nodes():
    report = await _client().health_check()
    assert report["status"] == "unhealthy"
    assert report["components"] == {"nodes": False, "search": False, "cache": True, "plugins": True}


async def test_shutdown_releases_everything(scheduler):
    connector = FakeConnector()
    client = _client(FakeNode(default=search_response("a")), scheduler=scheduler, connector=connector)
    await client.initialize()
    recorder = EventRecorder(client.dispatcher, "player_destroy")
    await client.create_player(1, 10)
    await client.search("song")
    await client.shutdown()
    assert client.get_player(1) is None
    assert len(recorder.events) == 1
    assert connector.leaves == [1]
    assert len(client.cache) == 0
    assert client.cache_sweep_job_id not in scheduler.jobs
    assert client.plugins.loaded == {}
    assert not client.initialized


async def test_plugin_config_file_is_applied(tmp_path):
    path = tmp_path / "plugins.yaml"
    path.write_text(
        "plugins:\n  AutoLeave:\n    enabled: true\n    config:\n      queueEndTimeout: 5\n", encoding="utf-8"
    )
    client = Client(FakePool(FakeNode()), FakeConnector(), plugin_config=str(path), scheduler=FakeScheduler())
    assert client.plugins.get("AutoLeave").enabled
    await client.initialize()
    assert client.plugins.plugin("AutoLeave").config["queue_end_timeout"] == 5


async def test_clients_are_independent():
    first = _client(FakeNode(default=search_response("a")))
    second = _client(FakeNode(default=search_response("b")))
    await first.create_player(1, 10)
    await first.search("song")
    assert second.get_player(1) is None
    assert len(second.cache) == 0
    assert first.cache_sweep_job_id != second.cache_sweep_job_id
    assert (await second.search("song")).tracks[0].identifier == "b"


def test_classify_is_exposed():
    assert Client.classify("https://open.spotify.com/track/4iV5W9uYEdYUVa79Axb7Rh").platform == "spotify"
