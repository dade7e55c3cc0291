from __future__ import annotations

import contextlib
import datetime
from typing import TYPE_CHECKING

from apscheduler.jobstores.base import JobLookupError

from pykaza.events.player import PlayerDestroyEvent
from pykaza.events.queue import QueueEndEvent
from pykaza.events.track import TrackStartEvent
from pykaza.helpers.time import get_now_utc
from pykaza.logging import getLogger
from pykaza.plugins.base import KazaPlugin

if TYPE_CHECKING:
    from pykaza.core.client import Client

LOGGER = getLogger("PyKaza.Plugin.AutoLeave")


class AutoLeavePlugin(KazaPlugin):
    """Destroys players that stay idle for ``queue_end_timeout`` seconds after their queue ended"""

    name = "AutoLeave"
    description = "Leaves the voice channel once the queue has been empty for a while"
    default_config = {"queue_end_timeout": 30.0}

    def __init__(self, config=None) -> None:
        super().__init__(config)
        self._pending: set[int] = set()

    @staticmethod
    def job_id(guild_id: int) -> str:
        return f"{guild_id}-auto_leave"

    async def setup(self, client: Client) -> None:
        await super().setup(client)
        self.listen("queue_end", self._on_queue_end)
        self.listen("track_start", self._on_activity)
        self.listen("player_destroy", self._on_activity)

    async def teardown(self) -> None:
        for guild_id in list(self._pending):
            self._cancel(guild_id)
        await super().teardown()

    def _cancel(self, guild_id: int) -> None:
        self._pending.discard(guild_id)
        with contextlib.suppress(JobLookupError):
            self.client.scheduler.remove_job(job_id=self.job_id(guild_id))

    async def _on_queue_end(self, event: QueueEndEvent) -> None:
        guild_id = event.player.guild_id
        timeout = float(self.config["queue_end_timeout"])
        self.client.scheduler.add_job(
            self._leave,
            trigger="date",
            run_date=get_now_utc() + datetime.timedelta(seconds=timeout),
            args=[guild_id],
            max_instances=1,
            id=self.job_id(guild_id),
            replace_existing=True,
        )
        self._pending.add(guild_id)
        LOGGER.debug("Player %s will leave in %ss unless playback resumes", guild_id, timeout)

    async def _on_activity(self, event: TrackStartEvent | PlayerDestroyEvent) -> None:
        if event.player.guild_id in self._pending:
            self._cancel(event.player.guild_id)

    async def _leave(self, guild_id: int) -> None:
        self._pending.discard(guild_id)
        if self.client is None:
            return
        player = self.client.get_player(guild_id)
        if player is None or player.playing or player.current is not None:
            return
        LOGGER.info("Leaving guild %s after the queue stayed empty", guild_id)
        await self.client.destroy_player(guild_id)
