from __future__ import annotations

import dataclasses

from pykaza.nodes.api.responses.exceptions import LoadException


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class State:
    time: int = 0
    connected: bool = True
    ping: int = -1
    position: int | None = 0


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class PlayerUpdate:
    state: State


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class TrackEnd:
    reason: str = "finished"


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class TrackStuck:
    thresholdMs: int = 0


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class TrackException:
    exception: LoadException = dataclasses.field(default_factory=LoadException)


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class Closed:
    code: int = 1000
    reason: str = ""
    byRemote: bool = False
