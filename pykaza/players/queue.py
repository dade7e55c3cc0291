from __future__ import annotations

import collections
import enum
import itertools
import random
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from pykaza.constants.misc import HISTORY_SIZE
from pykaza.exceptions.queue import TrackNotFoundException
from pykaza.helpers.format import format_time
from pykaza.players.tracks.obj import Track
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE


class RepeatMode(enum.IntEnum):
    OFF = 0
    TRACK = 1
    QUEUE = 2


class _QueueEntry:
    """A track together with its insertion position, so that shuffles can be undone"""

    __slots__ = ("track", "order")

    def __init__(self, track: Track, order: int) -> None:
        self.track = track
        self.order = order

    def __repr__(self) -> str:
        return f"<_QueueEntry(order={self.order} track={self.track.title!r})>"


class Queue:
    """An ordered queue of tracks with repeat modes, reversible shuffling and a bounded history.

    The queue tracks the entry handed out last as :attr:`current`. Entries played during the current cycle are
    kept so that queue repeat can restart from the first inserted track once the queue is exhausted.

    Bounds are never enforced by raising, operations given an out of range position return ``None`` or
    ``False`` and leave the queue untouched.
    """

    __slots__ = ("_entries", "_played", "_history", "_current", "_counter", "_repeat", "_shuffled")

    def __init__(self, history_size: int = HISTORY_SIZE) -> None:
        self._entries: list[_QueueEntry] = []
        self._played: list[_QueueEntry] = []
        self._history: collections.deque[_QueueEntry] = collections.deque(maxlen=history_size)
        self._current: _QueueEntry | None = None
        self._counter = 0
        self._repeat = RepeatMode.OFF
        self._shuffled = False

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Track]:
        return iter([entry.track for entry in self._entries])

    def __contains__(self, track: Track) -> bool:
        return any(entry.track is track for entry in self._entries)

    def __repr__(self) -> str:
        return (
            f"<Queue(length={len(self)} repeat={self._repeat.name} shuffled={self._shuffled} "
            f"current={self.current!r})>"
        )

    @property
    def length(self) -> int:
        return len(self._entries)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    @property
    def total_length(self) -> int:
        """The summed duration of the upcoming tracks, in milliseconds"""
        return sum(entry.track.length for entry in self._entries if not entry.track.is_stream)

    @property
    def duration(self) -> str:
        return format_time(self.total_length)

    @property
    def repeat(self) -> RepeatMode:
        return self._repeat

    @property
    def shuffled(self) -> bool:
        return self._shuffled

    @property
    def current(self) -> Track | None:
        return self._current.track if self._current else None

    @current.setter
    def current(self, track: Track | None) -> None:
        """Replaces the current track outside the normal progression, the replaced track goes to history"""
        self._retire_current()
        if track is not None:
            self._current = self._new_entry(track)
            self._played.append(self._current)

    @property
    def history(self) -> list[Track]:
        """Previously played tracks, the most recent last"""
        return [entry.track for entry in self._history]

    def _new_entry(self, track: Track) -> _QueueEntry:
        entry = _QueueEntry(track, self._counter)
        self._counter += 1
        return entry

    def _retire_current(self) -> None:
        if self._current is not None:
            self._history.append(self._current)
        self._current = None

    def _valid(self, index: int) -> bool:
        return isinstance(index, int) and 0 <= index < len(self._entries)

    def _renumber(self) -> None:
        """Makes the live order of this cycle the order restored by unshuffling and by queue repeat"""
        if self._shuffled:
            return
        for order, entry in enumerate(itertools.chain(self._played, self._entries)):
            entry.order = order

    def add(self, tracks: Track | Iterable[Track], index: int | None = None) -> int:
        """Adds one or more tracks.

        Parameters
        ----------
        tracks: :class:`Track` | Iterable[:class:`Track`]
            The track or tracks to add.
        index: :class:`int`
            Insert at this position instead of appending, out of range positions append. While shuffled the
            inserted tracks are restored to the end once shuffling is disabled.

        Returns
        -------
        :class:`int`
            The number of tracks added.
        """
        if isinstance(tracks, Track):
            tracks = [tracks]
        entries = [self._new_entry(track) for track in tracks]
        if index is not None and self._valid(index):
            self._entries[index:index] = entries
            self._renumber()
        else:
            self._entries.extend(entries)
        return len(entries)

    def remove(self, index: int) -> Track | None:
        """Removes the track at ``index``, returns None and changes nothing when out of range"""
        if not self._valid(index):
            return None
        return self._entries.pop(index).track

    def remove_first(self) -> Track | None:
        return self.remove(0)

    def remove_last(self) -> Track | None:
        return self.remove(len(self._entries) - 1)

    def move(self, from_index: int, to_index: int) -> bool:
        """Moves a track to another position, returns False and changes nothing when either index is invalid"""
        if not self._valid(from_index) or not self._valid(to_index):
            return False
        self._entries.insert(to_index, self._entries.pop(from_index))
        self._renumber()
        return True

    def get(self, index: int) -> Track | None:
        return self._entries[index].track if self._valid(index) else None

    def peek(self, index: int = 0) -> Track | None:
        return self.get(index)

    def index(self, track: Track) -> int:
        """Returns the position of a track in the queue.

        Raises
        ------
        :class:`TrackNotFoundException`
            When the track is not queued.
        """
        for position, entry in enumerate(self._entries):
            if entry.track is track:
                return position
        raise TrackNotFoundException(details={"track": track.title})

    def set_repeat(self, mode: RepeatMode | int) -> None:
        self._repeat = RepeatMode(mode)

    def set_shuffle(self, shuffle: bool) -> None:
        """Shuffles the upcoming tracks, or restores the order they had before shuffling"""
        if not shuffle and not self._shuffled:
            return
        self._shuffled = shuffle
        if shuffle:
            random.shuffle(self._entries)
        else:
            self._entries.sort(key=lambda entry: entry.order)

    def sort(self, key: Callable[[Track], Any] | None = None, reverse: bool = False) -> None:
        """Sorts the upcoming tracks, by insertion order when no key is given"""
        if key is None:
            self._entries.sort(key=lambda entry: entry.order, reverse=reverse)
            return
        self._entries.sort(key=lambda entry: key(entry.track), reverse=reverse)
        self._renumber()

    def next(self, force: bool = False) -> Track | None:
        """Advances the queue.

        Parameters
        ----------
        force: :class:`bool`
            Ignore track repeat, used when the current track is skipped.

        Returns
        -------
        :class:`Track` | None
            The track to play next, None when the queue is exhausted.
        """
        if self._repeat is RepeatMode.TRACK and self._current is not None and not force:
            return self._current.track
        if not self._entries and self._repeat is RepeatMode.QUEUE and self._played:
            self._entries = sorted(self._played, key=lambda entry: entry.order)
            self._played = []
            if self._shuffled:
                random.shuffle(self._entries)
        self._retire_current()
        if not self._entries:
            return None
        self._current = self._entries.pop(0)
        self._played.append(self._current)
        return self._current.track

    def previous(self) -> Track | None:
        """Steps back to the most recent history entry, the current track is put back at the front"""
        if not self._history:
            return None
        entry = self._history.pop()
        if self._current is not None:
            if self._current in self._played:
                self._played.remove(self._current)
            self._entries.insert(0, self._current)
        self._current = entry
        if entry not in self._played:
            self._played.append(entry)
        self._renumber()
        return entry.track

    def clear(self) -> None:
        """Removes every upcoming track and forgets the tracks played in this cycle"""
        self._entries.clear()
        self._played.clear()

    def clear_history(self) -> None:
        self._history.clear()

    def reset(self) -> None:
        """Returns the queue to its initial state"""
        self.clear()
        self.clear_history()
        self._current = None
        self._repeat = RepeatMode.OFF
        self._shuffled = False

    def copy(self) -> Queue:
        queue = Queue(history_size=self._history.maxlen or HISTORY_SIZE)
        queue._entries = [_QueueEntry(entry.track, entry.order) for entry in self._entries]
        queue._history.extend(self._history)
        queue._counter = self._counter
        queue._repeat = self._repeat
        queue._shuffled = self._shuffled
        return queue

    def stats(self) -> JSON_DICT_TYPE:
        return {
            "length": self.length,
            "totalLength": self.total_length,
            "formattedDuration": self.duration,
            "repeatMode": self._repeat.name.lower(),
            "shuffled": self._shuffled,
            "previousCount": len(self._history),
            "isEmpty": self.is_empty,
        }
