from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from typing import Any

from pykaza.constants.config import SEARCH_LIMIT, SEARCH_RETRY_ATTEMPTS, SEARCH_TIMEOUT
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE

# Accepted keys, camelCase as used by bot code and snake_case as used in Python
OPTION_KEYS = {
    "requester": "requester",
    "limit": "limit",
    "source": "source",
    "timeout": "timeout",
    "retryAttempts": "retry_attempts",
    "retry_attempts": "retry_attempts",
    "fallbackEngines": "fallback_engines",
    "fallback_engines": "fallback_engines",
    "cacheResults": "cache_results",
    "cache_results": "cache_results",
}
# Options where an explicit None means "not set" rather than a value
_NULLABLE = frozenset({"requester", "source", "fallback_engines"})


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class SearchOptions:
    """Options accepted by :meth:`SearchManager.search`.

    Attributes
    ----------
    requester: Any
        Passed through untouched and attached to every returned track.
    limit: :class:`int`
        The maximum number of tracks returned, the result is truncated rather than re-fetched.
    source: :class:`str` | None
        An explicit search engine or platform alias, overriding detection.
    timeout: :class:`float`
        Seconds each upstream attempt may take.
    retry_attempts: :class:`int`
        The total number of attempts made against the primary engine.
    fallback_engines: tuple[:class:`str`, ...] | None
        Engines tried in order when the primary engine yields nothing, None uses the defaults.
    cache_results: :class:`bool`
        Whether the resolution cache is read and written.
    """

    requester: Any = None
    limit: int = SEARCH_LIMIT
    source: str | None = None
    timeout: float = SEARCH_TIMEOUT
    retry_attempts: int = SEARCH_RETRY_ATTEMPTS
    fallback_engines: tuple[str, ...] | None = None
    cache_results: bool = True

    def merge(self, options: SearchOptions | Mapping[str, Any] | None = None, /, **overrides: Any) -> SearchOptions:
        """Returns a copy with ``options`` and ``overrides`` applied.

        Unrecognised keys are ignored, camelCase and snake_case keys are both accepted.
        """
        if isinstance(options, SearchOptions):
            base, raw = options, {}
        else:
            base, raw = self, dict(options or {})
        raw.update(overrides)
        changes = {}
        for key, value in raw.items():
            if (field := OPTION_KEYS.get(key)) is None:
                continue
            if value is None and field not in _NULLABLE:
                continue
            changes[field] = value
        if changes.get("fallback_engines") is not None:
            changes["fallback_engines"] = _as_engines(changes["fallback_engines"])
        if "limit" in changes:
            changes["limit"] = max(int(changes["limit"]), 1)
        if "retry_attempts" in changes:
            changes["retry_attempts"] = max(int(changes["retry_attempts"]), 1)
        if "timeout" in changes:
            changes["timeout"] = float(changes["timeout"])
        return dataclasses.replace(base, **changes) if changes else base

    def to_dict(self) -> JSON_DICT_TYPE:
        return {
            "requester": self.requester,
            "limit": self.limit,
            "source": self.source,
            "timeout": self.timeout,
            "retryAttempts": self.retry_attempts,
            "fallbackEngines": list(self.fallback_engines) if self.fallback_engines is not None else None,
            "cacheResults": self.cache_results,
        }


def _as_engines(engines: str | Iterable[str]) -> tuple[str, ...]:
    if isinstance(engines, str):
        return (engines,)
    return tuple(engines)
