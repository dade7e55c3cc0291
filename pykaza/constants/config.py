from __future__ import annotations

import os

from pykaza.constants.misc import MAX_VOLUME, MIN_VOLUME
from pykaza.constants.node_features import SUPPORTED_SEARCHES
from pykaza.logging import getLogger

LOGGER = getLogger("PyKaza.Environment")


def _number_from_env(name: str, default: int | float, minimum: int | float = 0) -> int | float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = type(default)(raw)
    except ValueError:
        LOGGER.warning("Invalid value %r for %s, defaulting to %s", raw, name, default)
        return default
    if value < minimum:
        LOGGER.warning("%s must be at least %s, defaulting to %s", name, minimum, default)
        return default
    return value


# noinspection SpellCheckingInspection
DEFAULT_SEARCH_SOURCE = os.getenv("PYKAZA__DEFAULT_SEARCH_SOURCE", "ytsearch")
if DEFAULT_SEARCH_SOURCE not in SUPPORTED_SEARCHES:
    # noinspection SpellCheckingInspection
    LOGGER.warning("Invalid search source %s, defaulting to ytsearch", DEFAULT_SEARCH_SOURCE)
    LOGGER.info("Valid search sources are %s", ", ".join(SUPPORTED_SEARCHES.keys()))
    # noinspection SpellCheckingInspection
    DEFAULT_SEARCH_SOURCE = "ytsearch"

SEARCH_TIMEOUT = _number_from_env("PYKAZA__SEARCH_TIMEOUT", 15.0, minimum=0.1)
SEARCH_RETRY_ATTEMPTS = _number_from_env("PYKAZA__SEARCH_RETRY_ATTEMPTS", 3, minimum=1)
SEARCH_RETRY_BASE_DELAY = _number_from_env("PYKAZA__SEARCH_RETRY_BASE_DELAY", 1.0)
SEARCH_LIMIT = _number_from_env("PYKAZA__SEARCH_LIMIT", 10, minimum=1)

CACHE_TTL = _number_from_env("PYKAZA__CACHE_TTL", 300.0, minimum=1)
CACHE_SWEEP_INTERVAL = _number_from_env("PYKAZA__CACHE_SWEEP_INTERVAL", 60, minimum=1)
CACHE_HEALTH_CEILING = _number_from_env("PYKAZA__CACHE_HEALTH_CEILING", 10000, minimum=1)

DEFAULT_PLAYER_VOLUME = max(min(_number_from_env("PYKAZA__DEFAULT_PLAYER_VOLUME", 100), MAX_VOLUME), MIN_VOLUME)
POSITION_UPDATE_INTERVAL = _number_from_env("PYKAZA__POSITION_UPDATE_INTERVAL", 1, minimum=1)

RECONNECT_ATTEMPTS = _number_from_env("PYKAZA__RECONNECT_ATTEMPTS", 3, minimum=1)
RECONNECT_DELAY = _number_from_env("PYKAZA__RECONNECT_DELAY", 1.0)

PLUGIN_CONFIG = os.getenv("PYKAZA__PLUGIN_CONFIG")
