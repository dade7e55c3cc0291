from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable, Collection
from typing import Any, TypeVar

import aiohttp

from pykaza.constants.errors import RETRYABLE_CODES, ErrorCode
from pykaza.exceptions.base import KazaException
from pykaza.exceptions.client import InvalidConfigException, PluginLoadException
from pykaza.exceptions.node import (
    ConnectionFailedException,
    NodeException,
    NoNodeAvailableException,
    RateLimitedException,
    TimeoutException,
)
from pykaza.exceptions.player import PlayerNotFoundException, TrackFailedException, VoiceConnectionFailedException
from pykaza.exceptions.queue import InvalidIndexException, QueueEmptyException, TrackNotFoundException
from pykaza.exceptions.search import (
    InvalidURLException,
    MissingCredentialsException,
    NoResultsException,
    PlatformUnavailableException,
    SearchFailedException,
)
from pykaza.logging import getLogger

LOGGER = getLogger("PyKaza.Errors")

T = TypeVar("T")

_EXCEPTION_FOR_CODE: dict[ErrorCode, type[KazaException]] = {
    ErrorCode.CONNECTION_FAILED: ConnectionFailedException,
    ErrorCode.NODE_UNAVAILABLE: NoNodeAvailableException,
    ErrorCode.LAVALINK_ERROR: NodeException,
    ErrorCode.PLAYER_NOT_FOUND: PlayerNotFoundException,
    ErrorCode.VOICE_CONNECTION_FAILED: VoiceConnectionFailedException,
    ErrorCode.TRACK_FAILED: TrackFailedException,
    ErrorCode.NO_RESULTS: NoResultsException,
    ErrorCode.SEARCH_FAILED: SearchFailedException,
    ErrorCode.INVALID_URL: InvalidURLException,
    ErrorCode.PLATFORM_UNAVAILABLE: PlatformUnavailableException,
    ErrorCode.MISSING_CREDENTIALS: MissingCredentialsException,
    ErrorCode.INVALID_CONFIG: InvalidConfigException,
    ErrorCode.PLUGIN_LOAD_FAILED: PluginLoadException,
    ErrorCode.QUEUE_EMPTY: QueueEmptyException,
    ErrorCode.TRACK_NOT_FOUND: TrackNotFoundException,
    ErrorCode.INVALID_INDEX: InvalidIndexException,
    ErrorCode.TIMEOUT: TimeoutException,
    ErrorCode.RATE_LIMITED: RateLimitedException,
}


def create_error(code: ErrorCode, details: Any = None, message: str | None = None) -> KazaException:
    """Creates the exception registered for the given error code.

    Parameters
    ----------
    code: :class:`ErrorCode`
        The error code.
    details: Any
        Extra context attached to the error.
    message: :class:`str`
        A custom message, the code's default message is used when omitted.

    Returns
    -------
    :class:`KazaException`
        The exception, not raised.
    """
    return _EXCEPTION_FOR_CODE.get(code, KazaException)(message, details=details, code=code)


def exception_to_error(exc: BaseException) -> KazaException:
    """Maps an arbitrary exception onto the error taxonomy"""
    if isinstance(exc, KazaException):
        return exc
    details = {"original_error": repr(exc)}
    match exc:
        case asyncio.TimeoutError():
            return create_error(ErrorCode.TIMEOUT, details)
        case aiohttp.ClientResponseError(status=429):
            return create_error(ErrorCode.RATE_LIMITED, details)
        case aiohttp.ClientResponseError(status=401 | 403):
            return create_error(ErrorCode.MISSING_CREDENTIALS, details)
        case aiohttp.ClientResponseError():
            return create_error(ErrorCode.LAVALINK_ERROR, details, f"Lavalink responded with status {exc.status}")
        case aiohttp.ClientConnectionError() | ConnectionError() | OSError():
            return create_error(ErrorCode.CONNECTION_FAILED, details)
        case _:
            return create_error(ErrorCode.UNKNOWN_ERROR, details, str(exc) or None)


def is_kaza_error(error: Any) -> bool:
    return isinstance(error, KazaException)


def format_error(error: Any) -> str:
    """Formats an error for display to an end user"""
    if isinstance(error, KazaException):
        message = f"[{error.code.value}] {error.message}"
        if error.suggestions:
            message += "\n\nSuggestions:\n• " + "\n• ".join(error.suggestions)
        return message
    if isinstance(error, BaseException):
        return f"Error: {error}"
    return f"Unknown error: {error}"


def log_error(error: Any, context: str | None = None) -> None:
    """Logs an error at a level matching its recoverability"""
    prefix = f"[{context}]" if context else "[PyKaza]"
    if isinstance(error, KazaException):
        level = LOGGER.warning if error.recoverable else LOGGER.error
        level("%s %s: %s", prefix, error.code.value, error.message, extra={"details": error.details})
    elif isinstance(error, BaseException):
        LOGGER.error("%s %s: %s", prefix, type(error).__name__, error, exc_info=error)
    else:
        LOGGER.error("%s Unknown error: %r", prefix, error)


def _consume_result(task: asyncio.Future) -> None:
    if not task.cancelled():
        with contextlib.suppress(BaseException):
            task.exception()


async def with_timeout(awaitable: Awaitable[T], timeout: float, code: ErrorCode = ErrorCode.TIMEOUT) -> T:
    """|coro|
    Races an awaitable against a timer.

    The losing awaitable is not cancelled, its eventual result is discarded.

    Parameters
    ----------
    awaitable: Awaitable
        The operation to race.
    timeout: :class:`float`
        Seconds to wait before giving up.
    code: :class:`ErrorCode`
        The error code raised when the timer wins.

    Raises
    ------
    :class:`KazaException`
        When the timer settles first.
    """
    task = asyncio.ensure_future(awaitable)
    done, __ = await asyncio.wait({task}, timeout=timeout)
    if task in done:
        return task.result()
    task.add_done_callback(_consume_result)
    raise create_error(code, {"timeout": timeout})


async def retry(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 3,
    base_delay: float = 1.0,
    retryable: Collection[ErrorCode] = RETRYABLE_CODES,
) -> T:
    """|coro|
    Runs an operation up to ``attempts`` times with exponential backoff.

    Only errors whose code is in ``retryable`` are retried, the delay before attempt ``n`` (zero based) is
    ``base_delay * 2 ** (n - 1)``.

    Raises
    ------
    :class:`KazaException`
        The last error once every attempt has been used or a non retryable error is raised.
    """
    attempts = max(attempts, 1)
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            error = exception_to_error(exc)
            attempt += 1
            if attempt >= attempts or error.code not in retryable:
                if error is exc:
                    raise
                raise error from exc
            delay = base_delay * 2 ** (attempt - 1)
            LOGGER.debug("Attempt %s/%s failed with %s, retrying in %ss", attempt, attempts, error.code, delay)
            await asyncio.sleep(delay)
