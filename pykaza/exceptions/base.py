from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Literal

from discord.app_commands import AppCommandError
from discord.ext.commands import CommandError

from pykaza.constants.errors import ERROR_MESSAGES, ERROR_SUGGESTIONS, RECOVERABLE_CODES, RETRYABLE_CODES, ErrorCode
from pykaza.helpers.time import get_now_utc
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE


class KazaException(CommandError, AppCommandError):
    """Base exception for errors in the library

    Parameters
    ----------
    message: :class:`str`
        A human-readable message, defaults to the message registered for the error code.
    details: Any
        Extra context attached for logging.
    code: :class:`ErrorCode`
        Overrides the class level error code.
    suggestions: Iterable[:class:`str`]
        Overrides the remediation suggestions registered for the error code.
    severity: :class:`str`
        One of ``common``, ``suspicious`` or ``fault``, inferred from recoverability when omitted.
    """

    code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        details: Any = None,
        code: ErrorCode | None = None,
        suggestions: Iterable[str] | None = None,
        severity: Literal["common", "suspicious", "fault"] | None = None,
    ) -> None:
        if code is not None:
            self.code = code
        self.message = message or ERROR_MESSAGES[self.code]
        self.details = details
        self.timestamp = get_now_utc()
        self.suggestions: tuple[str, ...] = (
            tuple(suggestions) if suggestions is not None else ERROR_SUGGESTIONS.get(self.code, ())
        )
        self._severity = severity
        super().__init__(self.message)

    @property
    def recoverable(self) -> bool:
        """Whether the host application can offer the user a retry"""
        return self.code in RECOVERABLE_CODES

    @property
    def retryable(self) -> bool:
        """Whether the operation that raised this error may be retried automatically"""
        return self.code in RETRYABLE_CODES

    @property
    def severity(self) -> Literal["common", "suspicious", "fault"]:
        if self._severity is not None:
            return self._severity
        return "common" if self.recoverable else "fault"

    def to_dict(self) -> JSON_DICT_TYPE:
        return {
            "code": self.code.value,
            "message": self.message,
            "recoverable": self.recoverable,
            "severity": self.severity,
            "suggestions": list(self.suggestions),
            "timestamp": self.timestamp.isoformat(),
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(code={self.code.value} message={self.message!r})>"
