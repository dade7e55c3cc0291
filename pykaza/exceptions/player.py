from __future__ import annotations

from pykaza.constants.errors import ErrorCode
from pykaza.exceptions.base import KazaException


class PlayerException(KazaException):
    """Base exception for Player errors"""

    code = ErrorCode.UNKNOWN_ERROR


class PlayerNotFoundException(PlayerException):
    """Raised when no player exists for a guild"""

    code = ErrorCode.PLAYER_NOT_FOUND


class VoiceConnectionFailedException(PlayerException):
    """Raised when joining or moving the voice channel fails"""

    code = ErrorCode.VOICE_CONNECTION_FAILED


class PlayerNotConnectedException(VoiceConnectionFailedException):
    """Raised when an operation needs a voice connection that the player does not have"""

    def __init__(self, message: str | None = None, **kwargs) -> None:
        super().__init__(message or "The player is not connected to a voice channel", **kwargs)


class PlayerDestroyedException(PlayerNotConnectedException):
    """Raised when an operation is attempted on a destroyed player"""

    def __init__(self, message: str | None = None, **kwargs) -> None:
        super().__init__(message or "The player has been destroyed", **kwargs)


class TrackFailedException(PlayerException):
    """Raised when the node refuses to play a track"""

    code = ErrorCode.TRACK_FAILED
