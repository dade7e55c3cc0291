from __future__ import annotations

from pykaza.constants.errors import ErrorCode
from pykaza.exceptions.base import KazaException


class QueueException(KazaException):
    """Base exception for Queue errors"""

    code = ErrorCode.QUEUE_EMPTY


class QueueEmptyException(QueueException):
    """Raised when a track is required but the queue is empty"""


class TrackNotFoundException(QueueException):
    """Raised when a track is not in the queue"""

    code = ErrorCode.TRACK_NOT_FOUND


class InvalidIndexException(QueueException):
    """Raised when a queue position is out of range"""

    code = ErrorCode.INVALID_INDEX
