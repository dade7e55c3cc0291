from __future__ import annotations

from pykaza.constants.errors import ErrorCode
from pykaza.exceptions.base import KazaException


class NodeException(KazaException):
    """Base exception for Node errors"""

    code = ErrorCode.LAVALINK_ERROR


class NoNodeAvailableException(NodeException):
    """Raised when no node is available to handle a request"""

    code = ErrorCode.NODE_UNAVAILABLE


class ConnectionFailedException(NodeException):
    """Raised when a node cannot be reached"""

    code = ErrorCode.CONNECTION_FAILED


class TimeoutException(NodeException):
    """Raised when a node did not answer in time"""

    code = ErrorCode.TIMEOUT


class RateLimitedException(NodeException):
    """Raised when a node or the platform behind it rate limits the request"""

    code = ErrorCode.RATE_LIMITED
