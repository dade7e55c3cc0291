from __future__ import annotations

from pykaza.constants.errors import ErrorCode
from pykaza.exceptions.base import KazaException


class SearchException(KazaException):
    """Base exception for Search errors"""

    code = ErrorCode.SEARCH_FAILED


class SearchFailedException(SearchException):
    """Raised when the node reports that loading a query failed"""


class NoResultsException(SearchException):
    """Raised when a query resolved to no tracks"""

    code = ErrorCode.NO_RESULTS


class InvalidURLException(SearchException):
    """Raised when a URL is malformed or not supported"""

    code = ErrorCode.INVALID_URL


class PlatformUnavailableException(SearchException):
    """Raised when a search source is unknown or not configured"""

    code = ErrorCode.PLATFORM_UNAVAILABLE


class MissingCredentialsException(SearchException):
    """Raised when the node is missing the credentials for a platform"""

    code = ErrorCode.MISSING_CREDENTIALS
