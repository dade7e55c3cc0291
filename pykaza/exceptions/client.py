from __future__ import annotations

from pykaza.constants.errors import ErrorCode
from pykaza.exceptions.base import KazaException


class InvalidConfigException(KazaException):
    """Raised when invalid configuration is passed to the library"""

    code = ErrorCode.INVALID_CONFIG


class PluginLoadException(KazaException):
    """Raised when a plugin cannot be loaded"""

    code = ErrorCode.PLUGIN_LOAD_FAILED
