from __future__ import annotations

import typing

from packaging.version import Version, parse

__version__ = __VERSION__ = "1.0.0"

VERSION: Version = typing.cast(Version, parse(__version__))

__all__ = (
    "__version__",
    "VERSION",
)
