from __future__ import annotations


class KazaEvent:
    """Base class for all events dispatched by the library"""

    __slots__ = ()

    def __repr__(self) -> str:
        attributes = " ".join(f"{name}={getattr(self, name)!r}" for name in self.__slots__)
        return f"<{type(self).__name__}({attributes})>"
