from __future__ import annotations

import dataclasses

from pykaza.type_hints.dict_typing import JSON_DICT_TYPE


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class Info:
    name: str | None = None
    selectedTrack: int = -1

    def to_dict(self) -> JSON_DICT_TYPE:
        return dataclasses.asdict(self)
