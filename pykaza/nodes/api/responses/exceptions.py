from __future__ import annotations

import dataclasses


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class LoadException:
    severity: str = "common"
    message: str | None = None
    cause: str | None = None

    def __post_init__(self) -> None:
        # Legacy nodes send upper case severities
        object.__setattr__(self, "severity", (self.severity or "common").lower())
