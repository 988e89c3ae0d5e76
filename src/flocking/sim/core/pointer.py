from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pygame.math import Vector2


class PointerPolarity(str, Enum):
    ATTRACT = "Attract"
    REPEL = "Repel"


@dataclass(slots=True)
class PointerInfluence:
    target: Vector2 | None = None
    polarity: PointerPolarity | None = None

    @property
    def active(self) -> bool:
        return self.target is not None and self.polarity is not None
