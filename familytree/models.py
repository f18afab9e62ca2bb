"""Record and layout data types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"


_GENDER_ALIASES = {
    "m": Gender.MALE,
    "male": Gender.MALE,
    "man": Gender.MALE,
    "f": Gender.FEMALE,
    "female": Gender.FEMALE,
    "woman": Gender.FEMALE,
}


def normalize_gender(value: str | None) -> Gender:
    """Map free-text gender (export columns are messy) onto ``Gender``."""

    if isinstance(value, Gender):
        return value
    s = (value or "").strip().lower()
    return _GENDER_ALIASES.get(s, Gender.UNKNOWN)


@dataclass(frozen=True)
class Person:
    id: str
    name: str = "Unknown"
    gender: Gender = Gender.UNKNOWN
    birth_date: str = ""
    death_date: str = ""
    birth_place: str = ""
    title: str = ""
    note: str = ""
    # Attached by the generation assigner; None means "not reachable from root".
    generation: Optional[int] = None


@dataclass(frozen=True)
class Marriage:
    id: str
    husband_id: Optional[str] = None
    wife_id: Optional[str] = None
    date: str = ""
    place: str = ""


@dataclass(frozen=True)
class ParentChildLink:
    family_id: str
    child_id: str


@dataclass
class Family:
    """A marriage unit. Husband/wife are parent slots A/B, not validated by sex."""

    id: str
    husband_id: Optional[str] = None
    wife_id: Optional[str] = None
    children: list[str] = field(default_factory=list)
    date: str = ""
    place: str = ""

    @property
    def parents(self) -> list[str]:
        return [pid for pid in (self.husband_id, self.wife_id) if pid]


@dataclass(frozen=True)
class Position:
    x: float
    y: float
    width: float
    height: float

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def shifted(self, dx: float = 0.0, dy: float = 0.0) -> Position:
        return Position(self.x + dx, self.y + dy, self.width, self.height)

    def intersects(self, other: Position) -> bool:
        """Strict overlap of the two boxes (touching edges do not count)."""
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )


@dataclass(frozen=True)
class Edge:
    """A routed parent -> child connector.

    ``jy`` is the (first) horizontal jog elevation. When the connector had to be
    routed around cards, ``jx`` is the vertical channel it drops through and
    ``jy2`` is the second jog elevation, just above the child.
    """

    from_id: str
    to_id: str
    x1: float
    y1: float
    x2: float
    y2: float
    jx: float
    jy: float
    jy2: Optional[float] = None
    generation: Optional[int] = None

    def waypoints(self) -> list[tuple[float, float]]:
        if self.jy2 is None:
            pts = [
                (self.x1, self.y1),
                (self.x1, self.jy),
                (self.x2, self.jy),
                (self.x2, self.y2),
            ]
        else:
            pts = [
                (self.x1, self.y1),
                (self.x1, self.jy),
                (self.jx, self.jy),
                (self.jx, self.jy2),
                (self.x2, self.jy2),
                (self.x2, self.y2),
            ]
        # Collapse zero-length segments.
        out: list[tuple[float, float]] = []
        for p in pts:
            if out and out[-1] == p:
                continue
            out.append(p)
        return out

    def segments(self) -> list[tuple[tuple[float, float], tuple[float, float]]]:
        pts = self.waypoints()
        return list(zip(pts, pts[1:]))


@dataclass(frozen=True)
class Bounds:
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y
