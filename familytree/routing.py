"""Circuit-board style routing of parent -> child connectors.

Two independent stages per edge:

1. Obstacle avoidance. Cards sitting between the parent's bottom and the
   child's top, inside the horizontal span of the two centres, force a
   two-jog route through a clear vertical channel.
2. Lane separation. Every horizontal run is snapped to a lane
   (``lane_spacing``) that no other parent's run already uses over an
   overlapping x-range.

A router instance owns the lane registry for exactly one layout pass.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

from .config import LayoutConfig
from .models import Edge, Position

log = logging.getLogger(__name__)

Point = tuple[float, float]


@dataclass(frozen=True)
class _LaneClaim:
    min_x: float
    max_x: float
    owner: str


def segment_hits_box(a: Point, b: Point, box: Position) -> bool:
    """True if the axis-aligned segment a-b touches *box* (edges included)."""

    (ax, ay), (bx, by) = a, b
    lo_x, hi_x = min(ax, bx), max(ax, bx)
    lo_y, hi_y = min(ay, by), max(ay, by)
    return lo_x <= box.right and hi_x >= box.x and lo_y <= box.bottom and hi_y >= box.y


def path_hits_box(points: list[Point], box: Position) -> bool:
    return any(segment_hits_box(a, b, box) for a, b in zip(points, points[1:]))


class EdgeRouter:
    def __init__(self, positions: dict[str, Position], config: LayoutConfig) -> None:
        self.positions = positions
        self.config = config
        self._lanes: dict[float, list[_LaneClaim]] = {}

    # -- obstacles ---------------------------------------------------------

    def cards_in_path(self, parent_id: str, child_id: str) -> list[Position]:
        parent = self.positions[parent_id]
        child = self.positions[child_id]
        top_y = parent.bottom
        bottom_y = child.y
        lo_x = min(parent.center_x, child.center_x)
        hi_x = max(parent.center_x, child.center_x)

        out: list[Position] = []
        for pid, card in self.positions.items():
            if pid == parent_id or pid == child_id:
                continue
            if card.y < bottom_y and card.bottom > top_y and card.right >= lo_x and card.x <= hi_x:
                out.append(card)
        return out

    def _other_cards(self, parent_id: str, child_id: str) -> list[Position]:
        return [pos for pid, pos in self.positions.items() if pid != parent_id and pid != child_id]

    # -- lanes -------------------------------------------------------------

    def _lane_is_free(self, lane_y: float, x_a: float, x_b: float, owner: str) -> bool:
        lo = min(x_a, x_b) - self.config.lane_buffer
        hi = max(x_a, x_b) + self.config.lane_buffer
        for claim in self._lanes.get(lane_y, ()):
            if claim.owner == owner:
                # Runs from one parent form a single bus.
                continue
            if not (hi < claim.min_x or lo > claim.max_x):
                return False
        return True

    def _register(self, lane_y: float, x_a: float, x_b: float, owner: str) -> None:
        self._lanes.setdefault(lane_y, []).append(_LaneClaim(min(x_a, x_b), max(x_a, x_b), owner))

    def claim_lane(
        self,
        owner: str,
        x_a: float,
        x_b: float,
        preferred_y: float,
        low: float,
        high: float,
        accept: Optional[Callable[[float], bool]] = None,
    ) -> float:
        """Pick and register a lane for a horizontal run from x_a to x_b.

        Candidates are the quantized preferred lane, then alternately the lanes
        above and below it, restricted to the open band (low, high). Falls back
        to *preferred_y* when every candidate is taken or rejected.
        """

        spacing = self.config.lane_spacing
        base = math.floor(preferred_y / spacing + 0.5) * spacing
        candidates = [base]
        for k in range(1, self.config.lane_max_offset + 1):
            candidates.append(base + k * spacing)
            candidates.append(base - k * spacing)

        chosen = preferred_y
        for lane_y in candidates:
            if not (low < lane_y < high):
                continue
            if not self._lane_is_free(lane_y, x_a, x_b, owner):
                continue
            if accept is not None and not accept(lane_y):
                continue
            chosen = lane_y
            break
        else:
            log.debug("No free lane for %s near y=%.1f; using unsnapped elevation", owner, preferred_y)

        self._register(chosen, x_a, x_b, owner)
        return chosen

    # -- routing -----------------------------------------------------------

    def route(self, parent_id: str, child_id: str, generation: Optional[int] = None) -> Optional[Edge]:
        parent = self.positions.get(parent_id)
        child = self.positions.get(child_id)
        if parent is None or child is None:
            return None

        x1, y1 = parent.center_x, parent.bottom
        x2, y2 = child.center_x, child.y

        obstacles = self.cards_in_path(parent_id, child_id) if y2 > y1 else []
        if not obstacles:
            low, high = min(y1, y2), max(y1, y2)
            jy = self.claim_lane(parent_id, x1, x2, (y1 + y2) / 2, low, high)
            return Edge(parent_id, child_id, x1, y1, x2, y2, jx=(x1 + x2) / 2, jy=jy, generation=generation)

        return self._route_around(parent_id, child_id, obstacles, generation)

    def _find_channel(
        self,
        x1: float,
        x2: float,
        jy: float,
        jy2: float,
        others: list[Position],
        clear: Callable[[float, float, float], bool],
    ) -> Optional[float]:
        """x of a vertical drop from *jy* to *jy2* that keeps the whole path clear.

        Steps outward from the midpoint first. Failing that, tries just outside
        the cards the drop would cross and widens until past every card.
        """

        cfg = self.config
        step = cfg.route_search_step
        centre_x = (x1 + x2) / 2
        max_offset = max(abs(x2 - x1), cfg.route_min_search)

        offset = 0.0
        while offset <= max_offset:
            for cand in (centre_x + offset, centre_x - offset) if offset else (centre_x,):
                if clear(cand, jy, jy2):
                    return cand
            offset += step

        lo_y, hi_y = min(jy, jy2), max(jy, jy2)
        crossing = [o for o in others if o.y <= hi_y and o.bottom >= lo_y]
        if not crossing:
            return None

        left = min(o.x for o in crossing) - cfg.route_clearance
        right = max(o.right for o in crossing) + cfg.route_clearance
        far_left = min(o.x for o in others) - cfg.route_clearance - step
        far_right = max(o.right for o in others) + cfg.route_clearance + step
        while left >= far_left or right <= far_right:
            for cand in sorted((left, right), key=lambda c: (abs(c - centre_x), c)):
                if clear(cand, jy, jy2):
                    return cand
            left -= step
            right += step
        return None

    def _route_around(
        self,
        parent_id: str,
        child_id: str,
        obstacles: list[Position],
        generation: Optional[int],
    ) -> Edge:
        cfg = self.config
        parent = self.positions[parent_id]
        child = self.positions[child_id]
        x1, y1 = parent.center_x, parent.bottom
        x2, y2 = child.center_x, child.y
        others = self._other_cards(parent_id, child_id)

        highest_top = min(o.y for o in obstacles)
        lowest_bottom = max(o.bottom for o in obstacles)

        # First jog: just under the parent, above the obstacles.
        upper_low, upper_high = (y1, highest_top) if highest_top > y1 else (y1, y2)
        jy = min(y1 + cfg.route_clearance, (upper_low + upper_high) / 2)

        # Second jog: below the lowest obstacle, just above the child.
        lower_low, lower_high = (lowest_bottom, y2) if lowest_bottom < y2 else (y1, y2)
        jy2 = max(y2 - cfg.route_approach, (lower_low + lower_high) / 2)

        def points(jx: float, a: float, b: float) -> list[Point]:
            return [(x1, y1), (x1, a), (jx, a), (jx, b), (x2, b), (x2, y2)]

        def clear(jx: float, a: float, b: float) -> bool:
            pts = points(jx, a, b)
            return not any(path_hits_box(pts, box) for box in others)

        jx = self._find_channel(x1, x2, jy, jy2, others, clear)
        found = jx is not None
        if jx is None:
            log.warning("No clear channel for %s -> %s; routing through the midpoint", parent_id, child_id)
            jx = (x1 + x2) / 2

        jy = self.claim_lane(
            parent_id,
            x1,
            jx,
            jy,
            upper_low,
            upper_high,
            accept=(lambda y: clear(jx, y, jy2)) if found else None,
        )
        jy2 = self.claim_lane(
            parent_id,
            jx,
            x2,
            jy2,
            lower_low,
            lower_high,
            accept=(lambda y: clear(jx, jy, y)) if found else None,
        )

        return Edge(parent_id, child_id, x1, y1, x2, y2, jx=jx, jy=jy, jy2=jy2, generation=generation)
