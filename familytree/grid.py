"""Grid packing for variable-width cards.

A virtual grid of ``grid_columns`` columns spans ``nominal_total_width``.
Each card claims ``ceil((width + min_h_gap) / column_width)`` adjacent columns
of one row, so two cards in a row can never overlap. Column search starts in
the centre and alternates outward, which keeps sparse rows visually centred.
Row y-offsets are derived at the end from each row's tallest card.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field

from .config import LayoutConfig
from .direct_tree import DirectTree
from .models import Edge, Position
from .records import RecordSet
from .routing import EdgeRouter
from .text import COMPACT_FONT, CardFont, TextMeasure, card_size, estimate_text_width

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridSlot:
    row: int
    column: int
    span: int


@dataclass
class _GridRow:
    occupied: set[int] = field(default_factory=set)
    max_height: float = 0.0


class GridOccupancy:
    """Occupancy map for one layout pass."""

    def __init__(self, config: LayoutConfig) -> None:
        self.config = config
        self._rows: dict[int, _GridRow] = {}

    @property
    def columns(self) -> int:
        return self.config.grid_columns

    @property
    def max_row(self) -> int:
        return max(self._rows) if self._rows else -1

    def columns_for(self, width: float) -> int:
        needed = math.ceil((width + self.config.min_h_gap) / self.config.column_width)
        return max(1, min(needed, self.columns))

    def candidate_columns(self, span: int) -> list[int]:
        """Start columns for a card of *span* columns, centre first then outward."""

        centre = self.columns // 2
        out: list[int] = []
        for offset in range(self.columns + 1):
            left = centre - offset
            if left >= 0 and left + span <= self.columns:
                out.append(left)
            if offset > 0:
                right = centre + offset
                if right + span <= self.columns:
                    out.append(right)
        return out

    def is_free(self, row: int, column: int, span: int) -> bool:
        r = self._rows.get(row)
        if r is None:
            return True
        return all(c not in r.occupied for c in range(column, column + span))

    def _claim(self, row: int, column: int, span: int, height: float) -> GridSlot:
        r = self._rows.setdefault(row, _GridRow())
        r.occupied.update(range(column, column + span))
        r.max_height = max(r.max_height, height)
        return GridSlot(row=row, column=column, span=span)

    def place(
        self,
        width: float,
        height: float,
        preferred_row: int = 0,
        *,
        centre_exact: bool = False,
    ) -> GridSlot:
        """Claim the first free run of columns at or below *preferred_row*."""

        span = self.columns_for(width)
        candidates = self.candidate_columns(span)
        if centre_exact:
            exact = self.columns // 2 - span // 2
            if exact >= 0 and exact + span <= self.columns:
                candidates = [exact] + [c for c in candidates if c != exact]

        for row in range(preferred_row, preferred_row + self.config.max_scan_rows):
            for column in candidates:
                if self.is_free(row, column, span):
                    return self._claim(row, column, span, height)

        # Pathologically dense: open a fresh row past everything used so far.
        row = max(preferred_row + self.config.max_scan_rows, self.max_row + 1)
        log.warning("Grid scan exhausted from row %d; placing in overflow row %d", preferred_row, row)
        return self._claim(row, 0, span, height)

    def row_offsets(self) -> dict[int, float]:
        """y-offset of every row up to the last used one.

        Rows that never received a card still take ``base_card_height``.
        """

        offsets: dict[int, float] = {}
        y = 0.0
        for row in range(self.max_row + 1):
            offsets[row] = y
            r = self._rows.get(row)
            height = r.max_height if r is not None else self.config.base_card_height
            y += height + self.config.min_v_gap
        return offsets

    def x_for(self, slot: GridSlot) -> float:
        # Alternate a small offset per row so stacked cards read as separate.
        stagger = self.config.row_stagger if slot.row % 2 == 0 else -self.config.row_stagger
        return slot.column * self.config.column_width + stagger


def compute_compact_layout(
    records: RecordSet,
    tree: DirectTree,
    config: LayoutConfig,
    *,
    font: CardFont = COMPACT_FONT,
    measure: TextMeasure = estimate_text_width,
) -> tuple[dict[str, Position], list[Edge]]:
    """Breadth-first grid placement of the direct tree, content-sized cards."""

    if tree.is_empty:
        return {}, []

    grid = GridOccupancy(config)
    slots: dict[str, GridSlot] = {}
    sizes: dict[str, tuple[float, float]] = {}

    queue: deque[tuple[str, int | None]] = deque([(tree.root_id, None)])
    while queue:
        pid, parent_row = queue.popleft()
        if pid in slots or pid not in records.people:
            continue
        width, height = card_size(records.people[pid], font, config, measure)
        preferred = 0 if parent_row is None else parent_row + 1
        slot = grid.place(width, height, preferred)
        slots[pid] = slot
        sizes[pid] = (width, height)
        for cid in tree.children(pid):
            if cid not in slots:
                queue.append((cid, slot.row))

    offsets = grid.row_offsets()
    positions: dict[str, Position] = {}
    for pid, slot in slots.items():
        width, height = sizes[pid]
        positions[pid] = Position(grid.x_for(slot), offsets[slot.row], width, height)

    anchor_id = next(
        (pid for pid in slots if records.people[pid].generation == 1),
        tree.root_id,
    )
    dx = -positions[anchor_id].center_x
    positions = {pid: pos.shifted(dx=dx) for pid, pos in positions.items()}

    router = EdgeRouter(positions, config)
    edges: list[Edge] = []
    for pid in slots:
        for cid in tree.children(pid):
            edge = router.route(pid, cid, generation=records.people[cid].generation)
            if edge is not None:
                edges.append(edge)

    log.debug("Compact layout placed %d cards in %d rows", len(positions), grid.max_row + 1)
    return positions, edges
