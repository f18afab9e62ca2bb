"""Single-family focus view.

Lays out one person's parent chain (both parent slots of every parent family,
up to generation 0), the person, and their direct children, one grid row band
per generation with the ancestors on top.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .config import LayoutConfig
from .grid import GridOccupancy, GridSlot
from .models import Edge, Position
from .records import RecordSet
from .routing import EdgeRouter
from .text import FOCUS_FONT, CardFont, TextMeasure, card_size, estimate_text_width

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FocusLayout:
    focus_id: str | None = None
    positions: dict[str, Position] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    ancestors: list[str] = field(default_factory=list)
    direct_children: list[str] = field(default_factory=list)


def collect_ancestors(records: RecordSet, focus_id: str, depth_limit: int) -> tuple[list[str], dict[str, int]]:
    """Walk parent links upward from *focus_id*.

    Returns the ancestors in discovery order plus each ancestor's depth above
    the focus person (parents = 1). A parent at generation 0 is collected but
    not climbed past. The visited set and *depth_limit* guarantee termination
    on cyclic source data.
    """

    ancestors: list[str] = []
    depth_of: dict[str, int] = {}
    seen: set[str] = {focus_id}
    stack: list[tuple[str, int]] = [(focus_id, 0)]

    while stack:
        pid, depth = stack.pop()
        if depth >= depth_limit:
            log.debug("Ancestor walk stopped at depth %d (%s)", depth, pid)
            continue

        to_climb: list[str] = []
        for fid in records.child_to_families.get(pid, ()):
            for parent_id in records.families[fid].parents:
                if parent_id in seen or parent_id not in records.people:
                    continue
                seen.add(parent_id)
                ancestors.append(parent_id)
                depth_of[parent_id] = depth + 1
                if records.people[parent_id].generation != 0:
                    to_climb.append(parent_id)

        for parent_id in reversed(to_climb):
            stack.append((parent_id, depth + 1))

    return ancestors, depth_of


def collect_direct_children(records: RecordSet, focus_id: str, exclude: set[str]) -> list[str]:
    out: list[str] = []
    for fid in records.parent_to_families.get(focus_id, ()):
        for cid in sorted(records.families[fid].children):
            if cid in exclude or cid in out or cid not in records.people:
                continue
            out.append(cid)
    return out


def compute_focus_layout(
    records: RecordSet,
    focus_id: str,
    config: LayoutConfig,
    *,
    font: CardFont = FOCUS_FONT,
    measure: TextMeasure = estimate_text_width,
) -> FocusLayout:
    person = records.people.get(focus_id)
    if person is None:
        log.warning("Focus person %s not found", focus_id)
        return FocusLayout()

    ancestors, depth_of = collect_ancestors(records, focus_id, config.ancestor_depth_limit)
    children = collect_direct_children(records, focus_id, exclude={focus_id, *ancestors})

    focus_gen = person.generation if person.generation is not None else 0

    def row_generation(pid: str, relative: int) -> int:
        gen = records.people[pid].generation
        return gen if gen is not None else focus_gen + relative

    by_gen: dict[int, list[str]] = {}
    for aid in ancestors:
        by_gen.setdefault(row_generation(aid, -depth_of[aid]), []).append(aid)
    by_gen.setdefault(focus_gen, []).insert(0, focus_id)
    for cid in children:
        by_gen.setdefault(row_generation(cid, 1), []).append(cid)

    grid = GridOccupancy(config)
    slots: dict[str, GridSlot] = {}
    sizes: dict[str, tuple[float, float]] = {}
    for gen in sorted(by_gen):
        band_start = grid.max_row + 1
        for pid in by_gen[gen]:
            width, height = card_size(records.people[pid], font, config, measure)
            sizes[pid] = (width, height)
            slots[pid] = grid.place(width, height, band_start, centre_exact=(pid == focus_id))

    offsets = grid.row_offsets()
    positions: dict[str, Position] = {}
    for pid, slot in slots.items():
        width, height = sizes[pid]
        positions[pid] = Position(grid.x_for(slot), offsets[slot.row], width, height)

    if focus_id not in positions:
        log.error("Focus person %s was not placed; using fallback origin", focus_id)
        width, height = card_size(person, font, config, measure)
        positions[focus_id] = Position(0.0, 0.0, width, height)

    dx = -positions[focus_id].center_x
    positions = {pid: pos.shifted(dx=dx) for pid, pos in positions.items()}

    router = EdgeRouter(positions, config)
    edges: list[Edge] = []
    for child_id in [focus_id, *ancestors]:
        for parent_id in records.parents_of(child_id):
            if parent_id not in positions or parent_id == child_id:
                continue
            edge = router.route(parent_id, child_id, generation=records.people[child_id].generation)
            if edge is not None:
                edges.append(edge)
    for cid in children:
        edge = router.route(focus_id, cid, generation=records.people[cid].generation)
        if edge is not None:
            edges.append(edge)

    log.debug(
        "Focus layout for %s: %d ancestors, %d children",
        focus_id,
        len(ancestors),
        len(children),
    )
    return FocusLayout(
        focus_id=focus_id,
        positions=positions,
        edges=edges,
        ancestors=ancestors,
        direct_children=children,
    )
